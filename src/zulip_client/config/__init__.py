"""
Connection configuration utilities.

Usage:
    from zulip_client.config import load_connection_config

    config = load_connection_config("echo_bot")
"""

from zulip_client.config.loader import (
    ConnectionConfig,
    get_config_path,
    load_connection_config,
)

__all__ = ["ConnectionConfig", "load_connection_config", "get_config_path"]
