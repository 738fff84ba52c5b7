"""
Connection configuration management utilities.

This module loads Zulip bot credentials from a YAML configuration file at
the project root. Each top-level key is a profile:

    echo_bot:
      username: echo-bot@example.zulipchat.com
      api_key: secret
      base_url: https://example.zulipchat.com/api/v1
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from zulip_client.client.connection import DEFAULT_BASE_URL, normalize_base_url

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "zulip_config.yaml"


@dataclass(frozen=True)
class ConnectionConfig:
    """Credentials and server for one Connection."""

    username: str
    api_key: str
    base_url: str = DEFAULT_BASE_URL


def get_config_path() -> Path:
    """
    Get the path to the connection configuration file.

    ZULIP_CONFIG overrides the default of zulip_config.yaml in the current
    working directory (project root).
    """
    override = os.environ.get("ZULIP_CONFIG")
    if override:
        return Path(override)
    return Path(os.getcwd()) / CONFIG_FILENAME


def load_connection_config(profile: str) -> ConnectionConfig:
    """
    Load connection credentials from YAML file at project root.

    Args:
        profile: The key identifying the bot in the config file

    Returns:
        ConnectionConfig with username, api_key and base_url

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the profile or required fields (username, api_key) are missing
    """
    config_path = get_config_path()
    logger.debug(f"Loading config from: {config_path}")

    if not config_path.exists():
        raise FileNotFoundError(
            f"{CONFIG_FILENAME} not found at {config_path}. "
            f"Copy {CONFIG_FILENAME}.example to {CONFIG_FILENAME} and add your bot credentials."
        )

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}

        profile_config = config.get(profile, {})

        if not profile_config:
            raise ValueError(
                f"Profile '{profile}' not found in {config_path}. "
                f"Please add the bot configuration."
            )

        username = profile_config.get("username")
        api_key = profile_config.get("api_key")

        missing_fields = []
        if not username:
            missing_fields.append("username")
        if not api_key:
            missing_fields.append("api_key")

        if missing_fields:
            raise ValueError(
                f"Missing required fields for profile '{profile}': {', '.join(missing_fields)}. "
                f"Create a bot in your Zulip organization settings and add its credentials to {config_path}"
            )

        base_url = profile_config.get("base_url") or DEFAULT_BASE_URL
        return ConnectionConfig(
            username=username,
            api_key=api_key,
            base_url=normalize_base_url(base_url),
        )
    except ValueError:
        raise
    except Exception as e:
        raise RuntimeError(f"Error loading connection config: {e}")
