"""Client modules for talking to the Zulip HTTP API."""

from zulip_client.client.connection import Connection, DEFAULT_BASE_URL
from zulip_client.client.dispatch import request, request_options
from zulip_client.client.errors import (
    ErrorKind,
    Outcome,
    ZulipError,
    ZulipRequestError,
    classify_exception,
    classify_status,
    is_error,
    is_retryable,
    unwrap,
)
from zulip_client.client.transport import (
    LoggingObserver,
    RequestObserver,
    RequestRecord,
    Verb,
    execute,
)

__all__ = [
    "Connection",
    "DEFAULT_BASE_URL",
    "request",
    "request_options",
    "ErrorKind",
    "Outcome",
    "ZulipError",
    "ZulipRequestError",
    "classify_exception",
    "classify_status",
    "is_error",
    "is_retryable",
    "unwrap",
    "LoggingObserver",
    "RequestObserver",
    "RequestRecord",
    "Verb",
    "execute",
]
