"""
zulip_client - asyncio client for the Zulip API with a durable event stream.

Client Layer:
    Connection: Credentials, base URL and HTTP pool
    request / execute: Dispatcher and transport executor
    ZulipError / ErrorKind: Typed request failures (values, not exceptions)

Platform Layer:
    send_message, register, get_events, ...: One function per endpoint
    Event / EventQueueRegistration: Parsed event-queue payloads

Runtime Layer:
    event_queue: Durable subscription (re-registers on transient failures)
    subscribe_events: Plain subscription on an already registered queue
    SubscriptionHandle: Async-iterable event stream with cancel()

Example:
    from zulip_client import Connection, ZulipError, event_queue, send_message

    async with Connection(username, api_key, base_url) as conn:
        async with event_queue(conn, event_types=["message"]) as events:
            async for item in events:
                if isinstance(item, ZulipError):
                    break
                await send_message(conn, "general", "echo", item.payload["message"]["content"])
"""

from .client import (
    DEFAULT_BASE_URL,
    Connection,
    ErrorKind,
    LoggingObserver,
    Outcome,
    RequestObserver,
    RequestRecord,
    Verb,
    ZulipError,
    ZulipRequestError,
    classify_exception,
    classify_status,
    execute,
    is_error,
    is_retryable,
    request,
    unwrap,
)
from .config import ConnectionConfig, load_connection_config
from .platform import (
    DEFAULT_EVENT_TYPES,
    Event,
    EventQueueRegistration,
    add_subscriptions,
    get_events,
    members,
    register,
    remove_subscriptions,
    send_message,
    send_private_message,
    send_stream_message,
    subscriptions,
    update_message,
)
from .runtime import (
    RECONNECT_DELAY_SECONDS,
    SubscriptionHandle,
    SubscriptionState,
    cancelable_retry,
    event_queue,
    subscribe_events,
)

__all__ = [
    # Client
    "DEFAULT_BASE_URL",
    "Connection",
    "ErrorKind",
    "LoggingObserver",
    "Outcome",
    "RequestObserver",
    "RequestRecord",
    "Verb",
    "ZulipError",
    "ZulipRequestError",
    "classify_exception",
    "classify_status",
    "execute",
    "is_error",
    "is_retryable",
    "request",
    "unwrap",
    # Config
    "ConnectionConfig",
    "load_connection_config",
    # Platform
    "DEFAULT_EVENT_TYPES",
    "Event",
    "EventQueueRegistration",
    "add_subscriptions",
    "get_events",
    "members",
    "register",
    "remove_subscriptions",
    "send_message",
    "send_private_message",
    "send_stream_message",
    "subscriptions",
    "update_message",
    # Runtime
    "RECONNECT_DELAY_SECONDS",
    "SubscriptionHandle",
    "SubscriptionState",
    "cancelable_retry",
    "event_queue",
    "subscribe_events",
]

__version__ = "0.1.0"
