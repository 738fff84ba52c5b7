"""
Runtime layer - long-running event subscriptions.

Components:
    event_queue: Durable subscription that re-registers on transient failures
    subscribe_events: Plain subscription on an existing queue
    SubscriptionHandle: Async-iterable consumer side with cancel()
    cancelable_retry: Fixed-interval retry used for re-registration
"""

from .retry import (
    CANCELLED,
    RECONNECT_DELAY_SECONDS,
    Cancellation,
    RetryResult,
    cancelable_retry,
)
from .subscription import (
    TERMINAL_STATES,
    SubscriptionHandle,
    SubscriptionState,
    event_queue,
    parse_batch,
    parse_registration,
    subscribe_events,
)

__all__ = [
    "CANCELLED",
    "RECONNECT_DELAY_SECONDS",
    "Cancellation",
    "RetryResult",
    "cancelable_retry",
    "TERMINAL_STATES",
    "SubscriptionHandle",
    "SubscriptionState",
    "event_queue",
    "parse_batch",
    "parse_registration",
    "subscribe_events",
]
