"""
Zulip platform layer - endpoint wrappers and event payloads.

Components:
    api: One function per REST endpoint (send_message, register, ...)
    Event / EventQueueRegistration: Parsed event-queue payloads
"""

from .api import (
    DEFAULT_EVENT_TYPES,
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
from .event import HEARTBEAT, Event, EventBatch, EventQueueRegistration

__all__ = [
    "DEFAULT_EVENT_TYPES",
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
    "HEARTBEAT",
    "Event",
    "EventBatch",
    "EventQueueRegistration",
]
