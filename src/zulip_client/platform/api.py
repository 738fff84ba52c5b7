"""
Zulip REST endpoints, one function per call.

Each function returns the dispatcher task; await it to get the outcome
(decoded body or ZulipError).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Iterable, Sequence

from zulip_client.client.dispatch import request
from zulip_client.client.errors import Outcome
from zulip_client.client.transport import Verb

if TYPE_CHECKING:
    from zulip_client.client.connection import Connection

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TYPES: tuple[str, ...] = (
    "message",
    "subscriptions",
    "realm_user",
    "pointer",
)


# --- Messages ---


def send_private_message(
    conn: "Connection", users: Sequence[str], content: str
) -> asyncio.Task[Outcome]:
    """Send a private message to the given user emails."""
    logger.debug(f"send_private_message to {list(users)}")
    return request(
        Verb.POST,
        conn,
        "messages",
        {"type": "private", "content": content, "to": json.dumps(list(users))},
    )


def send_stream_message(
    conn: "Connection", stream: str, subject: str, content: str
) -> asyncio.Task[Outcome]:
    """Send a message to a stream under the given subject (topic)."""
    logger.debug(f"send_stream_message to {stream} > {subject}")
    return request(
        Verb.POST,
        conn,
        "messages",
        {"type": "stream", "content": content, "subject": subject, "to": stream},
    )


def send_message(
    conn: "Connection", target: str | Sequence[str], *args: str
) -> asyncio.Task[Outcome]:
    """
    Send to a stream when target is a stream name, privately when it is a list.

    Examples:
        send_message(conn, "general", "greetings", "Hello")
        send_message(conn, ["alice@example.com"], "Hello")
    """
    if isinstance(target, str):
        return send_stream_message(conn, target, *args)
    return send_private_message(conn, target, *args)


def update_message(
    conn: "Connection", message_id: int, content: str
) -> asyncio.Task[Outcome]:
    logger.debug(f"update_message {message_id}")
    return request(
        Verb.PATCH,
        conn,
        f"messages/{message_id}",
        {"message_id": message_id, "content": content},
    )


# --- Event queue ---


def register(
    conn: "Connection",
    event_types: Iterable[str] = DEFAULT_EVENT_TYPES,
    apply_markdown: bool = False,
) -> asyncio.Task[Outcome]:
    """Register an event queue. The body has queue_id, last_event_id, max_message_id."""
    logger.debug("Requesting new event queue")
    return request(
        Verb.POST,
        conn,
        "register",
        {
            "event_types": json.dumps(list(event_types)),
            "apply_markdown": apply_markdown,
        },
    )


def get_events(
    conn: "Connection",
    queue_id: str,
    last_event_id: int,
    dont_block: bool = False,
) -> asyncio.Task[Outcome]:
    """Fetch events after last_event_id. Long-polls unless dont_block is set."""
    return request(
        Verb.GET,
        conn,
        "events",
        {
            "queue_id": queue_id,
            "last_event_id": last_event_id,
            "dont_block": dont_block,
        },
    )


# --- Users & subscriptions ---


def members(conn: "Connection") -> asyncio.Task[Outcome]:
    """List members of the whole organization."""
    return request(Verb.GET, conn, "users")


def subscriptions(conn: "Connection") -> asyncio.Task[Outcome]:
    return request(Verb.GET, conn, "users/me/subscriptions")


def add_subscriptions(
    conn: "Connection", streams: Iterable[str]
) -> asyncio.Task[Outcome]:
    """Subscribe to the given streams, creating them if needed."""
    payload = [{"name": stream} for stream in streams]
    return request(
        Verb.POST,
        conn,
        "users/me/subscriptions",
        {"subscriptions": json.dumps(payload)},
    )


def remove_subscriptions(
    conn: "Connection", streams: Iterable[str]
) -> asyncio.Task[Outcome]:
    return request(
        Verb.PATCH,
        conn,
        "users/me/subscriptions",
        {"delete": json.dumps(list(streams))},
    )
