"""Request dispatcher - runs each request as its own asyncio task."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from zulip_client.client.errors import Outcome
from zulip_client.client.transport import ArgSlot, Verb, execute

if TYPE_CHECKING:
    from zulip_client.client.connection import Connection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestOptions:
    verb: Verb
    arg_slot: ArgSlot


_ARG_SLOTS: dict[Verb, ArgSlot] = {
    Verb.GET: "params",
    Verb.POST: "data",
    Verb.PATCH: "params",
}


def request_options(verb: Verb | str) -> RequestOptions:
    """Pick the argument encoding for a verb: query string, or form body for POST."""
    verb = Verb(verb.upper() if isinstance(verb, str) else verb)
    return RequestOptions(verb=verb, arg_slot=_ARG_SLOTS[verb])


def request(
    verb: Verb | str,
    connection: "Connection",
    endpoint: str,
    args: dict[str, Any] | None = None,
) -> "asyncio.Task[Outcome]":
    """
    Issue a request to the Zulip API in the background.

    Errors are delivered as the task's value (a ZulipError), never raised,
    so callers can branch on them after awaiting.

    Example:
        outcome = await request(Verb.GET, conn, "users/me/subscriptions")
        if is_error(outcome):
            ...
    """
    options = request_options(verb)
    logger.debug(f"Dispatching {options.verb.value} {endpoint}")
    return asyncio.create_task(
        execute(connection, endpoint, options.verb, args or {}, options.arg_slot),
        name=f"zulip-{options.verb.value.lower()}-{endpoint}",
    )
