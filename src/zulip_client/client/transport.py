"""
Transport executor - performs a single HTTP call and classifies the outcome.

execute() never raises for HTTP or network failures. Every failure is
turned into a ZulipError and returned as the outcome, so retry logic can
inspect it as data.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Protocol

import httpx

from zulip_client.client.errors import (
    ErrorKind,
    Outcome,
    ZulipError,
    classify_exception,
    classify_status,
)

if TYPE_CHECKING:
    from zulip_client.client.connection import Connection

logger = logging.getLogger(__name__)

# Zulip sends a heartbeat on the events endpoint roughly every minute;
# the per-call deadline has to outlast that.
REQUEST_TIMEOUT_SECONDS = 90.0

ArgSlot = Literal["params", "data"]


class Verb(str, Enum):
    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"


@dataclass(frozen=True)
class RequestRecord:
    """One executed request, as reported to the observer."""

    verb: Verb
    endpoint: str
    args: dict[str, Any]
    outcome: Outcome
    elapsed: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def failed(self) -> bool:
        return isinstance(self.outcome, ZulipError)


class RequestObserver(Protocol):
    """Diagnostics hook. Called synchronously; must return quickly."""

    def __call__(self, record: RequestRecord) -> None: ...


class LoggingObserver:
    """
    Default observer: failed requests at ERROR, everything else at DEBUG.

    Request arguments (message content included) are only logged at DEBUG.
    """

    def __init__(self, logger_name: str = "zulip_client.requests"):
        self._logger = logging.getLogger(logger_name)

    def __call__(self, record: RequestRecord) -> None:
        if record.failed:
            self._logger.error(
                f"{record.verb.value} {record.endpoint} failed after "
                f"{record.elapsed:.2f}s: {record.outcome}"
            )
            self._logger.debug(f"Failed request args: {record.args}")
        else:
            self._logger.debug(
                f"{record.verb.value} {record.endpoint} ok in {record.elapsed:.2f}s"
            )


def _is_json(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return content_type.split(";")[0].strip().lower() == "application/json"


def extract_body(response: httpx.Response) -> dict[str, Any] | str:
    """Return the response body, decoded from JSON when the server says it is JSON."""
    if not _is_json(response):
        return response.text
    return response.json()


def _error_body(response: httpx.Response) -> dict[str, Any] | str:
    try:
        return extract_body(response)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text


def _report(observer: Any, record: RequestRecord) -> None:
    try:
        observer(record)
    except Exception as e:
        logger.warning(f"Request observer raised, ignoring: {e}")


async def _perform(
    connection: "Connection",
    endpoint: str,
    verb: Verb,
    args: dict[str, Any],
    arg_slot: ArgSlot,
) -> Outcome:
    try:
        response = await connection.http.request(
            verb.value,
            connection.url(endpoint),
            **{arg_slot: args},
        )
    except Exception as e:
        if connection.is_closed:
            logger.debug(f"Connection closed during {verb.value} {endpoint}")
            return None
        return classify_exception(e, endpoint)

    if not response.is_success:
        return classify_status(response.status_code, endpoint, _error_body(response))

    try:
        return extract_body(response)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return ZulipError(
            kind=ErrorKind.GENERIC,
            message=f"Invalid JSON body: {e}",
            endpoint=endpoint,
            cause=e,
            status_code=response.status_code,
        )


async def execute(
    connection: "Connection",
    endpoint: str,
    verb: Verb,
    args: dict[str, Any] | None = None,
    arg_slot: ArgSlot = "params",
) -> Outcome:
    """
    Issue one request and return its outcome.

    Args:
        connection: Connection providing credentials, base URL and pool
        endpoint: Path relative to the base URL, e.g. "events"
        verb: HTTP verb
        args: Request arguments
        arg_slot: "params" for query string, "data" for form body

    Returns:
        Decoded body, ZulipError, or None when the connection is released.
    """
    args = dict(args or {})

    if connection.is_closed:
        logger.debug(f"Connection closed, not sending {verb.value} {endpoint}")
        return None

    started = time.monotonic()
    outcome = await _perform(connection, endpoint, verb, args, arg_slot)

    _report(
        connection.observer,
        RequestRecord(
            verb=verb,
            endpoint=endpoint,
            args=args,
            outcome=outcome,
            elapsed=time.monotonic() - started,
        ),
    )
    return outcome
