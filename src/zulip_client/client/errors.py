"""
Error taxonomy for Zulip API requests.

Failures are plain values, not exceptions: the transport turns every HTTP or
network problem into a ZulipError and hands it back as the request outcome.
The subscription loop then decides what to do by looking at ``kind``.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Closed set of request failure kinds."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    INTERNAL_SERVER_ERROR = "internal_server_error"
    BAD_GATEWAY = "bad_gateway"
    TIMEOUT = "timeout"
    UNKNOWN_HOST = "unknown_host"
    GENERIC = "generic"


# Fixing these needs caller action (arguments, credentials), not a retry.
NON_RETRYABLE_KINDS = frozenset({ErrorKind.BAD_REQUEST, ErrorKind.UNAUTHORIZED})

_STATUS_KINDS: dict[int, tuple[ErrorKind, str]] = {
    400: (ErrorKind.BAD_REQUEST, "Bad request"),
    401: (ErrorKind.UNAUTHORIZED, "Unauthorized"),
    500: (ErrorKind.INTERNAL_SERVER_ERROR, "Internal server error"),
    502: (ErrorKind.BAD_GATEWAY, "Bad gateway"),
}


@dataclass(frozen=True)
class ZulipError:
    """A classified request failure."""

    kind: ErrorKind
    message: str
    endpoint: str
    cause: BaseException | None = None
    status_code: int | None = None
    body: dict[str, Any] | None = None

    @property
    def retryable(self) -> bool:
        return self.kind not in NON_RETRYABLE_KINDS

    def __str__(self) -> str:
        return f"{self.message} ({self.kind.value}, endpoint={self.endpoint})"


class ZulipRequestError(Exception):
    """Raised by unwrap() for callers that prefer exceptions."""

    def __init__(self, error: ZulipError):
        super().__init__(str(error))
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


# Outcome of one request: decoded body or a classified error.
# None is reserved for "no outcome" (connection already released).
Outcome = dict[str, Any] | str | ZulipError | None


def is_error(outcome: Any) -> bool:
    return isinstance(outcome, ZulipError)


def is_retryable(outcome: Any) -> bool:
    """
    Whether blindly retrying would be expected to eventually succeed.

    Anything that is not a ZulipError (a decoded body, None) is never
    retryable.
    """
    return isinstance(outcome, ZulipError) and outcome.retryable


def unwrap(outcome: Outcome) -> dict[str, Any] | str:
    """Return the decoded body, raising ZulipRequestError for an error outcome."""
    if isinstance(outcome, ZulipError):
        raise ZulipRequestError(outcome)
    if outcome is None:
        raise RuntimeError("Request produced no outcome (connection closed)")
    return outcome


def classify_status(
    status_code: int,
    endpoint: str,
    body: dict[str, Any] | str | None = None,
) -> ZulipError:
    """
    Map an HTTP error status to a ZulipError.

    Args:
        status_code: HTTP status of the response
        endpoint: Endpoint the request was sent to
        body: Decoded JSON body or raw response text

    Returns:
        ZulipError; unrecognized statuses become GENERIC with the raw
        response as message.
    """
    json_body = body if isinstance(body, dict) else None

    if status_code in _STATUS_KINDS:
        kind, message = _STATUS_KINDS[status_code]
        # Zulip puts a human readable reason in "msg" for 400s
        if kind is ErrorKind.BAD_REQUEST and json_body and json_body.get("msg"):
            message = f"{message}: {json_body['msg']}"
        return ZulipError(
            kind=kind,
            message=message,
            endpoint=endpoint,
            status_code=status_code,
            body=json_body,
        )

    if json_body is not None:
        raw = str(json_body)
    else:
        raw = body or f"HTTP {status_code}"
    return ZulipError(
        kind=ErrorKind.GENERIC,
        message=raw,
        endpoint=endpoint,
        status_code=status_code,
        body=json_body,
    )


def _is_dns_failure(exc: BaseException) -> bool:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, socket.gaierror):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__

    text = str(exc).lower()
    return any(
        marker in text
        for marker in (
            "name or service not known",
            "nodename nor servname",
            "getaddrinfo failed",
            "temporary failure in name resolution",
        )
    )


def classify_exception(exc: BaseException, endpoint: str) -> ZulipError:
    """Map a transport-level exception to a ZulipError."""
    if isinstance(exc, httpx.TimeoutException):
        kind, message = ErrorKind.TIMEOUT, "Timeout"
    elif isinstance(exc, httpx.ConnectError) and _is_dns_failure(exc):
        kind, message = ErrorKind.UNKNOWN_HOST, "Unknown host"
    elif isinstance(exc, socket.gaierror):
        kind, message = ErrorKind.UNKNOWN_HOST, "Unknown host"
    else:
        kind, message = ErrorKind.GENERIC, f"{type(exc).__name__}: {exc}"

    return ZulipError(kind=kind, message=message, endpoint=endpoint, cause=exc)
