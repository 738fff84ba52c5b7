"""Cancellable fixed-interval retry. Used to re-register event queues."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from zulip_client.client.errors import Outcome, ZulipError, is_error, is_retryable

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = 5.0


class _Cancelled(Enum):
    CANCELLED = "cancelled"


CANCELLED = _Cancelled.CANCELLED


def _discard(aw: Awaitable[Any]) -> None:
    if asyncio.iscoroutine(aw):
        aw.close()
    elif isinstance(aw, asyncio.Future):
        aw.cancel()


class Cancellation:
    """
    One-shot cancellation signal.

    race() awaits something unless the signal fires first. When both are
    ready at the same time the signal wins.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def race(self, aw: Awaitable[Any]) -> Any:
        """
        Await aw or the cancellation signal, whichever comes first.

        Returns:
            The awaitable's result, or CANCELLED. On CANCELLED the awaitable
            is cancelled and its result (if any) discarded.
        """
        if self._event.is_set():
            _discard(aw)
            return CANCELLED

        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if self._event.is_set():
            task.cancel()
            return CANCELLED
        return task.result()


@dataclass
class RetryResult:
    """Result of cancelable_retry(). value is set only on success."""

    value: Any = None
    killed: bool = False
    error: ZulipError | None = None
    attempts: int = 0


async def cancelable_retry(
    cancellation: Cancellation,
    attempt: Callable[[], Awaitable[Outcome]],
    delay: float = RECONNECT_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> RetryResult:
    """
    Wait, attempt, and repeat until attempt() yields a non-error outcome.

    There is no attempt cap and no backoff growth: cancellation is the only
    way to give up on a retryable failure.

    Args:
        cancellation: Signal checked at every wait and attempt
        attempt: Produces one outcome per call (e.g. a register request)
        delay: Fixed wait before each attempt, in seconds
        sleep: Sleep implementation

    Returns:
        RetryResult with value on success; killed=True on cancellation,
        a non-retryable error (kept in .error) or a closed connection.
    """
    attempts = 0
    while True:
        logger.debug(f"Re-trying in {delay}s")
        if await cancellation.race(sleep(delay)) is CANCELLED:
            logger.debug("Retrying received kill signal")
            return RetryResult(killed=True, attempts=attempts)

        attempts += 1
        logger.debug(f"Re-trying, attempt {attempts}")
        outcome = await cancellation.race(attempt())

        if outcome is CANCELLED:
            logger.debug("Retrying received kill signal")
            return RetryResult(killed=True, attempts=attempts)
        if is_retryable(outcome):
            logger.debug(f"Re-trying failed, waiting: {outcome}")
            continue
        if is_error(outcome):
            logger.warning(f"Giving up retrying: {outcome}")
            return RetryResult(killed=True, error=outcome, attempts=attempts)
        if outcome is None:
            logger.debug("Connection closed while retrying")
            return RetryResult(killed=True, attempts=attempts)

        return RetryResult(value=outcome, attempts=attempts)
