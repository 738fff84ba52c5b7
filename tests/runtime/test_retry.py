"""Unit tests for Cancellation and cancelable_retry."""

import asyncio
from unittest.mock import AsyncMock

from tests.fixtures import ScriptedEndpoint
from zulip_client.client.errors import ErrorKind, ZulipError
from zulip_client.runtime.retry import (
    CANCELLED,
    RECONNECT_DELAY_SECONDS,
    Cancellation,
    cancelable_retry,
)


def error(kind: ErrorKind) -> ZulipError:
    return ZulipError(kind=kind, message=kind.value, endpoint="register")


REGISTRATION = {"result": "success", "queue_id": "q2", "last_event_id": 40}


class TestCancellation:
    async def test_race_returns_result(self):
        cancellation = Cancellation()

        async def work():
            return "done"

        assert await cancellation.race(work()) == "done"

    async def test_race_when_already_cancelled_does_not_run(self):
        cancellation = Cancellation()
        cancellation.cancel()
        ran = []

        async def work():
            ran.append(True)

        assert await cancellation.race(work()) is CANCELLED
        assert ran == []

    async def test_cancel_interrupts_pending_work(self):
        cancellation = Cancellation()
        started = asyncio.Event()

        async def hang():
            started.set()
            await asyncio.Event().wait()

        racing = asyncio.ensure_future(cancellation.race(hang()))
        await started.wait()
        cancellation.cancel()

        assert await racing is CANCELLED

    async def test_cancellation_wins_when_both_ready(self):
        """If work completes and the signal fires together, the signal wins."""
        cancellation = Cancellation()

        async def work_that_cancels():
            cancellation.cancel()
            return "result"

        assert await cancellation.race(work_that_cancels()) is CANCELLED

    async def test_cancel_is_idempotent(self):
        cancellation = Cancellation()
        cancellation.cancel()
        cancellation.cancel()
        assert cancellation.is_cancelled is True


class TestCancelableRetry:
    async def test_waits_then_returns_success(self):
        cancellation = Cancellation()
        sleep = AsyncMock()
        attempt = ScriptedEndpoint(REGISTRATION)

        result = await cancelable_retry(cancellation, attempt, sleep=sleep)

        assert result.value == REGISTRATION
        assert result.killed is False
        assert result.attempts == 1
        sleep.assert_awaited_once_with(RECONNECT_DELAY_SECONDS)

    async def test_default_delay_is_five_seconds(self):
        assert RECONNECT_DELAY_SECONDS == 5.0

    async def test_retries_retryable_failures_with_fixed_delay(self):
        cancellation = Cancellation()
        sleep = AsyncMock()
        attempt = ScriptedEndpoint(
            error(ErrorKind.BAD_GATEWAY),
            error(ErrorKind.UNKNOWN_HOST),
            error(ErrorKind.INTERNAL_SERVER_ERROR),
            REGISTRATION,
        )

        result = await cancelable_retry(cancellation, attempt, delay=2.0, sleep=sleep)

        assert result.value == REGISTRATION
        assert result.attempts == 4
        assert [call.args for call in sleep.await_args_list] == [(2.0,)] * 4

    async def test_non_retryable_failure_kills(self):
        cancellation = Cancellation()
        unauthorized = error(ErrorKind.UNAUTHORIZED)
        attempt = ScriptedEndpoint(unauthorized, REGISTRATION)

        result = await cancelable_retry(cancellation, attempt, sleep=AsyncMock())

        assert result.killed is True
        assert result.error is unauthorized
        assert len(attempt.calls) == 1

    async def test_closed_connection_kills(self):
        attempt = ScriptedEndpoint(None)

        result = await cancelable_retry(Cancellation(), attempt, sleep=AsyncMock())

        assert result.killed is True
        assert result.error is None

    async def test_cancel_during_wait(self):
        cancellation = Cancellation()
        sleeping = asyncio.Event()
        attempt = ScriptedEndpoint(REGISTRATION)

        async def slow_sleep(delay):
            sleeping.set()
            await asyncio.Event().wait()

        retry = asyncio.ensure_future(
            cancelable_retry(cancellation, attempt, sleep=slow_sleep)
        )
        await sleeping.wait()
        cancellation.cancel()
        result = await retry

        assert result.killed is True
        assert attempt.calls == []

    async def test_cancel_during_attempt(self):
        cancellation = Cancellation()
        attempt = ScriptedEndpoint()  # hangs

        retry = asyncio.ensure_future(
            cancelable_retry(cancellation, attempt, sleep=AsyncMock())
        )
        await attempt.exhausted.wait()
        cancellation.cancel()
        result = await retry

        assert result.killed is True
        assert result.attempts == 1
