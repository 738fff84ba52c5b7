"""
Event subscriptions - long-polling loop over a Zulip event queue.

A SubscriptionHandle owns one background task that polls the events
endpoint, forwards non-heartbeat events to the consumer one at a time and
advances the queue cursor. In durable mode, transient failures make the
loop register a fresh queue and carry on.

Example:
    async with event_queue(conn) as events:
        async for item in events:
            if isinstance(item, ZulipError):
                print(f"Subscription failed: {item}")
            else:
                print(item.type, item.payload)
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Mapping

from pydantic import ValidationError

from zulip_client.client.errors import ErrorKind, Outcome, ZulipError
from zulip_client.platform.api import DEFAULT_EVENT_TYPES, get_events, register
from zulip_client.platform.event import Event, EventBatch, EventQueueRegistration
from zulip_client.runtime.retry import (
    CANCELLED,
    RECONNECT_DELAY_SECONDS,
    Cancellation,
    cancelable_retry,
)

if TYPE_CHECKING:
    from zulip_client.client.connection import Connection

logger = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    POLLING = "polling"
    RECONNECTING = "reconnecting"
    KILLED = "killed"
    CLOSED = "closed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


TERMINAL_STATES = frozenset(
    {
        SubscriptionState.KILLED,
        SubscriptionState.CLOSED,
        SubscriptionState.TIMED_OUT,
        SubscriptionState.FAILED,
    }
)

SubscriptionItem = Event | ZulipError


def _invalid_response(endpoint: str, exc: Exception | None, body: Any) -> ZulipError:
    return ZulipError(
        kind=ErrorKind.GENERIC,
        message=f"Unexpected {endpoint} response: {exc or body!r}",
        endpoint=endpoint,
        cause=exc,
    )


def parse_batch(outcome: Outcome) -> EventBatch | ZulipError:
    """Validate an events response body."""
    if not isinstance(outcome, dict):
        return _invalid_response("events", None, outcome)
    try:
        return EventBatch.model_validate(outcome)
    except ValidationError as e:
        return _invalid_response("events", e, outcome)


def parse_registration(outcome: Outcome) -> EventQueueRegistration | ZulipError:
    """Validate a register response body; it must carry queue_id and last_event_id."""
    if not isinstance(outcome, dict):
        return _invalid_response("register", None, outcome)
    try:
        return EventQueueRegistration.model_validate(outcome)
    except ValidationError as e:
        return _invalid_response("register", e, outcome)


class SubscriptionHandle:
    """
    Consumer side of an event subscription.

    Iterate it to receive Event objects (and at most one ZulipError, right
    before the stream ends). Call cancel() to stop it. After iteration ends,
    state tells how it ended: CLOSED, KILLED, TIMED_OUT or FAILED.

    Hand-off is a single slot: while the consumer is busy the loop waits
    instead of buffering.
    """

    def __init__(
        self,
        connection: "Connection",
        registration: EventQueueRegistration | None = None,
        durable: bool = False,
        event_types: Iterable[str] = DEFAULT_EVENT_TYPES,
        apply_markdown: bool = False,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize SubscriptionHandle. Call start() to launch the loop.

        Args:
            connection: Connection used for polling and registration
            registration: Queue to start from; None registers a new one
            durable: Re-register and resume on transient failures
            event_types: Event types for (re-)registration
            apply_markdown: Ask the server for rendered message content
            reconnect_delay: Fixed wait before each re-registration attempt
            sleep: Sleep implementation used for the reconnect wait
        """
        self.connection = connection
        self.durable = durable
        self.event_types = list(event_types)
        self.apply_markdown = apply_markdown
        self.reconnect_delay = reconnect_delay
        self._sleep = sleep

        self._queue_id: str | None = None
        self._last_event_id: int | None = None
        if registration is not None:
            self._queue_id = registration.queue_id
            self._last_event_id = registration.last_event_id

        self._outbox: asyncio.Queue[SubscriptionItem] = asyncio.Queue(maxsize=1)
        # taken off the slot by a reader that was cancelled before returning it
        self._held: SubscriptionItem | None = None
        self._cancellation = Cancellation()
        self._closed = asyncio.Event()
        self._state = SubscriptionState.POLLING
        self._error: ZulipError | None = None
        self._task: asyncio.Task[None] | None = None

    # --- Public surface ---

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def error(self) -> ZulipError | None:
        """The error that ended the subscription, if any."""
        return self._error

    @property
    def queue_id(self) -> str | None:
        return self._queue_id

    @property
    def last_event_id(self) -> int | None:
        return self._last_event_id

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> "SubscriptionHandle":
        if self._task is None:
            self._task = asyncio.create_task(
                self._run(), name="zulip-event-subscription"
            )
        return self

    def cancel(self) -> None:
        """Stop the subscription. Idempotent; cannot be undone."""
        self._cancellation.cancel()

    async def wait_closed(self) -> SubscriptionState:
        await self._closed.wait()
        return self._state

    def __aiter__(self):
        return self

    async def __anext__(self) -> SubscriptionItem:
        """Next forwarded item. Stops once the loop has exited and the slot is empty."""
        while True:
            if self._held is not None:
                item, self._held = self._held, None
                return item
            if not self._outbox.empty():
                return self._outbox.get_nowait()
            if self._closed.is_set():
                raise StopAsyncIteration

            getter = asyncio.ensure_future(self._outbox.get())
            closer = asyncio.ensure_future(self._closed.wait())
            try:
                await asyncio.wait(
                    {getter, closer}, return_when=asyncio.FIRST_COMPLETED
                )
            except asyncio.CancelledError:
                if getter.done() and not getter.cancelled():
                    self._held = getter.result()
                raise
            finally:
                closer.cancel()
                if not getter.done():
                    getter.cancel()

            if getter.done() and not getter.cancelled():
                return getter.result()

    async def __aenter__(self) -> "SubscriptionHandle":
        return self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cancel()
        await self.wait_closed()

    # --- Loop ---

    def _finish(
        self, state: SubscriptionState, error: ZulipError | None = None
    ) -> None:
        self._state = state
        self._error = error
        logger.info(f"Event subscription ended: {state.value}")

    async def _forward(self, item: SubscriptionItem) -> bool:
        """Hand one item to the consumer. False if cancelled while waiting."""
        return await self._cancellation.race(self._outbox.put(item)) is not CANCELLED

    async def _fail(self, error: ZulipError) -> None:
        logger.debug(f"Forwarding error and closing stream: {error}")
        if await self._forward(error):
            self._finish(SubscriptionState.FAILED, error)
        else:
            self._finish(SubscriptionState.KILLED, error)

    async def _run(self) -> None:
        try:
            if self._queue_id is None and not await self._register_initial():
                return
            await self._poll_loop()
        except asyncio.CancelledError:
            self._finish(SubscriptionState.KILLED)
            raise
        except Exception as e:
            logger.error(f"Event subscription crashed: {e}", exc_info=True)
            await self._fail(
                ZulipError(
                    kind=ErrorKind.GENERIC,
                    message=str(e),
                    endpoint="events",
                    cause=e,
                )
            )
        finally:
            self._closed.set()

    def _register(self) -> Awaitable[Outcome]:
        return register(self.connection, self.event_types, self.apply_markdown)

    def _adopt(self, registration: EventQueueRegistration) -> None:
        logger.info(
            f"Using event queue {registration.queue_id}, "
            f"last_event_id={registration.last_event_id}"
        )
        self._queue_id = registration.queue_id
        self._last_event_id = registration.last_event_id

    async def _register_initial(self) -> bool:
        self._state = SubscriptionState.RECONNECTING
        logger.debug("Registering initial event queue")
        outcome = await self._cancellation.race(self._register())

        if outcome is CANCELLED:
            self._finish(SubscriptionState.KILLED)
            return False
        if outcome is None:
            self._finish(SubscriptionState.CLOSED)
            return False
        if isinstance(outcome, ZulipError):
            if outcome.retryable and self.durable:
                return await self._reconnect(outcome)
            await self._fail(outcome)
            return False

        registration = parse_registration(outcome)
        if isinstance(registration, ZulipError):
            await self._fail(registration)
            return False
        self._adopt(registration)
        return True

    async def _reconnect(self, failure: ZulipError) -> bool:
        """Re-register until it works. False if the subscription has to stop."""
        self._state = SubscriptionState.RECONNECTING
        logger.info(f"Connection failed ({failure}), re-registering event queue")

        result = await cancelable_retry(
            self._cancellation,
            self._register,
            delay=self.reconnect_delay,
            sleep=self._sleep,
        )
        if result.killed:
            self._finish(SubscriptionState.KILLED, result.error)
            return False

        registration = parse_registration(result.value)
        if isinstance(registration, ZulipError):
            logger.warning(f"Re-registration returned no usable queue: {registration}")
            self._finish(SubscriptionState.KILLED, registration)
            return False

        self._adopt(registration)
        return True

    async def _poll_loop(self) -> None:
        while True:
            if self._cancellation.is_cancelled:
                logger.debug("Kill signal received")
                self._finish(SubscriptionState.KILLED)
                return

            self._state = SubscriptionState.POLLING
            logger.debug(f"Waiting for new events, last_event_id={self._last_event_id}")
            outcome = await self._cancellation.race(
                get_events(self.connection, self._queue_id, self._last_event_id)
            )

            if outcome is CANCELLED:
                logger.debug("Kill signal received")
                self._finish(SubscriptionState.KILLED)
                return
            if outcome is None:
                self._finish(SubscriptionState.CLOSED)
                return

            batch = outcome if isinstance(outcome, ZulipError) else parse_batch(outcome)

            if isinstance(batch, ZulipError):
                if batch.kind is ErrorKind.TIMEOUT:
                    # The server dropped the queue; only a new registration helps.
                    logger.info(f"Event queue {self._queue_id} timed out")
                    self._finish(SubscriptionState.TIMED_OUT, batch)
                    return
                if batch.retryable and self.durable:
                    if not await self._reconnect(batch):
                        return
                    continue
                await self._fail(batch)
                return

            if not await self._deliver(batch):
                self._finish(SubscriptionState.KILLED)
                return

    async def _deliver(self, batch: EventBatch) -> bool:
        """Forward a batch in order, then move the cursor past it."""
        for event in batch.events:
            if event.is_heartbeat:
                logger.debug("Received heartbeat event")
                continue
            logger.debug(f"Forwarding event {event.id} ({event.type})")
            if not await self._forward(event):
                return False

        max_id = batch.max_id
        if max_id is not None and (
            self._last_event_id is None or max_id > self._last_event_id
        ):
            self._last_event_id = max_id
        return True


def _coerce_registration(
    registration: EventQueueRegistration | Mapping[str, Any] | str,
    last_event_id: int | None,
) -> EventQueueRegistration:
    if isinstance(registration, EventQueueRegistration):
        return registration
    if isinstance(registration, str):
        if last_event_id is None:
            raise ValueError("last_event_id is required when passing a queue id")
        return EventQueueRegistration(
            queue_id=registration, last_event_id=last_event_id
        )
    return EventQueueRegistration.model_validate(dict(registration))


def subscribe_events(
    connection: "Connection",
    registration: EventQueueRegistration | Mapping[str, Any] | str,
    last_event_id: int | None = None,
) -> SubscriptionHandle:
    """
    Poll an already registered queue until it fails, closes or is cancelled.

    Any error, transient or not, is forwarded and ends the subscription.
    Use event_queue() for a subscription that reconnects by itself.

    Args:
        connection: Connection to poll with
        registration: Register response (model or dict), or a queue id
        last_event_id: Cursor, required when registration is a queue id

    Returns:
        Started SubscriptionHandle.
    """
    reg = _coerce_registration(registration, last_event_id)
    logger.debug(f"Starting new event subscription loop on queue {reg.queue_id}")
    return SubscriptionHandle(connection, registration=reg, durable=False).start()


def event_queue(
    connection: "Connection",
    event_types: Iterable[str] = DEFAULT_EVENT_TYPES,
    apply_markdown: bool = False,
    reconnect_delay: float = RECONNECT_DELAY_SECONDS,
    registration: EventQueueRegistration | Mapping[str, Any] | None = None,
) -> SubscriptionHandle:
    """
    Create a durable event subscription.

    Registers a queue (unless one is given) and keeps polling it. On
    transient failures the queue is re-registered every reconnect_delay
    seconds until it works or the handle is cancelled.

    Returns:
        Started SubscriptionHandle.
    """
    logger.debug("Creating new durable event queue")
    reg = (
        _coerce_registration(registration, None) if registration is not None else None
    )
    return SubscriptionHandle(
        connection,
        registration=reg,
        durable=True,
        event_types=event_types,
        apply_markdown=apply_markdown,
        reconnect_delay=reconnect_delay,
    ).start()
