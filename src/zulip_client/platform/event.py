"""
Event-queue payloads.

Parsed with Pydantic so malformed server responses fail fast. Extra fields
are kept: every event type carries its own payload keys (message, op, ...).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

HEARTBEAT = "heartbeat"


class Event(BaseModel):
    """One entry of the events endpoint's ``events`` list."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: int
    type: str

    @property
    def is_heartbeat(self) -> bool:
        return self.type == HEARTBEAT

    @property
    def payload(self) -> dict[str, Any]:
        """Everything except id and type."""
        return dict(self.model_extra or {})


class EventBatch(BaseModel):
    """Successful response of the events endpoint."""

    model_config = ConfigDict(extra="allow")

    events: list[Event] = []

    @property
    def max_id(self) -> Optional[int]:
        if not self.events:
            return None
        return max(event.id for event in self.events)


class EventQueueRegistration(BaseModel):
    """Response of the register endpoint."""

    model_config = ConfigDict(extra="allow", frozen=True)

    queue_id: str
    last_event_id: int
    max_message_id: Optional[int] = None
