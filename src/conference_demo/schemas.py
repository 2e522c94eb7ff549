"""Pydantic schemas for webhook payloads and responses."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Webhook event types the correlator knows how to route."""

    CALL_INITIATED = "call.initiated"
    CALL_ANSWERED = "call.answered"
    CALL_HANGUP = "call.hangup"
    PARTICIPANT_JOINED = "conference.participant.joined"
    PARTICIPANT_LEFT = "conference.participant.left"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, event_type: Optional[str]) -> "EventKind":
        try:
            return cls(event_type)
        except ValueError:
            return cls.UNKNOWN


class EventPayload(BaseModel):
    """Call identifiers carried by call and conference events.

    Telnyx sends many more fields than these; they are kept as extras so
    the full payload still shows up in debug logs.
    """

    model_config = ConfigDict(extra="allow")

    call_control_id: Optional[str] = None
    call_leg_id: Optional[str] = None
    conference_id: Optional[str] = None


class WebhookEvent(BaseModel):
    """The `data` object of a Telnyx v2 webhook delivery."""

    model_config = ConfigDict(extra="allow")

    record_type: str
    id: str
    event_type: Optional[str] = None
    occurred_at: Optional[str] = None
    payload: EventPayload = Field(default_factory=EventPayload)

    @property
    def kind(self) -> EventKind:
        return EventKind.parse(self.event_type)


class WebhookEnvelope(BaseModel):
    data: WebhookEvent
    meta: Optional[Dict[str, Any]] = None


class WebhookAck(BaseModel):
    status: str = "ok"


class CommandResult(BaseModel):
    """Response body of the operator command endpoints."""

    command: str
    call_control_ids: list[str] = Field(default_factory=list)
    result: Optional[Dict[str, Any]] = None
