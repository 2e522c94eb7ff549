"""Webhook event correlation for the conference demo.

The correlator owns the only mutable state of the service: the calls the
provider told us about, the conference created for them, and the ids of
events already processed. Every delivery goes through `handle`, which runs
under a single lock so that duplicate detection and conference creation on
the first answered call cannot interleave.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from ..errors import CallControlError
from ..integrations.telnyx import CallControlClient
from ..schemas import EventKind, WebhookEvent
from .dedupe import SeenEvents

logger = logging.getLogger(__name__)

JOIN_ANNOUNCEMENT = "joining conference"


@dataclass
class Call:
    call_control_id: str
    call_leg_id: Optional[str] = None
    answered: bool = False


@dataclass
class Conference:
    id: str
    name: str
    # Tracked calls placed in the conference; pruned on hangup
    members: List[str] = field(default_factory=list)


def random_conference_name(prefix: str) -> str:
    return f"{prefix}{random.randint(1000, 9999)}"


class EventCorrelator:
    """Routes verified webhook events to call/conference bookkeeping."""

    def __init__(
        self,
        client: CallControlClient,
        voice: str = "female",
        language: str = "en-GB",
        conference_name_prefix: str = "demo-conference",
        seen: Optional[SeenEvents] = None,
    ):
        self._client = client
        self._voice = voice
        self._language = language
        self._conference_name_prefix = conference_name_prefix
        self._seen = seen if seen is not None else SeenEvents()
        self._lock = asyncio.Lock()

        self.calls: List[Call] = []
        self.conference: Optional[Conference] = None

        self._handlers: Dict[EventKind, Callable[[WebhookEvent], Awaitable[None]]] = {
            EventKind.CALL_INITIATED: self._on_call_initiated,
            EventKind.CALL_ANSWERED: self._on_call_answered,
            EventKind.CALL_HANGUP: self._on_call_hangup,
            EventKind.PARTICIPANT_JOINED: self._on_participant_joined,
            EventKind.PARTICIPANT_LEFT: self._on_participant_left,
            EventKind.UNKNOWN: self._on_unknown,
        }

    def call_control_ids(self) -> List[str]:
        return [call.call_control_id for call in self.calls]

    def find_call(self, call_control_id: Optional[str]) -> Optional[Call]:
        for call in self.calls:
            if call.call_control_id == call_control_id:
                return call
        return None

    async def handle(self, event: WebhookEvent) -> bool:
        """Process one verified event.

        Returns True when the event was dispatched, False when it was
        skipped as a non-event record or a duplicate delivery.
        """
        if event.record_type != "event":
            logger.debug("Ignoring webhook record of type %s", event.record_type)
            return False

        async with self._lock:
            if not self._seen.add(event.id):
                logger.debug("Duplicate webhook event %s ignored", event.id)
                return False

            logger.info("New webhook event: %s (%s)", event.event_type, event.id)
            logger.debug("%s", json.dumps(event.model_dump(), indent=2, default=str))

            await self._handlers[event.kind](event)
            return True

    # -----------------------------------------------------------------------
    # Event handlers (called with the lock held)
    # -----------------------------------------------------------------------

    async def _on_call_initiated(self, event: WebhookEvent) -> None:
        call_control_id = event.payload.call_control_id
        if not call_control_id:
            logger.warning("call.initiated %s carries no call_control_id", event.id)
            return

        call = Call(call_control_id=call_control_id, call_leg_id=event.payload.call_leg_id)
        self.calls.append(call)
        logger.info("Call initiated: %s", call)

        # Answering triggers a call.answered webhook, handled below
        try:
            await self._client.answer(call.call_control_id)
        except CallControlError:
            logger.exception("Failed to answer call %s", call.call_control_id)

    async def _on_call_answered(self, event: WebhookEvent) -> None:
        call = self.find_call(event.payload.call_control_id)
        if call is None:
            logger.warning(
                "call.answered %s for untracked call %s; ignoring",
                event.id,
                event.payload.call_control_id,
            )
            return
        if call.answered:
            # A second answered event under a new id; the call is already announced and placed
            logger.info("Call %s already answered; ignoring event %s", call.call_control_id, event.id)
            return

        call.answered = True
        try:
            await self._client.speak(call.call_control_id, JOIN_ANNOUNCEMENT, voice=self._voice, language=self._language)
        except CallControlError:
            logger.exception("Failed to speak to call %s", call.call_control_id)

        logger.info("Call answered, adding to conference: %s", call.call_control_id)
        if self.conference is None:
            await self._create_conference(call)
        else:
            try:
                await self._client.join(self.conference.id, call.call_control_id)
            except CallControlError:
                logger.exception("Failed to add call %s to conference %s", call.call_control_id, self.conference.id)
                return
            self.conference.members.append(call.call_control_id)

    async def _create_conference(self, call: Call) -> None:
        name = random_conference_name(self._conference_name_prefix)
        try:
            data = await self._client.create_conference(call.call_control_id, name)
        except CallControlError:
            # Left unset so the next answered call tries again
            logger.exception("Failed to create conference %s", name)
            return

        conference_id = data.get("id") if isinstance(data, dict) else None
        if not conference_id:
            logger.error("Conference %s created without an id in the reply: %s", name, data)
            return

        self.conference = Conference(
            id=conference_id,
            name=data.get("name") or name,
            members=[call.call_control_id],
        )
        logger.info("Conference created: %s", self.conference)

    async def _on_call_hangup(self, event: WebhookEvent) -> None:
        leg_id = event.payload.call_leg_id
        if not leg_id:
            logger.warning("call.hangup %s carries no call_leg_id", event.id)
            return
        ended = {call.call_control_id for call in self.calls if call.call_leg_id == leg_id}
        self.calls = [call for call in self.calls if call.call_leg_id != leg_id]
        if self.conference is not None and ended:
            self.conference.members = [m for m in self.conference.members if m not in ended]
        logger.info("Call ended: leg %s (%d calls active)", leg_id, len(self.calls))

    async def _on_participant_joined(self, event: WebhookEvent) -> None:
        logger.info("Participant joined: %s", event.payload.call_control_id)

    async def _on_participant_left(self, event: WebhookEvent) -> None:
        logger.info("Participant left: %s", event.payload.call_control_id)

    async def _on_unknown(self, event: WebhookEvent) -> None:
        logger.debug("Unhandled event type %s", event.event_type)
