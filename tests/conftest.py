import asyncio
import base64
import json
import time
from typing import Any, Dict, List, Optional, Tuple

import pytest
from nacl.signing import SigningKey

from conference_demo.config import Settings
from conference_demo.errors import CallControlError


class FakeCallControl:
    """Records every command instead of talking to Telnyx."""

    def __init__(self):
        self.commands: List[Tuple[str, tuple]] = []
        self.failing: set[str] = set()
        self.conference_count = 0
        self.closed = False

    def names(self) -> List[str]:
        return [name for name, _ in self.commands]

    def _record(self, name: str, *args: Any) -> None:
        self.commands.append((name, args))
        if name in self.failing:
            raise CallControlError(f"{name} failed", status_code=422, body="{}")

    async def aclose(self) -> None:
        self.closed = True

    async def answer(self, call_control_id: str) -> Dict[str, Any]:
        self._record("answer", call_control_id)
        await asyncio.sleep(0)
        return {}

    async def speak(self, call_control_id: str, text: str, voice: str, language: str) -> Dict[str, Any]:
        self._record("speak", call_control_id, text, voice, language)
        return {}

    async def dial(self, to: str, from_: str, connection_id: str) -> Dict[str, Any]:
        self._record("dial", to, from_, connection_id)
        return {"call_control_id": "outbound-1"}

    async def create_conference(self, call_control_id: str, name: str) -> Dict[str, Any]:
        self._record("create_conference", call_control_id, name)
        # Yield so concurrent deliveries get a chance to interleave
        await asyncio.sleep(0)
        self.conference_count += 1
        return {"id": f"conf-{self.conference_count}", "name": name}

    async def list_conferences(self) -> List[Dict[str, Any]]:
        self._record("list_conferences")
        return [{"id": "conf-1", "status": "in_progress"}]

    async def join(self, conference_id: str, call_control_id: str) -> Dict[str, Any]:
        self._record("join", conference_id, call_control_id)
        return {}

    async def mute(self, conference_id: str, call_control_ids: List[str]) -> Dict[str, Any]:
        self._record("mute", conference_id, list(call_control_ids))
        return {"result": "ok"}

    async def unmute(self, conference_id: str, call_control_ids: List[str]) -> Dict[str, Any]:
        self._record("unmute", conference_id, list(call_control_ids))
        return {"result": "ok"}

    async def hold(self, conference_id: str, call_control_ids: List[str], audio_url: str) -> Dict[str, Any]:
        self._record("hold", conference_id, list(call_control_ids), audio_url)
        return {"result": "ok"}

    async def unhold(self, conference_id: str, call_control_ids: List[str]) -> Dict[str, Any]:
        self._record("unhold", conference_id, list(call_control_ids))
        return {"result": "ok"}


def make_event(
    event_id: str,
    event_type: str,
    call_control_id: Optional[str] = None,
    call_leg_id: Optional[str] = None,
    record_type: str = "event",
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if call_control_id is not None:
        payload["call_control_id"] = call_control_id
    if call_leg_id is not None:
        payload["call_leg_id"] = call_leg_id
    return {
        "data": {
            "record_type": record_type,
            "event_type": event_type,
            "id": event_id,
            "occurred_at": "2026-10-18T12:00:00.000000Z",
            "payload": payload,
        },
        "meta": {"attempt": 1, "delivered_to": "http://localhost:9090/webhook"},
    }


@pytest.fixture
def fake_client() -> FakeCallControl:
    return FakeCallControl()


@pytest.fixture
def signing_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture
def public_key_b64(signing_key: SigningKey) -> str:
    return base64.b64encode(bytes(signing_key.verify_key)).decode()


@pytest.fixture
def sign(signing_key: SigningKey):
    """Return headers signing `body` the way Telnyx does."""

    def _sign(body: bytes, timestamp: Optional[int] = None) -> Dict[str, str]:
        ts = str(int(time.time()) if timestamp is None else timestamp)
        sig = signing_key.sign(ts.encode() + b"|" + body).signature
        return {
            "telnyx-signature-ed25519": base64.b64encode(sig).decode(),
            "telnyx-timestamp": ts,
            "content-type": "application/json",
        }

    return _sign


@pytest.fixture
def settings(public_key_b64: str) -> Settings:
    return Settings(
        telnyx_api_key="KEY_TEST",
        telnyx_public_key=public_key_b64,
        phone_number="+15550001111",
        connection_id="conn-123",
        waiting_audio_url="https://example.com/hold.ogg",
    )


@pytest.fixture
def encode():
    def _encode(event: Dict[str, Any]) -> bytes:
        return json.dumps(event).encode()

    return _encode


@pytest.fixture
def event():
    """Factory for webhook envelopes; see `make_event`."""
    return make_event
