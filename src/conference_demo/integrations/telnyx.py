"""Minimal Telnyx Call Control v2 client.

Wraps the handful of REST actions the conference demo needs. Every method
returns the decoded `data` object of the reply and raises
`CallControlError` for transport failures and non-2xx responses. There is
no retry policy; command outcomes are observed through later webhooks.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import CallControlError

logger = logging.getLogger(__name__)


class CallControlClient:
    """Thin async wrapper over the Telnyx call and conference endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.telnyx.com/v2",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.error("Telnyx %s %s failed: %s", method, path, exc)
            raise CallControlError(f"Telnyx request {method} {path} failed: {exc}") from exc

        if resp.status_code >= 300:
            logger.error("Telnyx %s %s returned %s - %s", method, path, resp.status_code, resp.text)
            raise CallControlError(
                f"Telnyx request {method} {path} returned {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
            )

        if not resp.content:
            return {}
        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error("Telnyx %s %s returned a non-JSON body: %s", method, path, resp.text)
            raise CallControlError(
                f"Telnyx request {method} {path} returned a non-JSON body",
                status_code=resp.status_code,
                body=resp.text,
            ) from exc
        if not isinstance(payload, dict):
            logger.error("Telnyx %s %s returned unexpected JSON: %s", method, path, resp.text)
            raise CallControlError(
                f"Telnyx request {method} {path} returned unexpected JSON",
                status_code=resp.status_code,
                body=resp.text,
            )
        return payload.get("data", {})

    # -----------------------------------------------------------------------
    # Call commands
    # -----------------------------------------------------------------------

    async def answer(self, call_control_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/calls/{call_control_id}/actions/answer", json={})

    async def speak(self, call_control_id: str, text: str, voice: str, language: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/calls/{call_control_id}/actions/speak",
            json={"payload": text, "voice": voice, "language": language},
        )

    async def dial(self, to: str, from_: str, connection_id: str) -> Dict[str, Any]:
        """Originate an outbound call."""
        return await self._request(
            "POST",
            "/calls",
            json={"to": to, "from": from_, "connection_id": connection_id},
        )

    # -----------------------------------------------------------------------
    # Conference commands
    # -----------------------------------------------------------------------

    async def create_conference(self, call_control_id: str, name: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/conferences",
            json={"call_control_id": call_control_id, "name": name},
        )

    async def list_conferences(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/conferences") or []

    async def join(self, conference_id: str, call_control_id: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/conferences/{conference_id}/actions/join",
            json={"call_control_id": call_control_id},
        )

    async def mute(self, conference_id: str, call_control_ids: List[str]) -> Dict[str, Any]:
        return await self._participants_action(conference_id, "mute", call_control_ids)

    async def unmute(self, conference_id: str, call_control_ids: List[str]) -> Dict[str, Any]:
        return await self._participants_action(conference_id, "unmute", call_control_ids)

    async def hold(self, conference_id: str, call_control_ids: List[str], audio_url: str) -> Dict[str, Any]:
        return await self._participants_action(conference_id, "hold", call_control_ids, audio_url=audio_url)

    async def unhold(self, conference_id: str, call_control_ids: List[str]) -> Dict[str, Any]:
        return await self._participants_action(conference_id, "unhold", call_control_ids)

    async def _participants_action(
        self, conference_id: str, action: str, call_control_ids: List[str], **extra: Any
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"call_control_ids": list(call_control_ids)}
        body.update(extra)
        return await self._request("POST", f"/conferences/{conference_id}/actions/{action}", json=body)
