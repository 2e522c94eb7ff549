"""Webhook endpoint for Telnyx call and conference events.

Deliveries are verified against the account public key before anything in
the body is trusted; only verified events reach the correlator.
"""

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from ..errors import AuthenticationError
from ..integrations import signature
from ..schemas import WebhookAck, WebhookEnvelope

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook", response_model=WebhookAck)
async def webhook(request: Request) -> WebhookAck:
    """Receive a Telnyx webhook and hand the event to the correlator."""
    body = await request.body()

    verify_key = request.app.state.verify_key
    if verify_key is None:
        raise AuthenticationError("Telnyx public key is not configured")

    signature.verify(
        body,
        request.headers.get(signature.SIGNATURE_HEADER),
        request.headers.get(signature.TIMESTAMP_HEADER),
        verify_key,
        tolerance=request.app.state.settings.webhook_tolerance_seconds,
    )

    try:
        envelope = WebhookEnvelope.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("Webhook body failed validation: %s", exc.errors())
        raise HTTPException(status_code=400, detail="Malformed webhook body")

    await request.app.state.correlator.handle(envelope.data)
    return WebhookAck()
