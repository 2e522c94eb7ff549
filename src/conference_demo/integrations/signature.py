"""Telnyx webhook signature verification.

Telnyx signs every webhook with Ed25519. The signed message is the
`telnyx-timestamp` header, a pipe, and the raw request body. The signature
arrives base64-encoded in the `telnyx-signature-ed25519` header and is
checked against the account public key (also base64) from the portal.
"""

import base64
import binascii
import logging
import time
from typing import Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from ..errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "telnyx-signature-ed25519"
TIMESTAMP_HEADER = "telnyx-timestamp"

DEFAULT_TOLERANCE = 300


def load_verify_key(public_key: str) -> VerifyKey:
    """Build a verify key from the base64 public key shown in the portal."""
    try:
        return VerifyKey(base64.b64decode(public_key))
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationError("TELNYX_PUBLIC_KEY is not a valid base64 Ed25519 public key") from exc


def verify(
    body: bytes,
    signature: Optional[str],
    timestamp: Optional[str],
    verify_key: VerifyKey,
    tolerance: int = DEFAULT_TOLERANCE,
    now: Optional[float] = None,
) -> None:
    """Verify a webhook delivery or raise `AuthenticationError`.

    `tolerance` bounds the age of the timestamp in seconds; pass 0 or a
    negative value to skip the freshness check.
    """
    if not signature or not timestamp:
        raise AuthenticationError("Missing webhook signature or timestamp header")

    try:
        sent_at = int(timestamp)
    except ValueError as exc:
        raise AuthenticationError(f"Malformed webhook timestamp: {timestamp!r}") from exc

    if tolerance > 0:
        current = time.time() if now is None else now
        if abs(current - sent_at) > tolerance:
            raise AuthenticationError("Webhook timestamp outside the tolerance zone")

    try:
        raw_signature = base64.b64decode(signature, validate=True)
    except binascii.Error as exc:
        raise AuthenticationError("Webhook signature is not valid base64") from exc

    message = timestamp.encode() + b"|" + body
    try:
        verify_key.verify(message, raw_signature)
    except (BadSignatureError, ValueError) as exc:
        logger.warning("Rejected webhook with bad signature (timestamp=%s)", timestamp)
        raise AuthenticationError("Webhook signature verification failed") from exc
