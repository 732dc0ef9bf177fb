"""Twitch EventSub webhook signature verification.

Twitch signs each delivery with HMAC-SHA256 over the concatenation of the
message id, the message timestamp and the raw request body, keyed by the
secret given when the subscription was created.
"""

import hashlib
import hmac
from typing import Optional

# Request headers set by Twitch on every EventSub delivery (lower-cased,
# as Starlette exposes them).
MESSAGE_ID_HEADER = "twitch-eventsub-message-id"
MESSAGE_TIMESTAMP_HEADER = "twitch-eventsub-message-timestamp"
MESSAGE_SIGNATURE_HEADER = "twitch-eventsub-message-signature"
MESSAGE_TYPE_HEADER = "twitch-eventsub-message-type"

SIGNATURE_PREFIX = "sha256="


def compute_signature(
    secret: str,
    message_id: Optional[str],
    timestamp: Optional[str],
    body: bytes,
) -> str:
    """Return the ``sha256=<hex>`` signature Twitch would send."""
    message = (message_id or "").encode() + (timestamp or "").encode() + body
    digest = hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(
    secret: str,
    message_id: Optional[str],
    timestamp: Optional[str],
    body: bytes,
    signature: str,
) -> bool:
    """Constant-time check of a delivery's signature header."""
    expected = compute_signature(secret, message_id, timestamp, body)
    return hmac.compare_digest(expected.encode(), signature.encode())
