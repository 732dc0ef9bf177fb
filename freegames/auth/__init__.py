"""Webhook authentication utilities."""

from freegames.auth.twitch_signature import (
    MESSAGE_ID_HEADER,
    MESSAGE_SIGNATURE_HEADER,
    MESSAGE_TIMESTAMP_HEADER,
    MESSAGE_TYPE_HEADER,
    compute_signature,
    verify_signature,
)

__all__ = [
    "MESSAGE_ID_HEADER",
    "MESSAGE_SIGNATURE_HEADER",
    "MESSAGE_TIMESTAMP_HEADER",
    "MESSAGE_TYPE_HEADER",
    "compute_signature",
    "verify_signature",
]
