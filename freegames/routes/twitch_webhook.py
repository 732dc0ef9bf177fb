"""Twitch EventSub webhook handler.

Endpoints:
    POST /api/twitch-webhook -- Receive EventSub verification challenges,
                                notifications and revocations.

Only channel-point redemptions of the configured reward credit a ticket.
Notifications are always acknowledged with 204 so Twitch does not retry
deliveries that failed for application reasons.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse

from freegames.auth.twitch_signature import (
    MESSAGE_ID_HEADER,
    MESSAGE_SIGNATURE_HEADER,
    MESSAGE_TIMESTAMP_HEADER,
    MESSAGE_TYPE_HEADER,
    verify_signature,
)
from freegames.config import settings
from freegames.dal.database import get_database
from freegames.dal.users_dal import UserDAL
from freegames.models.common import MessageType, SubscriptionType
from freegames.services.ticket_service import TicketService

logger = logging.getLogger("freegames.routes.twitch_webhook")

router = APIRouter(tags=["Twitch Webhook"])


def _get_service() -> TicketService:
    """Build a TicketService wired to the current database."""
    return TicketService(UserDAL(get_database()))


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


async def _handle_notification(payload: dict[str, Any]) -> None:
    """Credit a ticket if the notification is a matching redemption."""
    event_type = _as_dict(payload.get("subscription")).get("type")
    if event_type != SubscriptionType.REWARD_REDEMPTION_ADD:
        logger.debug("Ignoring notification of type %s", event_type)
        return

    redemption = _as_dict(payload.get("event"))
    reward_title = _as_dict(redemption.get("reward")).get("title")
    username = redemption.get("user_login")
    logger.info(
        'Redemption received: "%s" by %s',
        reward_title,
        redemption.get("user_name") or username,
    )

    if reward_title != settings.REWARD_TITLE:
        return
    if not username or not isinstance(username, str):
        logger.warning("Matching redemption without user_login, ignoring")
        return

    logger.info("Processing ticket for user: %s", username)
    try:
        result = await _get_service().add_ticket(username)
    except Exception:
        logger.exception("Error adding ticket for %s", username)
        return

    if result.credited:
        logger.info("Successfully added ticket for %s", username)
    else:
        logger.info("Could not add ticket for %s: %s", username, result.reason)


@router.post(
    "/twitch-webhook",
    summary="Twitch EventSub callback",
    responses={
        200: {"description": "Verification challenge echoed back"},
        204: {"description": "Notification or revocation accepted"},
        403: {"description": "Invalid signature"},
        500: {"description": "Server configuration error"},
    },
)
async def twitch_webhook(request: Request) -> Response:
    """Handle one EventSub delivery."""
    secret = settings.TWITCH_WEBHOOK_SECRET
    if not secret:
        logger.error("TWITCH_WEBHOOK_SECRET not configured")
        return PlainTextResponse("Server configuration error", status_code=500)
    if not settings.MONGO_URL:
        logger.error("MONGO_URL not configured")
        return PlainTextResponse("Server configuration error", status_code=500)

    body = await request.body()
    headers = request.headers
    message_id = headers.get(MESSAGE_ID_HEADER)
    timestamp = headers.get(MESSAGE_TIMESTAMP_HEADER)
    signature = headers.get(MESSAGE_SIGNATURE_HEADER)
    message_type = headers.get(MESSAGE_TYPE_HEADER)

    if signature is None:
        if settings.TWITCH_REQUIRE_SIGNATURE:
            logger.error("Missing signature header on message %s", message_id)
            return PlainTextResponse("Invalid signature", status_code=403)
        logger.warning("Unsigned message %s accepted", message_id)
    elif not verify_signature(secret, message_id, timestamp, body, signature):
        logger.error("Invalid signature on message %s", message_id)
        return PlainTextResponse("Invalid signature", status_code=403)

    try:
        payload = json.loads(body)
    except ValueError:
        logger.warning("Malformed JSON body on message %s", message_id)
        return PlainTextResponse("Invalid JSON", status_code=400)
    if not isinstance(payload, dict):
        return PlainTextResponse("Invalid JSON", status_code=400)

    if message_type == MessageType.VERIFICATION:
        logger.info("Responding to Twitch verification challenge")
        return PlainTextResponse(str(payload.get("challenge") or ""), status_code=200)

    if message_type == MessageType.REVOCATION:
        subscription = _as_dict(payload.get("subscription"))
        logger.warning(
            "Subscription revoked: %s (%s)",
            subscription.get("type"),
            subscription.get("status"),
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    if message_type == MessageType.NOTIFICATION:
        await _handle_notification(payload)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return PlainTextResponse("OK", status_code=200)
