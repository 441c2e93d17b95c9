"""SMS delivery through the Twilio REST API."""

import logging

import httpx

from core.config import get_twilio_settings
from core.enums import DeliveryOutcome
from core.notifications.templates import get_message

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

# Keep messages to a single concatenated SMS
MAX_SMS_LENGTH = 320


def is_configured() -> bool:
    settings = get_twilio_settings()
    return all(settings.values())


def build_sms(notification: dict) -> str:
    body = get_message(
        "sms",
        "body",
        {"title": notification["title"], "message": notification["message"]},
    )
    if len(body) > MAX_SMS_LENGTH:
        body = body[: MAX_SMS_LENGTH - 3].rstrip() + "..."
    return body


async def send_sms(to_number: str, body: str) -> bool:
    """
    Send one text message.

    Returns:
        True if Twilio accepted the message, False otherwise
    """
    settings = get_twilio_settings()
    if not all(settings.values()):
        logger.warning("Twilio not configured (TWILIO_* variables not set)")
        return False

    url = TWILIO_MESSAGES_URL.format(sid=settings["account_sid"])
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                url,
                auth=(settings["account_sid"], settings["auth_token"]),
                data={"To": to_number, "From": settings["from_number"], "Body": body},
            )
    except httpx.HTTPError as e:
        logger.error(f"Failed to send SMS to {to_number}: {e}")
        return False

    if response.status_code not in (200, 201):
        logger.error(
            f"Twilio rejected SMS to {to_number}: {response.status_code} {response.text}"
        )
        return False
    return True


async def deliver(notification: dict, recipient: dict | None, directory=None):
    """SMS channel entry point used by the dispatcher."""
    if not recipient or not recipient.get("phone"):
        return DeliveryOutcome.no_address
    return await send_sms(recipient["phone"], build_sms(notification))
