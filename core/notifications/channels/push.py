"""Web-push delivery using VAPID (pywebpush)."""

import asyncio
import json
import logging

from pywebpush import WebPushException, webpush

from core.config import get_vapid_settings
from core.enums import DeliveryOutcome

logger = logging.getLogger(__name__)

# Push services answer these when a subscription no longer exists
GONE_STATUS_CODES = (404, 410)


def build_payload(notification: dict) -> dict:
    """Payload understood by the service worker's push handler."""
    return {
        "title": notification["title"],
        "body": notification["message"],
        "icon": notification.get("icon_url") or "/favicon.ico",
        "badge": notification.get("badge_url") or "/favicon.ico",
        "tag": notification.get("tag") or f"notification-{notification.get('notification_id')}",
        "requireInteraction": bool(notification.get("require_interaction")),
        "data": {
            "notificationId": notification.get("notification_id"),
            "type": notification.get("type"),
            "priority": notification.get("priority"),
            "url": notification.get("action_url") or "/",
        },
    }


def subscription_info(subscription: dict) -> dict:
    return {
        "endpoint": subscription["endpoint"],
        "keys": {
            "p256dh": subscription["p256dh_key"],
            "auth": subscription["auth_key"],
        },
    }


def send_web_push(subscription: dict, payload: dict) -> bool:
    """
    Push one payload to one browser endpoint.

    Raises:
        WebPushException: If the push service rejects the message
    """
    settings = get_vapid_settings()
    webpush(
        subscription_info=subscription_info(subscription),
        data=json.dumps(payload),
        vapid_private_key=settings["private_key"],
        vapid_claims={"sub": f"mailto:{settings['email']}"},
    )
    return True


async def deliver(notification: dict, recipient: dict | None, directory):
    """
    Push channel entry point used by the dispatcher.

    Succeeds if at least one of the recipient's active subscriptions accepted
    the message. Endpoints the push service reports gone are deactivated.
    """
    settings = get_vapid_settings()
    if not settings["public_key"] or not settings["private_key"]:
        logger.warning("Web push not configured (VAPID keys not set)")
        return False

    subscriptions = await directory.get_push_subscriptions(notification["recipient_id"])
    if not subscriptions:
        return DeliveryOutcome.no_address

    payload = build_payload(notification)
    delivered = 0
    for subscription in subscriptions:
        try:
            await asyncio.to_thread(send_web_push, subscription, payload)
            delivered += 1
        except WebPushException as e:
            status = getattr(e.response, "status_code", None)
            if status in GONE_STATUS_CODES:
                logger.info(f"Push endpoint gone ({status}), deactivating it")
                await directory.deactivate_push_subscription(subscription["endpoint"])
            else:
                logger.warning(
                    f"Push to recipient {notification['recipient_id']} failed: {e}"
                )

    return delivered > 0
