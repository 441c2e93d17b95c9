"""
Web-push subscription routes.

Endpoints:
- GET  /api/push/vapid-public-key - Key the browser needs to subscribe
- POST /api/push/subscribe - Register a browser push endpoint
- POST /api/push/unsubscribe - Stop pushing to an endpoint
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from core.config import get_vapid_settings
from core.database import get_transaction
from core.queries.preferences import deactivate_push_subscription, save_push_subscription
from web_api.auth import get_current_user

router = APIRouter(prefix="/api/push", tags=["push"])


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscription(BaseModel):
    """Shape of the browser's PushSubscription.toJSON()."""

    endpoint: str
    keys: SubscriptionKeys


class Unsubscribe(BaseModel):
    endpoint: str


@router.get("/vapid-public-key")
async def vapid_public_key() -> dict[str, str]:
    public_key = get_vapid_settings()["public_key"]
    if not public_key:
        raise HTTPException(503, "Web push is not configured")
    return {"publicKey": public_key}


@router.post("/subscribe")
async def subscribe(
    subscription: PushSubscription,
    request: Request,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    async with get_transaction() as conn:
        row = await save_push_subscription(
            conn,
            user["user_id"],
            subscription.endpoint,
            subscription.keys.p256dh,
            subscription.keys.auth,
            request.headers.get("user-agent"),
        )
    return {"status": "subscribed", "subscription_id": row["subscription_id"]}


@router.post("/unsubscribe")
async def unsubscribe(
    body: Unsubscribe,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    async with get_transaction() as conn:
        removed = await deactivate_push_subscription(conn, body.endpoint, user["user_id"])
    return {"status": "unsubscribed", "removed": removed}
