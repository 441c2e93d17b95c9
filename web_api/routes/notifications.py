"""
Notification inbox routes.

Endpoints:
- GET    /api/notifications - Paged list of the current user's notifications
- POST   /api/notifications - Send a notification now (admin only)
- GET    /api/notifications/unread-count - Unread badge count
- PUT    /api/notifications/read-all - Mark everything read
- GET    /api/notifications/preferences - Channel preferences
- PUT    /api/notifications/preferences - Update channel preferences
- POST   /api/notifications/{id}/read - Mark one read (PUT also accepted)
- DELETE /api/notifications/{id} - Delete one
"""

import math
from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from core.database import get_connection, get_transaction
from core.notifications.preferences import preferences_from_row, preferences_to_columns
from core.notifications.types import InvalidNotificationError, NotificationDraft, SendOptions
from core.queries.notifications import (
    count_unread,
    delete_notification,
    list_notifications,
    mark_all_read,
    mark_read,
)
from core.queries.preferences import get_preferences, upsert_preferences
from core.timezone import utc_now
from web_api.auth import get_current_user

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class EmailPreferences(BaseModel):
    enabled: bool | None = None
    meeting_scheduled: bool | None = None
    meeting_reminders: bool | None = None
    meeting_changes: bool | None = None
    instant_calls: bool | None = None
    system_alerts: bool | None = None


class SmsPreferences(BaseModel):
    enabled: bool | None = None
    urgent_reminders: bool | None = None
    meeting_changes: bool | None = None
    system_alerts: bool | None = None


class PushPreferences(EmailPreferences):
    pass


class PreferencesUpdate(BaseModel):
    """Partial update; omitted sections and flags keep their current value."""

    email: EmailPreferences | None = None
    sms: SmsPreferences | None = None
    push: PushPreferences | None = None


class SendOptionsBody(BaseModel):
    persistent: bool = True
    auto_delete_after: datetime | None = None
    require_interaction: bool = False
    action_url: str | None = None
    icon_url: str | None = None
    badge_url: str | None = None
    tag: str | None = None


class NotificationCreate(BaseModel):
    """Tags are plain strings here; unknown values are rejected with a 400."""

    recipient_id: int
    recipient_role: str
    title: str
    message: str
    type: str = "system"
    priority: str = "medium"
    metadata: dict[str, Any] = {}
    channels: list[str] | None = None
    options: SendOptionsBody | None = None


def _notification_service(request: Request):
    service = getattr(request.app.state, "notifications", None)
    if service is None:
        raise HTTPException(503, "Notification service is not running")
    return service


def _invalidate_cached_preferences(request: Request, user_id: int) -> None:
    service = getattr(request.app.state, "notifications", None)
    if service is not None:
        service.preferences.invalidate(user_id)


@router.get("")
@router.get("/")
async def get_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Literal["all", "read", "unread"] = "all",
    priority: Literal["low", "medium", "high", "urgent"] | None = None,
    type: str | None = None,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """List delivered notifications, newest first."""
    async with get_connection() as conn:
        rows, total = await list_notifications(
            conn,
            user["user_id"],
            user["role"],
            status=status,
            priority=priority,
            notification_type=type,
            limit=limit,
            offset=(page - 1) * limit,
        )
        unread = await count_unread(conn, user["user_id"], user["role"])

    return {
        "notifications": rows,
        "unread_count": unread,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


@router.post("")
@router.post("/")
async def create_notification(
    body: NotificationCreate,
    request: Request,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """Store a notification and deliver it on the requested channels (admin only)."""
    if user["role"] != "admin":
        raise HTTPException(403, "Admin access required")

    service = _notification_service(request)
    draft = NotificationDraft(
        recipient_id=body.recipient_id,
        recipient_role=body.recipient_role,
        title=body.title,
        message=body.message,
        type=body.type,
        priority=body.priority,
        metadata=body.metadata,
    )
    options = SendOptions(**body.options.model_dump()) if body.options else None
    try:
        row = await service.dispatcher.send(draft, body.channels, options)
    except InvalidNotificationError as e:
        raise HTTPException(400, str(e))

    return {"status": "sent", "notification": row}


@router.get("/unread-count")
async def get_unread_count(user: dict = Depends(get_current_user)) -> dict[str, int]:
    async with get_connection() as conn:
        unread = await count_unread(conn, user["user_id"], user["role"])
    return {"unread_count": unread}


@router.put("/read-all")
async def read_all(user: dict = Depends(get_current_user)) -> dict[str, Any]:
    async with get_transaction() as conn:
        updated = await mark_all_read(conn, user["user_id"], user["role"], utc_now())
    return {"status": "ok", "updated": updated}


@router.get("/preferences")
async def get_my_preferences(user: dict = Depends(get_current_user)) -> dict[str, Any]:
    async with get_connection() as conn:
        row = await get_preferences(conn, user["user_id"])
    return {"preferences": preferences_from_row(row)}


@router.put("/preferences")
async def update_my_preferences(
    updates: PreferencesUpdate,
    request: Request,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """Save preference changes and drop the cached copy so they apply at once."""
    columns = preferences_to_columns(updates.model_dump(exclude_none=True))
    async with get_transaction() as conn:
        row = await upsert_preferences(conn, user["user_id"], user["role"], columns)

    _invalidate_cached_preferences(request, user["user_id"])
    return {"status": "updated", "preferences": preferences_from_row(row)}


@router.post("/{notification_id}/read")
@router.put("/{notification_id}/read")
async def read_one(
    notification_id: int,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """Mark one notification read. Repeating the call is harmless."""
    async with get_transaction() as conn:
        row = await mark_read(
            conn, notification_id, user["user_id"], user["role"], utc_now()
        )
    if not row:
        raise HTTPException(404, "Notification not found")
    return {"status": "ok", "notification": row}


@router.delete("/{notification_id}")
async def delete_one(
    notification_id: int,
    user: dict = Depends(get_current_user),
) -> dict[str, str]:
    async with get_transaction() as conn:
        deleted = await delete_notification(
            conn, notification_id, user["user_id"], user["role"]
        )
    if not deleted:
        raise HTTPException(404, "Notification not found")
    return {"status": "deleted"}
