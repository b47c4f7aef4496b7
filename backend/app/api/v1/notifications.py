"""
Notifications API – delivery log and the guard's own channel/event preferences.
"""
import uuid
from datetime import datetime, time

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, get_own_guard, require_own_guard
from app.models.guard import Guard
from app.models.notification import NotificationLog
from app.services.notification_service import DEFAULT_PREFS

router = APIRouter(prefix="/notifications", tags=["notifications"])

DEFAULT_QUIET_START = time(22, 0)
DEFAULT_QUIET_END = time(7, 0)


# ── Schemas ──────────────────────────────────────────────────────────────────

class NotificationLogOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID | None
    recipient: str | None
    channel: str
    event_type: str
    subject: str | None
    status: str
    sent_at: datetime | None
    error: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationPreferencesUpdate(BaseModel):
    telegram_chat_id: str | None = None
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    notification_prefs: dict | None = None  # { channels: {email, telegram}, events: {...} }


class NotificationPreferencesOut(BaseModel):
    telegram_chat_id: str | None
    quiet_hours_start: time
    quiet_hours_end: time
    notification_prefs: dict


def _prefs_out(guard: Guard | None) -> NotificationPreferencesOut:
    if guard is None:
        return NotificationPreferencesOut(
            telegram_chat_id=None,
            quiet_hours_start=DEFAULT_QUIET_START,
            quiet_hours_end=DEFAULT_QUIET_END,
            notification_prefs=DEFAULT_PREFS,
        )
    return NotificationPreferencesOut(
        telegram_chat_id=guard.telegram_chat_id,
        quiet_hours_start=guard.quiet_hours_start or DEFAULT_QUIET_START,
        quiet_hours_end=guard.quiet_hours_end or DEFAULT_QUIET_END,
        notification_prefs=guard.notification_prefs or DEFAULT_PREFS,
    )


# ── Endpoints ─────────────────────────────────────────────────────────────────

@router.get("/logs", response_model=list[NotificationLogOut])
async def list_notification_logs(
    current_user: CurrentUser,
    db: DB,
    guard_id: uuid.UUID | None = None,
    channel: str | None = None,
    status: str | None = None,
    event_type: str | None = None,
):
    """
    Admin/Manager: every log of the company.
    Guard: own logs only.
    """
    conditions = [NotificationLog.tenant_id == current_user.tenant_id]

    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None:
            return []
        conditions.append(NotificationLog.guard_id == own.id)
    elif guard_id:
        conditions.append(NotificationLog.guard_id == guard_id)

    if channel:
        conditions.append(NotificationLog.channel == channel)
    if status:
        conditions.append(NotificationLog.status == status)
    if event_type:
        conditions.append(NotificationLog.event_type == event_type)

    result = await db.execute(
        select(NotificationLog)
        .where(*conditions)
        .order_by(NotificationLog.created_at.desc())
        .limit(200)
    )
    return result.scalars().all()


@router.get("/preferences", response_model=NotificationPreferencesOut)
async def get_preferences(current_user: CurrentUser, db: DB):
    return _prefs_out(await get_own_guard(db, current_user))


@router.put("/preferences", response_model=NotificationPreferencesOut)
async def update_preferences(payload: NotificationPreferencesUpdate, current_user: CurrentUser, db: DB):
    """Updates Telegram chat id, quiet hours and channel/event preferences."""
    guard = await require_own_guard(db, current_user)

    if payload.telegram_chat_id is not None:
        guard.telegram_chat_id = payload.telegram_chat_id or None
    if payload.quiet_hours_start is not None:
        guard.quiet_hours_start = payload.quiet_hours_start
    if payload.quiet_hours_end is not None:
        guard.quiet_hours_end = payload.quiet_hours_end
    if payload.notification_prefs is not None:
        guard.notification_prefs = payload.notification_prefs

    await db.commit()
    await db.refresh(guard)
    return _prefs_out(guard)
