"""
Notification Service – Telegram + SendGrid e-mail.

Graceful degradation: if TELEGRAM_BOT_TOKEN or SENDGRID_API_KEY is not set,
that channel is skipped and the skip is logged. Quiet hours are respected per
guard (default 22:00–07:00) except for alert events.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, time, timezone
from typing import TYPE_CHECKING

from sqlalchemy import select

from app.core.config import settings
from app.models.notification import NotificationLog
from app.models.user import User, ROLE_ADMIN, ROLE_MANAGER
from app.utils.time_helpers import now_local

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from app.models.guard import Guard
    from app.models.shift import Shift
    from app.models.time_off import TimeOffRequest

logger = logging.getLogger(__name__)

EVENT_SHIFT_ASSIGNED   = "shift_assigned"
EVENT_SHIFT_CHANGED    = "shift_changed"
EVENT_TIME_OFF_DECIDED = "time_off_decided"
EVENT_LICENCE_EXPIRY   = "licence_expiry"
EVENT_TRAINING_EXPIRY  = "training_expiry"
EVENT_NO_SHOW          = "no_show"

# Alerts go out even during quiet hours
ALERT_EVENTS = {EVENT_LICENCE_EXPIRY, EVENT_TRAINING_EXPIRY, EVENT_NO_SHOW}

DEFAULT_PREFS = {
    "channels": {"email": True, "telegram": False},
    "events": {
        EVENT_SHIFT_ASSIGNED: True,
        EVENT_SHIFT_CHANGED: True,
        EVENT_TIME_OFF_DECIDED: True,
        EVENT_LICENCE_EXPIRY: True,
        EVENT_TRAINING_EXPIRY: True,
    },
}


def is_quiet_time(now: time, start: time | None, end: time | None) -> bool:
    start = start or time(22, 0)
    end = end or time(7, 0)
    # wrap-around (e.g. 22:00–07:00 spans midnight)
    if start > end:
        return now >= start or now <= end
    return start <= now <= end


def _is_quiet_now(guard: "Guard") -> bool:
    return is_quiet_time(now_local().time(), guard.quiet_hours_start, guard.quiet_hours_end)


def wants_event(guard: "Guard", event_type: str) -> bool:
    events = (guard.notification_prefs or {}).get("events", {})
    return events.get(event_type, True)


class NotificationService:

    def __init__(self, db: "AsyncSession"):
        self.db = db

    def _log(self, tenant_id, guard_id, recipient, channel, event_type, subject, body, ok, err):
        self.db.add(NotificationLog(
            tenant_id=tenant_id,
            guard_id=guard_id,
            recipient=recipient,
            channel=channel,
            event_type=event_type,
            subject=subject,
            body=body,
            status="sent" if ok else "failed",
            sent_at=datetime.now(timezone.utc) if ok else None,
            error=err,
        ))

    async def dispatch(
        self,
        guard: "Guard",
        event_type: str,
        message: str,
        subject: str | None = None,
        commit: bool = True,
    ) -> int:
        """Sends via all configured channels, one NotificationLog row per channel.
        Returns the number of channels that delivered."""
        if event_type not in ALERT_EVENTS and _is_quiet_now(guard):
            self.db.add(NotificationLog(
                tenant_id=guard.tenant_id,
                guard_id=guard.id,
                channel="all",
                event_type=event_type,
                subject=subject,
                body=message,
                status="skipped_quiet_hours",
            ))
            if commit:
                await self.db.commit()
            return 0

        prefs    = guard.notification_prefs or {}
        channels = prefs.get("channels", DEFAULT_PREFS["channels"])
        delivered = 0

        # ── Telegram ──────────────────────────────────────────────────────────
        if channels.get("telegram", False) and guard.telegram_chat_id:
            ok, err = await self._send_telegram(guard.telegram_chat_id, message)
            self._log(guard.tenant_id, guard.id, guard.telegram_chat_id, "telegram",
                      event_type, subject, message, ok, err)
            delivered += ok

        # ── E-mail ────────────────────────────────────────────────────────────
        if channels.get("email", True) and guard.email:
            ok, err = await self._send_email(
                to=guard.email,
                subject=subject or "GuardOps notification",
                body=message,
            )
            self._log(guard.tenant_id, guard.id, guard.email, "email",
                      event_type, subject, message, ok, err)
            delivered += ok

        if commit:
            await self.db.commit()
        return delivered

    async def email_users(
        self,
        users: list[User],
        event_type: str,
        subject: str,
        message: str,
        commit: bool = True,
    ) -> int:
        """E-mail to staff accounts (admins/managers); logged per recipient."""
        delivered = 0
        for user in users:
            ok, err = await self._send_email(to=user.email, subject=subject, body=message)
            self._log(user.tenant_id, None, user.email, "email", event_type, subject, message, ok, err)
            delivered += ok
        if commit:
            await self.db.commit()
        return delivered

    async def notify_managers(
        self, tenant_id: uuid.UUID, event_type: str, subject: str, message: str, commit: bool = True
    ) -> int:
        result = await self.db.execute(
            select(User).where(
                User.tenant_id == tenant_id,
                User.is_active == True,  # noqa: E712
                User.role.in_([ROLE_ADMIN, ROLE_MANAGER]),
            )
        )
        return await self.email_users(list(result.scalars().all()), event_type, subject, message, commit)

    async def _send_telegram(self, chat_id: str, message: str) -> tuple[bool, str | None]:
        token = settings.TELEGRAM_BOT_TOKEN
        if not token:
            logger.info("Telegram skipped: TELEGRAM_BOT_TOKEN not configured")
            return False, "TELEGRAM_BOT_TOKEN not configured"
        from telegram import Bot
        from telegram.error import TelegramError
        try:
            bot = Bot(token=token)
            async with bot:
                await bot.send_message(chat_id=chat_id, text=message)
            return True, None
        except TelegramError as e:
            logger.error("Telegram delivery to %s failed: %s", chat_id, e)
            return False, str(e)[:200]

    async def _send_email(self, to: str, subject: str, body: str) -> tuple[bool, str | None]:
        api_key    = settings.SENDGRID_API_KEY
        from_email = settings.SENDGRID_FROM_EMAIL
        if not api_key:
            logger.info("E-mail to %s skipped: SENDGRID_API_KEY not configured", to)
            return False, "SENDGRID_API_KEY not configured"
        if not from_email:
            return False, "SENDGRID_FROM_EMAIL not configured"
        from sendgrid import SendGridAPIClient
        from sendgrid.helpers.mail import Mail
        mail = Mail(
            from_email=from_email,
            to_emails=to,
            subject=subject,
            plain_text_content=body,
        )
        try:
            await asyncio.to_thread(SendGridAPIClient(api_key).send, mail)
            return True, None
        except Exception as e:  # sendgrid raises python_http_client errors of many kinds
            logger.error("E-mail to %s failed: %s", to, e)
            return False, str(e)[:200]


# ── Convenience functions for API endpoints ──────────────────────────────────

async def _safe_dispatch(db: "AsyncSession", guard: "Guard", event_type: str, msg: str, subject: str) -> None:
    if not wants_event(guard, event_type):
        return
    try:
        await NotificationService(db).dispatch(guard, event_type, msg, subject)
    except Exception:
        # A failed notification never fails the API request
        logger.exception("Notification %s for guard %s failed", event_type, guard.id)


async def notify_shift_assigned(shift: "Shift", guard: "Guard", db: "AsyncSession") -> None:
    """Sent when a shift is assigned to a guard."""
    msg = (
        f"Hi {guard.first_name},\n\n"
        f"You have been rostered for the following shift:\n"
        f"Date:   {shift.date.strftime('%a %d/%m/%Y')}\n"
        f"Time:   {shift.start_time.strftime('%H:%M')} – {shift.end_time.strftime('%H:%M')}\n"
    )
    if shift.position:
        msg += f"Post:   {shift.position}\n"
    msg += "\nPlease confirm or decline the shift in GuardOps."
    await _safe_dispatch(db, guard, EVENT_SHIFT_ASSIGNED, msg,
                         f"New shift: {shift.date.strftime('%d/%m/%Y')}")


async def notify_shift_changed(shift: "Shift", guard: "Guard", changed_fields: list[str], db: "AsyncSession") -> None:
    """Sent when time, date or post of a shift changes."""
    msg = (
        f"Hi {guard.first_name},\n\n"
        f"Your shift on {shift.date.strftime('%a %d/%m/%Y')} has changed ({', '.join(changed_fields)}):\n"
        f"Time:   {shift.start_time.strftime('%H:%M')} – {shift.end_time.strftime('%H:%M')}\n"
    )
    if shift.position:
        msg += f"Post:   {shift.position}\n"
    await _safe_dispatch(db, guard, EVENT_SHIFT_CHANGED, msg,
                         f"Shift changed: {shift.date.strftime('%d/%m/%Y')}")


async def notify_time_off_decision(request: "TimeOffRequest", guard: "Guard", db: "AsyncSession") -> None:
    msg = (
        f"Hi {guard.first_name},\n\n"
        f"Your time-off request has been {request.status}:\n"
        f"Period: {request.start_date.strftime('%d/%m/%Y')} – {request.end_date.strftime('%d/%m/%Y')}\n"
    )
    if request.decision_note:
        msg += f"Note:   {request.decision_note}\n"
    await _safe_dispatch(db, guard, EVENT_TIME_OFF_DECIDED, msg,
                         f"Time off {request.status}: {request.start_date.strftime('%d/%m/%Y')}")
