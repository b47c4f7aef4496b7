"""
No-show detection: a rostered guard who has not logged a shift_start by the
end of the grace period gets a NoShowAlert, and managers are e-mailed.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.guard import Guard
from app.models.no_show import NoShowAlert
from app.models.shift import Shift
from app.models.shift_log import ShiftLog
from app.models.site import Site
from app.services.notification_service import NotificationService, EVENT_NO_SHOW
from app.utils.time_helpers import local_tz

logger = logging.getLogger(__name__)

EARLY_START_MINUTES = 5
LOOKBACK = timedelta(hours=1)


def shift_start_utc(shift) -> datetime:
    return datetime.combine(shift.date, shift.start_time, tzinfo=local_tz()).astimezone(timezone.utc)


def is_due(start: datetime, now: datetime, grace_minutes: int) -> bool:
    """Start plus grace has passed, and the shift started less than an hour ago."""
    return start + timedelta(minutes=grace_minutes) <= now and now - start < LOOKBACK


async def run_no_show_check(
    db: AsyncSession, tenant_id: uuid.UUID, now: datetime | None = None
) -> list[NoShowAlert]:
    now = now or datetime.now(timezone.utc)
    grace = settings.NO_SHOW_GRACE_MINUTES
    local_now = now.astimezone(local_tz())
    days = {local_now.date(), (local_now - LOOKBACK).date()}

    result = await db.execute(
        select(Shift, Guard, Site)
        .join(Guard, Guard.id == Shift.guard_id)
        .outerjoin(Site, Site.id == Shift.site_id)
        .where(
            Shift.tenant_id == tenant_id,
            Shift.date.in_(days),
            Shift.status.in_(["planned", "confirmed"]),
        )
    )

    created: list[NoShowAlert] = []
    for shift, guard, site in result.all():
        start = shift_start_utc(shift)
        if not is_due(start, now, grace):
            continue

        existing = await db.execute(select(NoShowAlert.id).where(NoShowAlert.shift_id == shift.id))
        if existing.scalar_one_or_none() is not None:
            continue

        logged = await db.execute(
            select(ShiftLog.id).where(
                ShiftLog.guard_id == guard.id,
                ShiftLog.action == "shift_start",
                ShiftLog.logged_at >= start - timedelta(minutes=EARLY_START_MINUTES),
                ShiftLog.logged_at <= start + timedelta(minutes=grace),
            ).limit(1)
        )
        if logged.scalar_one_or_none() is not None:
            continue

        site_name = site.name if site else None
        message = (
            f"{guard.full_name} has not started the {shift.start_time.strftime('%H:%M')} shift"
            f"{' at ' + site_name if site_name else ''} ({grace} min grace period passed)."
        )
        alert = NoShowAlert(
            tenant_id=tenant_id,
            shift_id=shift.id,
            guard_id=guard.id,
            guard_name=guard.full_name,
            site_name=site_name,
            shift_start=start,
            message=message,
        )
        db.add(alert)
        created.append(alert)

    if created:
        notifier = NotificationService(db)
        for alert in created:
            try:
                await notifier.notify_managers(
                    tenant_id, EVENT_NO_SHOW, f"No-show: {alert.guard_name}", alert.message, commit=False
                )
            except Exception:
                logger.exception("No-show notification for shift %s failed", alert.shift_id)

    await db.commit()
    logger.info("No-show check tenant %s: %d alerts raised", tenant_id, len(created))
    return created
