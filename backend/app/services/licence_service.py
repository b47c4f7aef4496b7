"""
SIA licence expiry tracking.

Every active licence is classified by days until expiry. The daily job
replaces the unacknowledged alerts of each classified licence, marks
past-expiry licences as Expired and tells the guard on Critical/Expired.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.guard import Guard
from app.models.licence import SiaLicence, LicenceAlert, LICENCE_ACTIVE, LICENCE_EXPIRED
from app.services.notification_service import NotificationService, EVENT_LICENCE_EXPIRY, wants_event
from app.utils.time_helpers import today_local

logger = logging.getLogger(__name__)

LEVEL_EXPIRED  = "Expired"
LEVEL_CRITICAL = "Critical"
LEVEL_WARNING  = "Warning"
LEVEL_INFO     = "Info"

NOTIFY_LEVELS = (LEVEL_EXPIRED, LEVEL_CRITICAL)


def classify_expiry(days_until_expiry: int) -> str | None:
    if days_until_expiry < 0:
        return LEVEL_EXPIRED
    if days_until_expiry <= 30:
        return LEVEL_CRITICAL
    if days_until_expiry <= 60:
        return LEVEL_WARNING
    if days_until_expiry <= 90:
        return LEVEL_INFO
    return None


def alert_message(licence: SiaLicence, guard_name: str, days: int) -> str:
    expiry = licence.expiry_date.strftime("%d/%m/%Y")
    if days < 0:
        return f"SIA licence {licence.licence_number} for {guard_name} expired on {expiry} ({-days} days ago)."
    if days == 0:
        return f"SIA licence {licence.licence_number} for {guard_name} expires today ({expiry})."
    return f"SIA licence {licence.licence_number} for {guard_name} expires on {expiry} (in {days} days)."


@dataclass
class LicenceRunResult:
    checked: int = 0
    alerts_created: int = 0
    expired: int = 0
    notified: int = 0


async def run_licence_expiry_check(
    db: AsyncSession, tenant_id: uuid.UUID, today: date | None = None
) -> LicenceRunResult:
    today = today or today_local()
    result = LicenceRunResult()

    rows = await db.execute(
        select(SiaLicence, Guard)
        .join(Guard, Guard.id == SiaLicence.guard_id)
        .where(SiaLicence.tenant_id == tenant_id, SiaLicence.status == LICENCE_ACTIVE)
    )
    notifier = NotificationService(db)

    for licence, guard in rows.all():
        result.checked += 1
        days = (licence.expiry_date - today).days
        level = classify_expiry(days)
        if level is None:
            continue

        await db.execute(
            delete(LicenceAlert).where(
                LicenceAlert.licence_id == licence.id,
                LicenceAlert.acknowledged == False,  # noqa: E712
            )
        )
        message = alert_message(licence, guard.full_name, days)
        db.add(LicenceAlert(
            tenant_id=tenant_id,
            licence_id=licence.id,
            guard_id=guard.id,
            level=level,
            days_until_expiry=days,
            message=message,
        ))
        result.alerts_created += 1

        if level == LEVEL_EXPIRED:
            licence.status = LICENCE_EXPIRED
            result.expired += 1

        if level in NOTIFY_LEVELS and wants_event(guard, EVENT_LICENCE_EXPIRY):
            try:
                delivered = await notifier.dispatch(
                    guard, EVENT_LICENCE_EXPIRY, message,
                    subject=f"SIA licence {level.lower()}: {licence.licence_number}",
                    commit=False,
                )
                result.notified += delivered > 0
            except Exception:
                logger.exception("Licence notification for guard %s failed", guard.id)

    await db.commit()
    logger.info(
        "Licence check tenant %s: %d checked, %d alerts, %d expired, %d notified",
        tenant_id, result.checked, result.alerts_created, result.expired, result.notified,
    )
    return result
