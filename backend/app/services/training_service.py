"""
Training records: duplicate detection, expiry status and the expiry
notification job (one e-mail per guard plus an admin summary).
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.guard import Guard
from app.models.training import TrainingRecord
from app.models.user import User, ROLE_ADMIN
from app.services.notification_service import NotificationService, EVENT_TRAINING_EXPIRY
from app.utils.time_helpers import today_local

logger = logging.getLogger(__name__)

STATUS_VALID = "valid"
STATUS_EXPIRING_SOON = "expiring_soon"
STATUS_EXPIRED = "expired"


def training_status(expiry_date: date, today: date | None = None) -> str:
    today = today or today_local()
    if expiry_date < today:
        return STATUS_EXPIRED
    if expiry_date <= today + timedelta(days=settings.TRAINING_EXPIRY_WARNING_DAYS):
        return STATUS_EXPIRING_SOON
    return STATUS_VALID


async def find_duplicate(
    db: AsyncSession, tenant_id: uuid.UUID, guard_name: str, course_name: str, expiry_date: date
) -> TrainingRecord | None:
    result = await db.execute(
        select(TrainingRecord).where(
            TrainingRecord.tenant_id == tenant_id,
            func.lower(TrainingRecord.guard_name) == guard_name.strip().lower(),
            TrainingRecord.course_name == course_name,
            TrainingRecord.expiry_date == expiry_date,
        )
    )
    return result.scalars().first()


def guard_email_body(records: list[TrainingRecord], today: date) -> str:
    lines = ["Dear Guard,", "", "The following training certificates need your attention:", ""]
    for r in records:
        label = "EXPIRED" if training_status(r.expiry_date, today) == STATUS_EXPIRED else "Expiring Soon"
        lines.append(f"- {r.course_name} Expires: {r.expiry_date.strftime('%d/%m/%Y')} Status: {label}")
    lines += ["", "Please arrange renewal with your supervisor as soon as possible.", "", "Compliance Team"]
    return "\n".join(lines)


def admin_summary_body(by_guard: dict[str, list[TrainingRecord]], today: date) -> str:
    lines = [f"Training expiry summary for {today.strftime('%d/%m/%Y')}", ""]
    for name in sorted(by_guard):
        lines.append(f"{name}:")
        for r in by_guard[name]:
            label = "EXPIRED" if training_status(r.expiry_date, today) == STATUS_EXPIRED else "Expiring Soon"
            lines.append(f"  - {r.course_name} ({r.expiry_date.strftime('%d/%m/%Y')}) {label}")
    return "\n".join(lines)


@dataclass
class TrainingNotifyResult:
    guards_notified: int = 0
    records: int = 0
    admin_summary_sent: bool = False


async def run_training_expiry_notify(
    db: AsyncSession, tenant_id: uuid.UUID, today: date | None = None
) -> TrainingNotifyResult:
    today = today or today_local()
    horizon = today + timedelta(days=settings.TRAINING_EXPIRY_WARNING_DAYS)
    out = TrainingNotifyResult()

    result = await db.execute(
        select(TrainingRecord)
        .where(TrainingRecord.tenant_id == tenant_id, TrainingRecord.expiry_date <= horizon)
        .order_by(TrainingRecord.guard_name, TrainingRecord.expiry_date)
    )
    records = list(result.scalars().all())
    out.records = len(records)
    if not records:
        logger.info("Training notify tenant %s: nothing expiring", tenant_id)
        return out

    by_guard: dict[str, list[TrainingRecord]] = {}
    for r in records:
        by_guard.setdefault(r.guard_name, []).append(r)

    guard_ids = {r.guard_id for r in records if r.guard_id}
    guards = {}
    if guard_ids:
        g_result = await db.execute(select(Guard).where(Guard.id.in_(guard_ids)))
        guards = {g.id: g for g in g_result.scalars().all()}

    notifier = NotificationService(db)
    for name, items in by_guard.items():
        guard = next((guards[r.guard_id] for r in items if r.guard_id in guards), None)
        if guard is None:
            logger.info("Training notify: no linked guard profile for %s", name)
            continue
        try:
            delivered = await notifier.dispatch(
                guard, EVENT_TRAINING_EXPIRY, guard_email_body(items, today),
                subject="Training certificates expiring", commit=False,
            )
            out.guards_notified += delivered > 0
        except Exception:
            logger.exception("Training notification for %s failed", name)

    admins = await db.execute(
        select(User).where(
            User.tenant_id == tenant_id, User.role == ROLE_ADMIN, User.is_active == True  # noqa: E712
        )
    )
    sent = await notifier.email_users(
        list(admins.scalars().all()),
        EVENT_TRAINING_EXPIRY,
        "Training expiry summary",
        admin_summary_body(by_guard, today),
        commit=False,
    )
    out.admin_summary_sent = sent > 0
    await db.commit()
    logger.info(
        "Training notify tenant %s: %d records, %d guards notified",
        tenant_id, out.records, out.guards_notified,
    )
    return out
