"""
Daily KPI roll-up: patrols, breaks, guards on duty and uniform compliance
for one calendar day in the company timezone.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.edob import EdobEntry
from app.models.kpi import DailyKpiMetric
from app.models.shift import Shift
from app.models.uniform import UniformCheck
from app.utils.time_helpers import local_day_bounds, today_local

logger = logging.getLogger(__name__)


@dataclass
class KpiValues:
    total_patrols: int = 0
    breaks_logged: int = 0
    guards_on_duty: int = 0
    patrol_target_pct: float = 0.0
    patrols_per_guard: float = 0.0
    uniform_compliance_pct: float = 100.0
    patrols_by_guard: dict[str, int] = field(default_factory=dict)


def _mentions(entry, word: str) -> bool:
    return word in (entry.entry_type or "").lower() or word in (entry.details or "").lower()


def compute_kpis(
    entries: list,
    guards_on_duty: int,
    uniform_checks: list,
    patrol_target: int | None = None,
) -> KpiValues:
    target = patrol_target if patrol_target is not None else settings.PATROL_TARGET_PER_GUARD
    values = KpiValues(guards_on_duty=guards_on_duty)

    for e in entries:
        if _mentions(e, "patrol"):
            values.total_patrols += 1
            if e.guard_id is not None:
                key = str(e.guard_id)
                values.patrols_by_guard[key] = values.patrols_by_guard.get(key, 0) + 1
        if _mentions(e, "break"):
            values.breaks_logged += 1

    if guards_on_duty > 0:
        values.patrol_target_pct = round(values.total_patrols / (guards_on_duty * target) * 100, 2)
        values.patrols_per_guard = round(values.total_patrols / guards_on_duty, 2)
    else:
        values.patrol_target_pct = 100.0 if values.total_patrols > 0 else 0.0
        values.patrols_per_guard = 0.0

    # A guard is compliant for the day only if every check that day passed
    compliant_by_guard: dict = {}
    for c in uniform_checks:
        compliant_by_guard[c.guard_id] = compliant_by_guard.get(c.guard_id, True) and c.is_compliant
    if compliant_by_guard:
        ok = sum(1 for v in compliant_by_guard.values() if v)
        values.uniform_compliance_pct = round(ok / len(compliant_by_guard) * 100, 2)
    else:
        values.uniform_compliance_pct = 100.0

    return values


async def generate_daily_kpis(
    db: AsyncSession, tenant_id: uuid.UUID, report_date: date | None = None
) -> DailyKpiMetric:
    report_date = report_date or today_local() - timedelta(days=1)
    start, end = local_day_bounds(report_date)

    entries = (await db.execute(
        select(EdobEntry).where(
            EdobEntry.tenant_id == tenant_id,
            EdobEntry.occurred_at >= start,
            EdobEntry.occurred_at < end,
        )
    )).scalars().all()

    guards_on_duty = (await db.execute(
        select(func.count(func.distinct(Shift.guard_id))).where(
            Shift.tenant_id == tenant_id,
            Shift.date == report_date,
            Shift.status != "cancelled",
            Shift.guard_id.isnot(None),
        )
    )).scalar_one()

    checks = (await db.execute(
        select(UniformCheck).where(
            UniformCheck.tenant_id == tenant_id,
            UniformCheck.checked_at >= start,
            UniformCheck.checked_at < end,
        )
    )).scalars().all()

    values = compute_kpis(list(entries), guards_on_duty, list(checks))

    existing = (await db.execute(
        select(DailyKpiMetric).where(
            DailyKpiMetric.tenant_id == tenant_id, DailyKpiMetric.report_date == report_date
        )
    )).scalar_one_or_none()
    metric = existing or DailyKpiMetric(tenant_id=tenant_id, report_date=report_date)
    metric.total_patrols = values.total_patrols
    metric.breaks_logged = values.breaks_logged
    metric.guards_on_duty = values.guards_on_duty
    metric.patrol_target_pct = values.patrol_target_pct
    metric.patrols_per_guard = values.patrols_per_guard
    metric.uniform_compliance_pct = values.uniform_compliance_pct
    metric.patrols_by_guard = values.patrols_by_guard
    if existing is None:
        db.add(metric)

    await db.commit()
    await db.refresh(metric)
    logger.info(
        "KPIs tenant %s %s: %d patrols, %d guards, %.2f%% target",
        tenant_id, report_date, values.total_patrols, values.guards_on_duty, values.patrol_target_pct,
    )
    return metric
