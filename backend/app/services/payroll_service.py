"""
PayrollService: compares rostered hours with the hours actually paid and
records a variance for every guard whose numbers disagree.
"""
import logging
import uuid
from collections import defaultdict
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta, SU
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payroll import PayrollInput, PayrollVariance, VARIANCE_PENDING
from app.models.shift import Shift
from app.services.break_service import anchor_breaks
from app.utils.time_helpers import minutes_between, today_local

logger = logging.getLogger(__name__)

VARIANCE_THRESHOLD_HOURS = 0.01


def last_pay_period(today: date) -> tuple[date, date]:
    """Sunday–Saturday week ending the Saturday before the latest Sunday."""
    latest_sunday = today + relativedelta(weekday=SU(-1))
    period_end = latest_sunday - timedelta(days=1)
    return period_end - timedelta(days=6), period_end


def unpaid_break_minutes(shift) -> int:
    return sum(
        minutes_between(b.start, b.end)
        for b in anchor_breaks(shift)
        if b.break_type.lower() != "paid"
    )


def scheduled_hours(shift) -> float:
    """Shift length (overnight aware) less unpaid breaks."""
    net = shift.duration_hours - unpaid_break_minutes(shift) / 60
    return max(0.0, net)


class PayrollService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def scheduled_by_guard(self, tenant_id: uuid.UUID, start: date, end: date) -> dict[uuid.UUID, float]:
        result = await self.db.execute(
            select(Shift).where(
                Shift.tenant_id == tenant_id,
                Shift.date >= start,
                Shift.date <= end,
                Shift.guard_id.isnot(None),
                Shift.status.notin_(["cancelled", "declined"]),
            )
        )
        totals: dict[uuid.UUID, float] = defaultdict(float)
        for shift in result.scalars().all():
            totals[shift.guard_id] += scheduled_hours(shift)
        return totals

    async def paid_by_guard(self, tenant_id: uuid.UUID, start: date, end: date) -> dict[uuid.UUID, float]:
        result = await self.db.execute(
            select(PayrollInput).where(
                PayrollInput.tenant_id == tenant_id,
                # any input overlapping the pay week
                PayrollInput.period_start <= end,
                PayrollInput.period_end >= start,
            )
        )
        totals: dict[uuid.UUID, float] = defaultdict(float)
        for row in result.scalars().all():
            totals[row.guard_id] += float(row.hours_paid)
        return totals

    async def run_variance_check(
        self, tenant_id: uuid.UUID, period: tuple[date, date] | None = None
    ) -> tuple[date, date, int, list[PayrollVariance]]:
        """Returns (period_start, period_end, guards checked, variances created)."""
        start, end = period or last_pay_period(today_local())
        scheduled = await self.scheduled_by_guard(tenant_id, start, end)
        paid = await self.paid_by_guard(tenant_id, start, end)
        guard_ids = set(scheduled) | set(paid)

        created = []
        for guard_id in guard_ids:
            await self.db.execute(
                delete(PayrollVariance).where(
                    PayrollVariance.tenant_id == tenant_id,
                    PayrollVariance.guard_id == guard_id,
                    PayrollVariance.period_start == start,
                    PayrollVariance.period_end == end,
                    PayrollVariance.status == VARIANCE_PENDING,
                )
            )
            sched = round(scheduled.get(guard_id, 0.0), 2)
            paid_h = round(paid.get(guard_id, 0.0), 2)
            # positive: paid more than rostered
            diff = round(paid_h - sched, 2)
            if abs(diff) <= VARIANCE_THRESHOLD_HOURS:
                continue
            variance = PayrollVariance(
                tenant_id=tenant_id,
                guard_id=guard_id,
                period_start=start,
                period_end=end,
                scheduled_hours=sched,
                paid_hours=paid_h,
                variance_hours=diff,
                status=VARIANCE_PENDING,
            )
            self.db.add(variance)
            created.append(variance)

        await self.db.commit()
        logger.info(
            "Payroll variance tenant %s %s–%s: %d guards, %d variances",
            tenant_id, start, end, len(guard_ids), len(created),
        )
        return start, end, len(guard_ids), created
