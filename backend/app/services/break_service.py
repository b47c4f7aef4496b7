"""
Break checker: tells a guard whether they are on break right now, and if
not, when the next break of the current shift starts.

Shift and break times are wall-clock times. A shift whose end is before its
start runs past midnight, and its breaks are anchored to the same night.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.guard import Guard
from app.models.shift import Shift
from app.models.shift_log import BreakCheckQuery
from app.schemas.breaks import BreakCheckResult, BreakInfo, ShiftInfo
from app.utils.time_helpers import (
    format_hhmm, format_time_remaining, minutes_between, now_local, parse_hhmm, shift_window,
)

logger = logging.getLogger(__name__)

ON_BREAK = "ON_BREAK"
BEFORE_NEXT_BREAK = "BEFORE_NEXT_BREAK"
NO_MORE_BREAKS = "NO_MORE_BREAKS"
NO_BREAKS = "NO_BREAKS"
NO_SHIFT = "NO_SHIFT"
ERROR = "error"

MSG_NO_SHIFT = "No shift found for this guard on the specified date."
MSG_NO_BREAKS = "No break times scheduled for this shift."
MSG_NO_MORE_BREAKS = "No more breaks scheduled for today."


@dataclass
class AnchoredBreak:
    start: datetime
    end: datetime
    break_type: str

    def info(self) -> BreakInfo:
        return BreakInfo(
            start_time=format_hhmm(self.start.time()),
            end_time=format_hhmm(self.end.time()),
            break_type=self.break_type,
        )


@dataclass
class BreakStatus:
    status: str
    message: str
    shift: Optional[object] = None
    current_break: Optional[AnchoredBreak] = None
    next_break: Optional[AnchoredBreak] = None

    @property
    def on_break(self) -> bool:
        return self.status == ON_BREAK


def select_shift(shifts: Iterable, query_date: date, at: datetime):
    """
    Pick the shift the query refers to.

    Candidates are non-cancelled shifts on the query date plus overnight
    shifts from the day before. The first candidate (by start) whose window
    contains `at` wins; otherwise the earliest shift starting on the date.
    """
    candidates = []
    for s in shifts:
        if s.status == "cancelled":
            continue
        overnight = s.end_time < s.start_time
        if s.date == query_date or (s.date == query_date - timedelta(days=1) and overnight):
            start, end = shift_window(s.date, s.start_time, s.end_time)
            candidates.append((start, end, s))
    candidates.sort(key=lambda c: c[0])

    for start, end, s in candidates:
        if start <= at <= end:
            return s
    for _, _, s in candidates:
        if s.date == query_date:
            return s
    return None


def anchor_breaks(shift) -> list[AnchoredBreak]:
    """Break windows of a shift as datetimes, in start order."""
    overnight = shift.end_time < shift.start_time
    anchored = []
    for raw in shift.break_times or []:
        try:
            b_start = parse_hhmm(str(raw["break_start"]))
            b_end = parse_hhmm(str(raw["break_end"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed break %r on shift %s", raw, getattr(shift, "id", None))
            continue
        day = shift.date
        if overnight and b_start < shift.start_time:
            day += timedelta(days=1)
        start_dt, end_dt = shift_window(day, b_start, b_end)
        anchored.append(AnchoredBreak(start_dt, end_dt, str(raw.get("break_type") or "unpaid")))
    anchored.sort(key=lambda b: b.start)
    return anchored


def resolve_break_status(shifts: Iterable, query_date: date, query_time: time) -> BreakStatus:
    at = datetime.combine(query_date, query_time)
    shift = select_shift(shifts, query_date, at)
    if shift is None:
        return BreakStatus(NO_SHIFT, MSG_NO_SHIFT)

    breaks = anchor_breaks(shift)
    if not breaks:
        return BreakStatus(NO_BREAKS, MSG_NO_BREAKS, shift=shift)

    for b in breaks:
        if b.start <= at <= b.end:
            left = format_time_remaining(minutes_between(at, b.end))
            return BreakStatus(
                ON_BREAK,
                f"You're on {b.break_type.lower()} break until {format_hhmm(b.end.time())} ({left} left).",
                shift=shift,
                current_break=b,
            )

    for b in breaks:
        if b.start > at:
            until = format_time_remaining(minutes_between(at, b.start))
            return BreakStatus(
                BEFORE_NEXT_BREAK,
                f"Next {b.break_type.lower()} break "
                f"{format_hhmm(b.start.time())}-{format_hhmm(b.end.time())} (in {until}).",
                shift=shift,
                next_break=b,
            )

    return BreakStatus(NO_MORE_BREAKS, MSG_NO_MORE_BREAKS, shift=shift)


class BreakService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_guard(
        self, tenant_id: uuid.UUID, guard_id: uuid.UUID | None, guard_name: str | None
    ) -> Guard | None:
        if guard_id is not None:
            result = await self.db.execute(
                select(Guard).where(Guard.id == guard_id, Guard.tenant_id == tenant_id)
            )
            return result.scalar_one_or_none()

        fragment = (guard_name or "").strip().lower()
        full_name = func.lower(Guard.first_name + " " + Guard.last_name)
        result = await self.db.execute(
            select(Guard)
            .where(
                Guard.tenant_id == tenant_id,
                Guard.is_active == True,  # noqa: E712
                full_name.contains(fragment, autoescape=True),
            )
            .order_by(Guard.last_name, Guard.first_name)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def check(
        self,
        tenant_id: uuid.UUID,
        guard_id: uuid.UUID | None = None,
        guard_name: str | None = None,
        query_date: date | None = None,
        query_time: time | None = None,
    ) -> BreakCheckResult:
        now = now_local()
        query_date = query_date or now.date()
        query_time = query_time or now.time().replace(second=0, microsecond=0)

        try:
            guard = await self.find_guard(tenant_id, guard_id, guard_name)
            shifts = []
            if guard is not None:
                result = await self.db.execute(
                    select(Shift).where(
                        Shift.tenant_id == tenant_id,
                        Shift.guard_id == guard.id,
                        Shift.date.in_([query_date - timedelta(days=1), query_date]),
                        Shift.status != "cancelled",
                    )
                )
                shifts = list(result.scalars().all())

            status = resolve_break_status(shifts, query_date, query_time)

            self.db.add(BreakCheckQuery(
                tenant_id=tenant_id,
                guard_id=guard.id if guard else None,
                shift_id=status.shift.id if status.shift is not None else None,
                guard_name=guard.full_name if guard else guard_name,
                query_date=query_date,
                query_time=query_time,
                status=status.status,
                message=status.message,
            ))
            await self.db.commit()
        except SQLAlchemyError:
            logger.exception("Break check failed for guard %s / %r", guard_id, guard_name)
            await self.db.rollback()
            return BreakCheckResult(
                status=ERROR,
                on_break=False,
                message="Break status could not be checked right now. Please try again or contact the control room.",
            )

        return BreakCheckResult(
            status=status.status,
            on_break=status.on_break,
            message=status.message,
            guard_id=guard.id if guard else None,
            guard_name=guard.full_name if guard else guard_name,
            current_break=status.current_break.info() if status.current_break else None,
            next_break=status.next_break.info() if status.next_break else None,
            current_shift=ShiftInfo(
                shift_id=status.shift.id,
                start_time=format_hhmm(status.shift.start_time),
                end_time=format_hhmm(status.shift.end_time),
                position=status.shift.position,
            ) if status.shift is not None else None,
        )
