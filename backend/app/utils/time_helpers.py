"""
Date/time helpers shared by the rota, break checker and scheduled jobs.

Shift times are wall-clock times in the company timezone (TIMEZONE setting).
Event timestamps (EDOB, visitors, shift logs) are stored in UTC.
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.core.config import settings


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def now_local() -> datetime:
    return datetime.now(local_tz())


def today_local() -> date:
    return now_local().date()


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; those are UTC by convention."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(value: datetime) -> date:
    return as_utc(value).astimezone(local_tz()).date()


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar day in the company timezone."""
    tz = local_tz()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def parse_hhmm(value: str) -> time:
    """'09:05' or '09:05:00' -> time(9, 5)."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour, minute, second)


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def format_time_remaining(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}min" if rest else f"{hours}h"


def shift_window(day: date, start: time, end: time) -> tuple[datetime, datetime]:
    """Naive start/end of a shift; an end before the start runs past midnight."""
    start_dt = datetime.combine(day, start)
    end_dt = datetime.combine(day, end)
    if end_dt < start_dt:
        end_dt += timedelta(days=1)
    return start_dt, end_dt


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)
