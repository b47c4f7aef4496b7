"""
Tests for notification dispatch – quiet hours, alert events and the
per-channel log.
"""
from datetime import datetime, time
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.models.notification import NotificationLog
from app.services import notification_service
from app.services.notification_service import (
    NotificationService, is_quiet_time, EVENT_LICENCE_EXPIRY, EVENT_SHIFT_ASSIGNED,
)

LONDON = ZoneInfo("Europe/London")


@pytest.mark.parametrize("now, start, end, expected", [
    # overnight window
    (time(23, 30), time(22, 0), time(7, 0), True),
    (time(3, 0), time(22, 0), time(7, 0), True),
    (time(7, 0), time(22, 0), time(7, 0), True),
    (time(7, 1), time(22, 0), time(7, 0), False),
    (time(12, 0), time(22, 0), time(7, 0), False),
    # same-day window
    (time(13, 0), time(12, 0), time(14, 0), True),
    (time(11, 59), time(12, 0), time(14, 0), False),
    (time(23, 0), time(12, 0), time(14, 0), False),
    # defaults to 22:00-07:00
    (time(2, 0), None, None, True),
    (time(9, 0), None, None, False),
])
def test_is_quiet_time(now, start, end, expected):
    assert is_quiet_time(now, start, end) is expected


@pytest.fixture
def late_evening(monkeypatch):
    monkeypatch.setattr(settings, "SENDGRID_API_KEY", "")
    monkeypatch.setattr(notification_service, "now_local", lambda: datetime(2025, 9, 1, 23, 30, tzinfo=LONDON))


async def _logs(db, guard):
    result = await db.execute(select(NotificationLog).where(NotificationLog.guard_id == guard.id))
    return result.scalars().all()


@pytest.mark.asyncio
async def test_quiet_hours_skip_routine_event(db, guard, late_evening):
    delivered = await NotificationService(db).dispatch(guard, EVENT_SHIFT_ASSIGNED, "New shift", "Shift")
    assert delivered == 0

    logs = await _logs(db, guard)
    assert [(log.channel, log.status) for log in logs] == [("all", "skipped_quiet_hours")]


@pytest.mark.asyncio
async def test_alert_event_ignores_quiet_hours(db, guard, late_evening):
    await NotificationService(db).dispatch(guard, EVENT_LICENCE_EXPIRY, "Licence expiring", "Licence")

    logs = await _logs(db, guard)
    assert [(log.channel, log.status) for log in logs] == [("email", "failed")]
    assert logs[0].recipient == guard.email
    assert "SENDGRID_API_KEY" in logs[0].error
