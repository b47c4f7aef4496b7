"""
Tests for no-show detection – grace period, lookback window, shift_start
logs and /api/v1/no-shows.
"""
from datetime import date, datetime, time, timedelta, timezone

import pytest
from sqlalchemy import select

from app.models.no_show import NoShowAlert
from app.models.notification import NotificationLog
from app.models.shift import Shift
from app.models.shift_log import ShiftLog
from app.services.no_show_service import is_due, run_no_show_check, shift_start_utc
from tests.conftest import auth_headers

SHIFT_DATE = date(2025, 9, 1)
START_UTC = datetime(2025, 9, 1, 6, 0, tzinfo=timezone.utc)  # 07:00 London (BST)


async def _shift(db, tenant, guard, site=None, status="planned") -> Shift:
    shift = Shift(
        tenant_id=tenant.id, guard_id=guard.id, site_id=site.id if site else None,
        date=SHIFT_DATE, start_time=time(7, 0), end_time=time(19, 0), status=status,
    )
    db.add(shift)
    await db.commit()
    return shift


def test_shift_start_uses_company_timezone():
    shift = Shift(date=SHIFT_DATE, start_time=time(7, 0), end_time=time(19, 0))
    assert shift_start_utc(shift) == START_UTC


@pytest.mark.parametrize("minutes_after, due", [(5, False), (10, True), (59, True), (60, False)])
def test_is_due_window(minutes_after, due):
    assert is_due(START_UTC, START_UTC + timedelta(minutes=minutes_after), 10) is due


@pytest.mark.asyncio
async def test_alert_raised_after_grace(db, tenant, guard, site, manager_user):
    shift = await _shift(db, tenant, guard, site)

    created = await run_no_show_check(db, tenant.id, now=START_UTC + timedelta(minutes=15))
    assert len(created) == 1
    alert = created[0]
    assert alert.shift_id == shift.id
    assert alert.guard_name == "James Walker"
    assert alert.site_name == "Riverside Business Park"
    assert "07:00 shift at Riverside Business Park" in alert.message

    logs = (await db.execute(select(NotificationLog))).scalars().all()
    assert [(log.recipient, log.event_type) for log in logs] == [(manager_user.email, "no_show")]


@pytest.mark.asyncio
async def test_alert_raised_once_per_shift(db, tenant, guard):
    await _shift(db, tenant, guard)
    await run_no_show_check(db, tenant.id, now=START_UTC + timedelta(minutes=15))
    again = await run_no_show_check(db, tenant.id, now=START_UTC + timedelta(minutes=20))
    assert again == []
    assert len((await db.execute(select(NoShowAlert))).scalars().all()) == 1


@pytest.mark.asyncio
async def test_shift_start_logged_prevents_alert(db, tenant, guard):
    shift = await _shift(db, tenant, guard)
    db.add(ShiftLog(tenant_id=tenant.id, guard_id=guard.id, shift_id=shift.id,
                    action="shift_start", logged_at=START_UTC - timedelta(minutes=3)))
    await db.commit()

    created = await run_no_show_check(db, tenant.id, now=START_UTC + timedelta(minutes=15))
    assert created == []


@pytest.mark.asyncio
async def test_other_actions_do_not_count_as_start(db, tenant, guard):
    await _shift(db, tenant, guard)
    db.add(ShiftLog(tenant_id=tenant.id, guard_id=guard.id, action="radio_check", logged_at=START_UTC))
    await db.commit()

    created = await run_no_show_check(db, tenant.id, now=START_UTC + timedelta(minutes=15))
    assert len(created) == 1


@pytest.mark.asyncio
async def test_cancelled_shift_skipped(db, tenant, guard):
    await _shift(db, tenant, guard, status="cancelled")
    created = await run_no_show_check(db, tenant.id, now=START_UTC + timedelta(minutes=15))
    assert created == []


@pytest.mark.asyncio
async def test_shift_older_than_lookback_skipped(db, tenant, guard):
    await _shift(db, tenant, guard)
    created = await run_no_show_check(db, tenant.id, now=START_UTC + timedelta(hours=2))
    assert created == []


# ── API ───────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_resolve_alert(client, db, tenant, guard, manager_user, manager_token):
    await _shift(db, tenant, guard)
    created = await run_no_show_check(db, tenant.id, now=START_UTC + timedelta(minutes=15))

    resp = await client.post(f"/api/v1/no-shows/{created[0].id}/resolve", headers=auth_headers(manager_token))
    assert resp.status_code == 200
    assert resp.json()["resolved"] is True

    resp = await client.get(
        "/api/v1/no-shows", params={"include_resolved": "false"}, headers=auth_headers(manager_token)
    )
    assert resp.json() == []


@pytest.mark.asyncio
async def test_no_shows_forbidden_for_guard(client, guard, guard_token):
    resp = await client.get("/api/v1/no-shows", headers=auth_headers(guard_token))
    assert resp.status_code == 403
