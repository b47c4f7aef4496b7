"""
Tests for the break checker – resolve_break_status (pure, overnight shifts,
shift selection) and POST /api/v1/breaks/check.
"""
import uuid
from datetime import date, time
from types import SimpleNamespace

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.models.shift import Shift
from app.models.shift_log import BreakCheckQuery
from app.services.break_service import (
    BreakService, resolve_break_status, anchor_breaks,
    ON_BREAK, BEFORE_NEXT_BREAK, NO_MORE_BREAKS, NO_BREAKS, NO_SHIFT, ERROR,
)
from app.utils.time_helpers import format_time_remaining
from tests.conftest import auth_headers

MON = date(2025, 9, 1)
TUE = date(2025, 9, 2)

DAY_BREAKS = [
    {"break_start": "11:00", "break_end": "11:30", "break_type": "unpaid"},
    {"break_start": "15:00", "break_end": "15:15", "break_type": "paid"},
]
NIGHT_BREAKS = [
    {"break_start": "23:00", "break_end": "23:30", "break_type": "unpaid"},
    {"break_start": "03:00", "break_end": "03:30", "break_type": "meal"},
]


# ── Stub helper ───────────────────────────────────────────────────────────────

def make_shift(shift_date: date, start: str, end: str, breaks=None, status="planned"):
    h_s, m_s = map(int, start.split(":"))
    h_e, m_e = map(int, end.split(":"))
    return SimpleNamespace(
        id=uuid.uuid4(),
        date=shift_date,
        start_time=time(h_s, m_s),
        end_time=time(h_e, m_e),
        break_times=breaks or [],
        position="Reception Officer",
        status=status,
    )


# ── Day shift ─────────────────────────────────────────────────────────────────

def test_on_break_reports_time_left():
    shift = make_shift(MON, "07:00", "19:00", DAY_BREAKS)
    result = resolve_break_status([shift], MON, time(11, 10))
    assert result.status == ON_BREAK
    assert result.on_break
    assert result.message == "You're on unpaid break until 11:30 (20 min left)."


def test_break_end_is_inclusive():
    shift = make_shift(MON, "07:00", "19:00", DAY_BREAKS)
    result = resolve_break_status([shift], MON, time(11, 30))
    assert result.status == ON_BREAK
    assert "(0 min left)" in result.message


def test_before_next_break():
    shift = make_shift(MON, "07:00", "19:00", DAY_BREAKS)
    result = resolve_break_status([shift], MON, time(9, 0))
    assert result.status == BEFORE_NEXT_BREAK
    assert not result.on_break
    assert result.next_break.info().start_time == "11:00"
    assert result.message == "Next unpaid break 11:00-11:30 (in 2h)."


def test_between_breaks_points_at_second():
    shift = make_shift(MON, "07:00", "19:00", DAY_BREAKS)
    result = resolve_break_status([shift], MON, time(12, 0))
    assert result.status == BEFORE_NEXT_BREAK
    assert result.next_break.break_type == "paid"
    assert "(in 3h)" in result.message


def test_no_more_breaks_after_last():
    shift = make_shift(MON, "07:00", "19:00", DAY_BREAKS)
    result = resolve_break_status([shift], MON, time(16, 0))
    assert result.status == NO_MORE_BREAKS
    assert result.shift is shift


def test_no_breaks_scheduled():
    shift = make_shift(MON, "07:00", "19:00")
    result = resolve_break_status([shift], MON, time(9, 0))
    assert result.status == NO_BREAKS


def test_no_shift_found():
    result = resolve_break_status([], MON, time(9, 0))
    assert result.status == NO_SHIFT
    assert result.shift is None


def test_cancelled_shift_ignored():
    shift = make_shift(MON, "07:00", "19:00", DAY_BREAKS, status="cancelled")
    assert resolve_break_status([shift], MON, time(11, 10)).status == NO_SHIFT


# ── Overnight shift ───────────────────────────────────────────────────────────

def test_overnight_break_after_midnight_from_previous_day():
    """Night shift rostered Monday, queried on Tuesday 03:10."""
    shift = make_shift(MON, "19:00", "07:00", NIGHT_BREAKS)
    result = resolve_break_status([shift], TUE, time(3, 10))
    assert result.status == ON_BREAK
    assert result.current_break.break_type == "meal"
    assert "until 03:30" in result.message


def test_overnight_next_break_before_midnight():
    shift = make_shift(MON, "19:00", "07:00", NIGHT_BREAKS)
    result = resolve_break_status([shift], MON, time(22, 0))
    assert result.status == BEFORE_NEXT_BREAK
    assert result.next_break.info().start_time == "23:00"
    assert "(in 1h)" in result.message


def test_overnight_next_break_crosses_into_next_day():
    shift = make_shift(MON, "19:00", "07:00", NIGHT_BREAKS)
    result = resolve_break_status([shift], TUE, time(1, 0))
    assert result.status == BEFORE_NEXT_BREAK
    assert result.next_break.start.date() == TUE
    assert "(in 2h)" in result.message


def test_break_spanning_midnight():
    shift = make_shift(MON, "19:00", "07:00", [
        {"break_start": "23:45", "break_end": "00:15", "break_type": "unpaid"},
    ])
    result = resolve_break_status([shift], TUE, time(0, 5))
    assert result.status == ON_BREAK
    assert "(10 min left)" in result.message


def test_anchor_breaks_sorted_and_malformed_skipped():
    shift = make_shift(MON, "19:00", "07:00", [
        {"break_start": "03:00", "break_end": "03:30"},
        {"break_start": "nonsense", "break_end": "23:30"},
        {"break_start": "23:00", "break_end": "23:30", "break_type": "paid"},
    ])
    breaks = anchor_breaks(shift)
    assert [b.start.time() for b in breaks] == [time(23, 0), time(3, 0)]
    assert breaks[1].break_type == "unpaid"


# ── Shift selection ───────────────────────────────────────────────────────────

def test_split_shift_picks_containing_shift():
    morning = make_shift(MON, "06:00", "10:00", [{"break_start": "08:00", "break_end": "08:15"}])
    afternoon = make_shift(MON, "14:00", "18:00", [{"break_start": "16:00", "break_end": "16:15"}])
    result = resolve_break_status([afternoon, morning], MON, time(15, 0))
    assert result.shift is afternoon
    assert result.status == BEFORE_NEXT_BREAK


def test_gap_between_shifts_falls_back_to_earliest():
    morning = make_shift(MON, "06:00", "10:00", [{"break_start": "08:00", "break_end": "08:15"}])
    afternoon = make_shift(MON, "14:00", "18:00", [{"break_start": "16:00", "break_end": "16:15"}])
    result = resolve_break_status([afternoon, morning], MON, time(12, 0))
    assert result.shift is morning
    assert result.status == NO_MORE_BREAKS


@pytest.mark.parametrize("minutes, expected", [(5, "5 min"), (60, "1h"), (90, "1h 30min")])
def test_format_time_remaining(minutes, expected):
    assert format_time_remaining(minutes) == expected


# ── POST /breaks/check ────────────────────────────────────────────────────────

BREAKS_URL = "/api/v1/breaks"


async def _roster(db, tenant, guard, shift_date=MON, breaks=DAY_BREAKS):
    shift = Shift(
        tenant_id=tenant.id, guard_id=guard.id, date=shift_date,
        start_time=time(7, 0), end_time=time(19, 0), position="Reception Officer",
        break_times=breaks,
    )
    db.add(shift)
    await db.commit()
    return shift


@pytest.mark.asyncio
async def test_check_by_name_fragment(client, db, tenant, guard, guard_token):
    shift = await _roster(db, tenant, guard)

    resp = await client.post(
        f"{BREAKS_URL}/check",
        json={"guard_name": "walker", "date": "2025-09-01", "time": "11:10"},
        headers=auth_headers(guard_token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == ON_BREAK
    assert data["on_break"] is True
    assert data["guard_name"] == "James Walker"
    assert data["current_break"] == {"start_time": "11:00", "end_time": "11:30", "break_type": "unpaid"}
    assert data["current_shift"]["shift_id"] == str(shift.id)


@pytest.mark.asyncio
async def test_check_unknown_guard_no_shift(client, tenant, admin_user, admin_token):
    resp = await client.post(
        f"{BREAKS_URL}/check",
        json={"guard_name": "nobody", "date": "2025-09-01", "time": "11:10"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == NO_SHIFT
    assert data["guard_id"] is None


@pytest.mark.asyncio
async def test_check_requires_guard(client, admin_user, admin_token):
    resp = await client.post(f"{BREAKS_URL}/check", json={"guard_name": "  "}, headers=auth_headers(admin_token))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_check_invalid_time(client, guard, guard_token):
    resp = await client.post(
        f"{BREAKS_URL}/check",
        json={"guard_id": str(guard.id), "time": "eleven"},
        headers=auth_headers(guard_token),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_every_check_is_recorded(client, db, tenant, guard, guard_token, admin_user, admin_token):
    await _roster(db, tenant, guard)
    await client.post(
        f"{BREAKS_URL}/check",
        json={"guard_id": str(guard.id), "date": "2025-09-01", "time": "16:00"},
        headers=auth_headers(guard_token),
    )

    rows = (await db.execute(select(BreakCheckQuery))).scalars().all()
    assert len(rows) == 1
    assert rows[0].status == NO_MORE_BREAKS

    resp = await client.get(
        f"{BREAKS_URL}/queries", params={"date": "2025-09-01"}, headers=auth_headers(admin_token)
    )
    assert resp.status_code == 200
    assert resp.json()[0]["guard_id"] == str(guard.id)


@pytest.mark.asyncio
async def test_queries_forbidden_for_guard(client, guard, guard_token):
    resp = await client.get(f"{BREAKS_URL}/queries", headers=auth_headers(guard_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("fragment", ["%", "j_mes"])
async def test_like_wildcards_match_nobody(client, db, tenant, guard, guard_token, fragment):
    await _roster(db, tenant, guard)

    resp = await client.post(
        f"{BREAKS_URL}/check",
        json={"guard_name": fragment, "date": "2025-09-01", "time": "11:10"},
        headers=auth_headers(guard_token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == NO_SHIFT
    assert data["guard_id"] is None


@pytest.mark.asyncio
async def test_database_failure_returns_error_status(db, tenant, guard, monkeypatch):
    async def broken_lookup(self, *args, **kwargs):
        raise OperationalError("SELECT guards", {}, Exception("database is locked"))

    monkeypatch.setattr(BreakService, "find_guard", broken_lookup)

    result = await BreakService(db).check(tenant.id, guard_name="walker", query_date=MON, query_time=time(11, 10))
    assert result.status == ERROR
    assert result.on_break is False
    assert result.message.startswith("Break status could not be checked right now.")
