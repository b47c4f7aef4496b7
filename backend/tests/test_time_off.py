"""
Tests for /api/v1/time-off and /api/v1/rota/constraints.
"""
from datetime import date, time

import pytest
from sqlalchemy import select

from app.models.notification import NotificationLog
from app.models.shift import Shift
from tests.conftest import auth_headers

TIME_OFF_URL = "/api/v1/time-off"
ROTA_URL = "/api/v1/rota/constraints"


async def request_off(client, token, **overrides):
    payload = {"start_date": "2025-09-08", "end_date": "2025-09-12", "reason": "Family holiday", **overrides}
    resp = await client.post(TIME_OFF_URL, json=payload, headers=auth_headers(token))
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_guard_requests_time_off(client, guard, guard_token):
    data = await request_off(client, guard_token)
    assert data["guard_id"] == str(guard.id)
    assert data["status"] == "pending"


@pytest.mark.asyncio
async def test_reversed_range_rejected(client, guard, guard_token):
    resp = await client.post(
        TIME_OFF_URL, json={"start_date": "2025-09-12", "end_date": "2025-09-08"}, headers=auth_headers(guard_token)
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_manager_decides_once_and_guard_is_notified(client, db, guard, guard_token, manager_token):
    req = await request_off(client, guard_token)

    resp = await client.put(
        f"{TIME_OFF_URL}/{req['id']}/decision", json={"approve": True, "note": "Enjoy"},
        headers=auth_headers(manager_token),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    assert resp.json()["decision_note"] == "Enjoy"

    resp = await client.put(
        f"{TIME_OFF_URL}/{req['id']}/decision", json={"approve": False}, headers=auth_headers(manager_token)
    )
    assert resp.status_code == 400

    logs = (await db.execute(select(NotificationLog).where(NotificationLog.guard_id == guard.id))).scalars().all()
    assert len(logs) == 1


@pytest.mark.asyncio
async def test_guard_cannot_decide(client, guard, guard_token):
    req = await request_off(client, guard_token)
    resp = await client.put(
        f"{TIME_OFF_URL}/{req['id']}/decision", json={"approve": True}, headers=auth_headers(guard_token)
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_guard_withdraws_only_pending(client, guard, guard_token, manager_token):
    first = await request_off(client, guard_token)
    second = await request_off(client, guard_token, start_date="2025-10-01", end_date="2025-10-02")
    await client.put(
        f"{TIME_OFF_URL}/{second['id']}/decision", json={"approve": False}, headers=auth_headers(manager_token)
    )

    resp = await client.delete(f"{TIME_OFF_URL}/{first['id']}", headers=auth_headers(guard_token))
    assert resp.status_code == 204
    resp = await client.delete(f"{TIME_OFF_URL}/{second['id']}", headers=auth_headers(guard_token))
    assert resp.status_code == 400

    resp = await client.get(TIME_OFF_URL, headers=auth_headers(guard_token))
    assert [r["id"] for r in resp.json()] == [second["id"]]


# ── Rota constraints ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_rota_constraints_bundle(client, db, tenant, guard, guard_token, manager_token, site):
    req = await request_off(client, guard_token)
    await client.put(
        f"{TIME_OFF_URL}/{req['id']}/decision", json={"approve": True}, headers=auth_headers(manager_token)
    )
    db.add(Shift(tenant_id=tenant.id, site_id=site.id, guard_id=guard.id, date=date(2025, 9, 2),
                 start_time=time(7, 0), end_time=time(19, 0)))
    await db.commit()

    resp = await client.get(
        ROTA_URL,
        params={"site_id": str(site.id), "start_date": "2025-09-01", "end_date": "2025-09-30"},
        headers=auth_headers(manager_token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [g["name"] for g in data["guards"]] == ["James Walker"]
    assert data["time_off"][0]["start_date"] == "2025-09-08"
    assert len(data["existing_shifts"]) == 1


@pytest.mark.asyncio
async def test_rota_range_capped(client, manager_token, site):
    resp = await client.get(
        ROTA_URL,
        params={"site_id": str(site.id), "start_date": "2025-09-01", "end_date": "2025-12-01"},
        headers=auth_headers(manager_token),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_rota_forbidden_for_guard(client, guard_token, site):
    resp = await client.get(
        ROTA_URL,
        params={"site_id": str(site.id), "start_date": "2025-09-01", "end_date": "2025-09-07"},
        headers=auth_headers(guard_token),
    )
    assert resp.status_code == 403
