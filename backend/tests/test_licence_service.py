"""
Tests for SIA licence tracking – classify_expiry, the daily expiry job and
/api/v1/licences.
"""
from datetime import date, timedelta

import pytest
from sqlalchemy import select

from app.models.licence import SiaLicence, LicenceAlert
from app.services.licence_service import (
    classify_expiry, run_licence_expiry_check,
    LEVEL_EXPIRED, LEVEL_CRITICAL, LEVEL_WARNING, LEVEL_INFO,
)
from tests.conftest import auth_headers

TODAY = date(2025, 9, 1)
LICENCES_URL = "/api/v1/licences"


# ── classify_expiry ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("days, level", [
    (-1, LEVEL_EXPIRED),
    (0, LEVEL_CRITICAL),
    (30, LEVEL_CRITICAL),
    (31, LEVEL_WARNING),
    (60, LEVEL_WARNING),
    (61, LEVEL_INFO),
    (90, LEVEL_INFO),
    (91, None),
])
def test_classify_expiry_thresholds(days, level):
    assert classify_expiry(days) == level


# ── run_licence_expiry_check ──────────────────────────────────────────────────

async def _licence(db, tenant, guard, number: str, days: int) -> SiaLicence:
    licence = SiaLicence(
        tenant_id=tenant.id, guard_id=guard.id, licence_number=number,
        expiry_date=TODAY + timedelta(days=days),
    )
    db.add(licence)
    await db.commit()
    return licence


@pytest.mark.asyncio
async def test_expiry_check_creates_alerts_and_expires(db, tenant, guard):
    valid = await _licence(db, tenant, guard, "1013-A", 200)
    critical = await _licence(db, tenant, guard, "1013-B", 12)
    expired = await _licence(db, tenant, guard, "1013-C", -3)

    result = await run_licence_expiry_check(db, tenant.id, today=TODAY)
    assert result.checked == 3
    assert result.alerts_created == 2
    assert result.expired == 1

    alerts = (await db.execute(select(LicenceAlert).order_by(LicenceAlert.days_until_expiry))).scalars().all()
    assert [(a.licence_id, a.level) for a in alerts] == [
        (expired.id, LEVEL_EXPIRED), (critical.id, LEVEL_CRITICAL),
    ]
    assert "expired on 29/08/2025 (3 days ago)" in alerts[0].message
    assert "(in 12 days)" in alerts[1].message

    await db.refresh(expired)
    await db.refresh(valid)
    assert expired.status == "Expired"
    assert valid.status == "Active"


@pytest.mark.asyncio
async def test_rerun_replaces_unacknowledged_alerts(db, tenant, guard):
    await _licence(db, tenant, guard, "1013-D", 45)

    await run_licence_expiry_check(db, tenant.id, today=TODAY)
    await run_licence_expiry_check(db, tenant.id, today=TODAY + timedelta(days=1))

    alerts = (await db.execute(select(LicenceAlert))).scalars().all()
    assert len(alerts) == 1
    assert alerts[0].days_until_expiry == 44


@pytest.mark.asyncio
async def test_expired_licence_not_rechecked(db, tenant, guard):
    await _licence(db, tenant, guard, "1013-E", -1)
    await run_licence_expiry_check(db, tenant.id, today=TODAY)

    second = await run_licence_expiry_check(db, tenant.id, today=TODAY)
    assert second.checked == 0


# ── API ───────────────────────────────────────────────────────────────────────

LICENCE_PAYLOAD = {
    "licence_number": "1013 0000 4001 0000",
    "licence_type": "Door Supervisor",
    "expiry_date": "2026-09-01",
}


@pytest.mark.asyncio
async def test_create_licence_and_duplicate(client, guard, manager_user, manager_token):
    payload = {**LICENCE_PAYLOAD, "guard_id": str(guard.id)}
    resp = await client.post(LICENCES_URL, json=payload, headers=auth_headers(manager_token))
    assert resp.status_code == 201
    assert resp.json()["status"] == "Active"

    resp = await client.post(LICENCES_URL, json=payload, headers=auth_headers(manager_token))
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_create_licence_invalid_status(client, guard, manager_user, manager_token):
    payload = {**LICENCE_PAYLOAD, "guard_id": str(guard.id), "status": "Lapsed"}
    resp = await client.post(LICENCES_URL, json=payload, headers=auth_headers(manager_token))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_guard_sees_only_own_licences(client, db, tenant, guard, guard_token):
    await _licence(db, tenant, guard, "1013-F", 100)
    resp = await client.get(LICENCES_URL, headers=auth_headers(guard_token))
    assert resp.status_code == 200
    assert [l["licence_number"] for l in resp.json()] == ["1013-F"]


@pytest.mark.asyncio
async def test_acknowledge_alert_hides_it(client, db, tenant, guard, manager_user, manager_token):
    await _licence(db, tenant, guard, "1013-G", -2)
    await run_licence_expiry_check(db, tenant.id, today=TODAY)

    resp = await client.get(f"{LICENCES_URL}/alerts", headers=auth_headers(manager_token))
    alerts = resp.json()
    assert len(alerts) == 1

    resp = await client.post(
        f"{LICENCES_URL}/alerts/{alerts[0]['id']}/acknowledge", headers=auth_headers(manager_token)
    )
    assert resp.status_code == 200
    assert resp.json()["acknowledged"] is True
    assert resp.json()["acknowledged_by"] == str(manager_user.id)

    resp = await client.get(f"{LICENCES_URL}/alerts", headers=auth_headers(manager_token))
    assert resp.json() == []


@pytest.mark.asyncio
async def test_delete_licence_with_alerts(client, db, tenant, guard, admin_user, admin_token):
    licence = await _licence(db, tenant, guard, "1013-H", 10)
    await run_licence_expiry_check(db, tenant.id, today=TODAY)

    resp = await client.delete(f"{LICENCES_URL}/{licence.id}", headers=auth_headers(admin_token))
    assert resp.status_code == 204

    assert (await db.execute(select(LicenceAlert))).scalars().all() == []


@pytest.mark.asyncio
async def test_run_expiry_check_endpoint(client, db, tenant, guard, admin_user, admin_token):
    await _licence(db, tenant, guard, "1013-I", 5000)
    resp = await client.post(f"{LICENCES_URL}/run-expiry-check", headers=auth_headers(admin_token))
    assert resp.status_code == 200
    assert resp.json() == {"checked": 1, "alerts_created": 0, "expired": 0, "notified": 0}
