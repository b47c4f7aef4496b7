"""
Tests for /api/v1/visitors – check-in, check-out by id and by name, on-site list.
"""
import pytest

from tests.conftest import auth_headers

VISITORS_URL = "/api/v1/visitors"


async def check_in(client, token, **fields):
    payload = {"visitor_name": "Sam Contractor", "company": "Acme Lifts", "purpose": "Lift service", **fields}
    resp = await client.post(VISITORS_URL, json=payload, headers=auth_headers(token))
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_check_in_normalises_fields(client, guard, guard_token):
    data = await check_in(client, guard_token, visitor_name="  Sam Contractor ", vehicle_reg=" ab12 cde ")
    assert data["visitor_name"] == "Sam Contractor"
    assert data["vehicle_reg"] == "AB12 CDE"
    assert data["on_site"] is True
    assert data["departure_time"] is None


@pytest.mark.asyncio
async def test_blank_name_rejected(client, guard, guard_token):
    resp = await client.post(VISITORS_URL, json={"visitor_name": "   "}, headers=auth_headers(guard_token))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_checkout_by_id_once(client, guard, guard_token):
    visit = await check_in(client, guard_token)

    resp = await client.post(f"{VISITORS_URL}/{visit['id']}/checkout", headers=auth_headers(guard_token))
    assert resp.status_code == 200
    assert resp.json()["on_site"] is False

    resp = await client.post(f"{VISITORS_URL}/{visit['id']}/checkout", headers=auth_headers(guard_token))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_checkout_by_name_is_case_insensitive(client, guard, guard_token):
    visit = await check_in(client, guard_token)

    resp = await client.post(
        f"{VISITORS_URL}/checkout-by-name", json={"visitor_name": "sam contractor"}, headers=auth_headers(guard_token)
    )
    assert resp.status_code == 200
    assert resp.json()["id"] == visit["id"]

    resp = await client.post(
        f"{VISITORS_URL}/checkout-by-name", json={"visitor_name": "Sam Contractor"}, headers=auth_headers(guard_token)
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No open visit found for Sam Contractor"


@pytest.mark.asyncio
async def test_on_site_and_today_lists(client, guard, guard_token):
    first = await check_in(client, guard_token)
    second = await check_in(client, guard_token, visitor_name="Priya Auditor", company="ISO Certifiers")
    await client.post(f"{VISITORS_URL}/{first['id']}/checkout", headers=auth_headers(guard_token))

    resp = await client.get(f"{VISITORS_URL}/on-site", headers=auth_headers(guard_token))
    assert [v["id"] for v in resp.json()] == [second["id"]]

    resp = await client.get(f"{VISITORS_URL}/today", headers=auth_headers(guard_token))
    assert len(resp.json()) == 2
