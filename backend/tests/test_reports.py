"""
Tests for the daily summary and the weekly client report.
"""
from datetime import date, time

import pytest

from app.core.config import settings
from app.models.incident import IncidentReport
from app.models.kpi import DailyKpiMetric
from app.services.ai_client import AIServiceError
from app.services.report_service import generate_daily_summary, previous_week, template_summary
from tests.conftest import auth_headers

REPORTS_URL = "/api/v1/reports"


class FailingClient:
    def __init__(self, provider="openai"):
        pass

    async def complete(self, *args, **kwargs):
        raise AIServiceError("timeout")


def test_previous_week():
    assert previous_week(date(2025, 9, 10)) == (date(2025, 9, 1), date(2025, 9, 7))
    assert previous_week(date(2025, 9, 8)) == (date(2025, 9, 1), date(2025, 9, 7))


def test_template_summary_without_incidents():
    text = template_summary({
        "date": "2025-09-01", "edob_entries": 0, "edob_by_type": {}, "incidents": [],
        "visitors": 0, "shift_starts": 0, "no_shows": [],
    })
    assert text.startswith("Daily summary for Monday 01/09/2025.")
    assert "No incidents were reported." in text


@pytest.mark.asyncio
async def test_daily_summary_template_fallback_is_rewritten(db, tenant):
    db.add(IncidentReport(
        tenant_id=tenant.id, incident_date=date(2025, 9, 1), incident_time=time(22, 15),
        location="Loading bay", incident_type="Trespass", description="Male found after hours.",
        people_involved=[{"name": "Unknown male", "role": "Suspect"}], actions_taken="Escorted off site.",
    ))
    await db.commit()

    summary = await generate_daily_summary(db, tenant.id, date(2025, 9, 1), client_factory=FailingClient)
    assert summary.source == "template"
    assert "1 incident(s) reported: Trespass at Loading bay (22:15)." in summary.summary_text

    again = await generate_daily_summary(db, tenant.id, date(2025, 9, 1), client_factory=FailingClient)
    assert again.id == summary.id


@pytest.mark.asyncio
async def test_daily_endpoints(client, manager_token, monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    resp = await client.post(
        f"{REPORTS_URL}/daily/generate", params={"summary_date": "2025-09-01"}, headers=auth_headers(manager_token)
    )
    assert resp.status_code == 200
    assert resp.json()["stats"]["edob_entries"] == 0

    resp = await client.get(f"{REPORTS_URL}/daily/2025-09-01", headers=auth_headers(manager_token))
    assert resp.status_code == 200
    resp = await client.get(f"{REPORTS_URL}/daily/2025-09-02", headers=auth_headers(manager_token))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_weekly_report_normalises_to_monday(client, db, tenant, manager_token):
    db.add(DailyKpiMetric(
        tenant_id=tenant.id, report_date=date(2025, 9, 2), total_patrols=12, breaks_logged=2,
        guards_on_duty=3, patrol_target_pct=80, patrols_per_guard=4, uniform_compliance_pct=100,
    ))
    await db.commit()

    resp = await client.post(
        f"{REPORTS_URL}/weekly", json={"week_start": "2025-09-03"}, headers=auth_headers(manager_token)
    )
    assert resp.status_code == 200
    data = resp.json()
    assert (data["week_start"], data["week_end"]) == ("2025-09-01", "2025-09-07")
    assert "Total patrols: **12**" in data["markdown"]
    assert "No incidents were reported." in data["markdown"]

    resp = await client.get(f"{REPORTS_URL}/weekly/{data['id']}/pdf", headers=auth_headers(manager_token))
    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == 'attachment; filename="weekly_report_2025-09-01.pdf"'
    assert resp.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_weekly_report_for_site(client, site, manager_token):
    resp = await client.post(
        f"{REPORTS_URL}/weekly", json={"week_start": "2025-09-01", "site_id": str(site.id)},
        headers=auth_headers(manager_token),
    )
    assert resp.json()["client_name"] == "Riverside Estates Ltd"
    assert "# Weekly Security Report – Riverside Estates Ltd" in resp.json()["markdown"]


@pytest.mark.asyncio
async def test_weekly_report_unknown_site(client, manager_token):
    resp = await client.post(
        f"{REPORTS_URL}/weekly",
        json={"week_start": "2025-09-01", "site_id": "00000000-0000-0000-0000-000000000000"},
        headers=auth_headers(manager_token),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_reports_forbidden_for_guard(client, guard_token):
    resp = await client.post(f"{REPORTS_URL}/weekly", json={}, headers=auth_headers(guard_token))
    assert resp.status_code == 403
