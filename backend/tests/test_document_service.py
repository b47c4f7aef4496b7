"""
Tests for AI-assisted documents – text helpers, template fallbacks, SOP
structuring, the knowledge base merge and the AI client against a mock
transport.
"""
import json
from datetime import date, time

import httpx
import pytest
from sqlalchemy import select

from app.core.config import settings
from app.models.incident import IncidentReport
from app.models.knowledge import KnowledgeTopic, SystemTemplate
from app.schemas.ai import TenderRequest, TopicNode
from app.services.ai_client import AIClient, AIServiceError, AINotConfiguredError, TemplateNotFoundError
from app.services.document_service import (
    DocumentService, TENDER_TEMPLATE_NAME,
    ensure_unique_ids, fallback_email, kebab_case, snake_case, strip_code_fences,
)
from tests.conftest import auth_headers


class FakeClient:
    """Stands in for AIClient; returns a canned completion or raises."""

    def __init__(self, reply: str | None = None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls = []

    def __call__(self, provider="openai"):
        self.provider = provider
        return self

    async def complete(self, system_prompt, user_prompt, temperature=0.3, max_tokens=1500):
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.reply


# ── Text helpers ──────────────────────────────────────────────────────────────

def test_case_helpers():
    assert snake_case("Riverside Estates Ltd.") == "riverside_estates_ltd"
    assert kebab_case("Fire  Alarm – Evacuation!") == "fire-alarm-evacuation"
    assert kebab_case("???") == "topic"


def test_strip_code_fences():
    assert strip_code_fences('```json\n[{"title": "A"}]\n```') == '[{"title": "A"}]'
    assert strip_code_fences('[{"title": "A"}]') == '[{"title": "A"}]'


def test_ensure_unique_ids_across_tree():
    nodes = [
        TopicNode(title="Lock Up", children=[TopicNode(title="Lock up")]),
        TopicNode(title="Lock-up"),
    ]
    out = ensure_unique_ids(nodes)
    assert out[0].id == "lock-up"
    assert out[0].children[0].id == "lock-up-1"
    assert out[1].id == "lock-up-2"


def test_fallback_email_shape():
    email = fallback_email("gate 3 left open overnight", "Sarah", "James Walker")
    assert email.startswith("Dear Sarah,")
    assert "Gate 3 left open overnight." in email
    assert email.endswith("James Walker\nSecurity Team")


# ── DocumentService ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_format_email_uses_ai(db):
    fake = FakeClient(reply="Dear Sarah, ...")
    result = await DocumentService(db, client_factory=fake).format_email("gate open", "Sarah", "James")
    assert (result.text, result.source) == ("Dear Sarah, ...", "ai")
    assert 'Raw message: "gate open"' in fake.calls[0][1]


@pytest.mark.asyncio
async def test_format_email_falls_back_without_ai(db):
    fake = FakeClient(error=AINotConfiguredError("openai API key is not configured"))
    result = await DocumentService(db, client_factory=fake).format_email("gate open", "Sarah", "James")
    assert result.source == "template"
    assert result.text.startswith("Dear Sarah,")


@pytest.mark.asyncio
async def test_polish_incident_falls_back(db):
    incident = IncidentReport(
        incident_date=date(2025, 9, 1), incident_time=time(22, 15), location="Loading bay",
        incident_type="Trespass", description="Male found in loading bay after hours.",
        people_involved=[{"name": "Unknown male", "role": "Suspect"}],
        actions_taken="Escorted off site.", police_involved=True, police_details="CAD 1234",
        injuries=False, follow_up_required=False,
    )
    fake = FakeClient(error=AIServiceError("timeout"))
    result = await DocumentService(db, client_factory=fake).polish_incident(incident)
    assert result.source == "template"
    assert result.text.startswith('On 01/09/2025 at 22:15, an incident of type "Trespass" occurred at Loading bay.')
    assert "Persons involved: Unknown male." in result.text
    assert "Police were involved. CAD 1234" in result.text


@pytest.mark.asyncio
async def test_tender_requires_template(db, tenant):
    req = TenderRequest(
        client_name="Riverside Estates", site_address="1 Riverside Way", guarding_hours_per_week=168,
        key_risks="Theft", mobilisation_date=date(2025, 10, 1),
    )
    with pytest.raises(TemplateNotFoundError):
        await DocumentService(db, client_factory=FakeClient(reply="x")).generate_tender(tenant.id, req)


@pytest.mark.asyncio
async def test_tender_merges_boilerplate(db, tenant):
    db.add(SystemTemplate(tenant_id=tenant.id, name=TENDER_TEMPLATE_NAME, content="We are SIA ACS approved."))
    await db.commit()
    req = TenderRequest(
        client_name="Riverside Estates", site_address="1 Riverside Way", guarding_hours_per_week=168,
        key_risks="Theft", mobilisation_date=date(2025, 10, 1),
    )
    fake = FakeClient(reply="# Tender")
    markdown, filename = await DocumentService(db, client_factory=fake).generate_tender(tenant.id, req)
    assert markdown == "# Tender"
    assert filename == "tender_draft_riverside_estates.md"
    prompt = fake.calls[0][1]
    assert "We are SIA ACS approved." in prompt
    assert "Mobilisation Date: 01/10/2025" in prompt
    assert "Guarding Hours Per Week: 168" in prompt


@pytest.mark.asyncio
async def test_structure_sop_parses_fenced_json(db):
    reply = "```json\n" + json.dumps([
        {"id": "x", "title": "Opening Up", "content": "Unlock gates", "children": [
            {"title": "Alarm", "content": "Unset alarm"},
        ]},
        {"title": "Opening up", "content": "Duplicate title"},
    ]) + "\n```"
    topics = await DocumentService(db, client_factory=FakeClient(reply=reply)).structure_sop("raw")
    assert [t.id for t in topics] == ["opening-up", "opening-up-1"]
    assert topics[0].children[0].id == "alarm"


@pytest.mark.asyncio
async def test_structure_sop_invalid_json(db):
    with pytest.raises(AIServiceError):
        await DocumentService(db, client_factory=FakeClient(reply="Sorry, I can't")).structure_sop("raw")


@pytest.mark.asyncio
async def test_save_topics_merges_by_id(db, tenant):
    svc = DocumentService(db, client_factory=FakeClient())
    created, updated = await svc.save_topics(tenant.id, [
        TopicNode(title="Opening Up", children=[TopicNode(title="Alarm")]),
    ])
    assert (created, updated) == (2, 0)

    created, updated = await svc.save_topics(tenant.id, [
        TopicNode(id="alarm", title="Alarm Panel", content="Code in safe"),
        TopicNode(title="Lock Up"),
    ])
    assert (created, updated) == (1, 1)

    tree = await svc.topic_tree(tenant.id)
    assert [t.id for t in tree] == ["opening-up", "lock-up"]
    assert tree[0].children[0].title == "Alarm Panel"


@pytest.mark.asyncio
async def test_save_topics_unknown_parent(db, tenant):
    with pytest.raises(LookupError):
        await DocumentService(db).save_topics(tenant.id, [TopicNode(title="A")], parent_slug="missing")


# ── AIClient ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_ai_client_not_configured(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    with pytest.raises(AINotConfiguredError):
        await AIClient("openai").complete("s", "u")


@pytest.mark.asyncio
async def test_ai_client_posts_chat_completion(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  Done.  "}}]})

    client = AIClient("openai", transport=httpx.MockTransport(handler))
    assert await client.complete("system", "user", max_tokens=50) == "Done."
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["messages"][1] == {"role": "user", "content": "user"}
    assert seen["body"]["max_tokens"] == 50


@pytest.mark.asyncio
async def test_ai_client_error_status(monkeypatch):
    monkeypatch.setattr(settings, "PERPLEXITY_API_KEY", "pplx-test")
    client = AIClient("perplexity", transport=httpx.MockTransport(lambda r: httpx.Response(429, text="slow down")))
    with pytest.raises(AIServiceError):
        await client.complete("s", "u")


# ── API ───────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_format_email_endpoint_without_key(client, guard, guard_token, monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    resp = await client.post(
        "/api/v1/ai/format-email",
        json={"text": "alarm reset zone 4", "recipient": "Control", "guard_name": "James Walker"},
        headers=auth_headers(guard_token),
    )
    assert resp.status_code == 200
    assert resp.json()["source"] == "template"


@pytest.mark.asyncio
async def test_tender_endpoint_missing_template(client, manager_user, manager_token):
    resp = await client.post(
        "/api/v1/ai/tender",
        json={"client_name": "Riverside", "site_address": "1 Riverside Way", "guarding_hours_per_week": 84,
              "key_risks": "Theft", "mobilisation_date": "2025-10-01"},
        headers=auth_headers(manager_token),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_knowledge_topics_roundtrip(client, db, manager_user, manager_token):
    resp = await client.post(
        "/api/v1/knowledge/topics",
        json={"topics": [{"title": "Fire Procedure", "content": "Call 999"}]},
        headers=auth_headers(manager_token),
    )
    assert resp.json() == {"created": 1, "updated": 0}

    resp = await client.get("/api/v1/knowledge/topics", headers=auth_headers(manager_token))
    assert resp.json()[0]["id"] == "fire-procedure"
    rows = (await db.execute(select(KnowledgeTopic))).scalars().all()
    assert len(rows) == 1
