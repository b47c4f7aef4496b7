"""
AI-assisted documents: tender drafts, professional e-mails, incident
narratives and SOP topic trees for the knowledge base.

Every generator that can work without AI (e-mail, incident narrative) falls
back to a deterministic template when the provider is unconfigured or fails.
"""
import json
import logging
import re
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.incident import IncidentReport
from app.models.knowledge import KnowledgeTopic, SystemTemplate
from app.schemas.ai import TenderRequest, TopicNode
from app.services.ai_client import AIClient, AIServiceError, TemplateNotFoundError

logger = logging.getLogger(__name__)

TENDER_TEMPLATE_NAME = "tender_boilerplate_v1"

TENDER_SYSTEM_PROMPT = (
    "You are a professional UK security bid writer. You write tender responses for "
    "manned guarding contracts in clear British English, in Markdown, with a factual tone. "
    "Merge the company boilerplate with the client details. Never invent accreditations, "
    "prices or staff names that are not given."
)

EMAIL_SYSTEM_PROMPT = (
    "You are a professional email formatter for security guards. Convert shorthand security "
    "messages into professional emails. Add a proper greeting using the recipient's name, "
    "rewrite the message in professional language while keeping all important details, "
    "add a professional closing and sign with the guard's name and \"Security Team\". "
    "Keep it concise and use appropriate security/facility management terminology."
)

INCIDENT_SYSTEM_PROMPT = (
    "You are a UK security supervisor writing incident reports for clients and insurers. "
    "Rewrite the facts you are given into a clear, neutral, chronological narrative in the "
    "third person. Do not add facts that are not in the input."
)

SOP_SYSTEM_PROMPT = (
    "You turn raw standard operating procedure text for a security site into a topic tree. "
    "Reply with JSON only: a list of objects with keys \"id\" (kebab-case), \"title\", "
    "\"content\" (the instruction text) and \"children\" (same shape, may be empty)."
)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


# ── Text helpers ──────────────────────────────────────────────────────────────

def snake_case(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", value.lower()).strip("_")


def kebab_case(value: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", value.lower())
    slug = re.sub(r"[\s-]+", "-", slug).strip("-")
    return slug or "topic"


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```)."""
    return _FENCE_RE.sub("", text.strip()).strip()


def _unique(base: str, taken: set[str]) -> str:
    candidate, n = base, 0
    while candidate in taken:
        n += 1
        candidate = f"{base}-{n}"
    taken.add(candidate)
    return candidate


def ensure_unique_ids(nodes: list[TopicNode], taken: set[str] | None = None) -> list[TopicNode]:
    """
    Re-derive kebab-case ids from titles, unique across the whole tree.
    Collisions get -1, -2, ... suffixes in depth-first order.
    """
    taken = set() if taken is None else taken
    out = []
    for node in nodes:
        node_id = _unique(kebab_case(node.title), taken)
        children = ensure_unique_ids(node.children, taken)
        out.append(TopicNode(id=node_id, title=node.title, content=node.content, children=children))
    return out


def fallback_email(text: str, recipient: str, guard_name: str) -> str:
    body = text.strip()
    body = body[:1].upper() + body[1:]
    if not body.endswith("."):
        body += "."
    return (
        f"Dear {recipient},\n\n"
        "I hope this email finds you well.\n\n"
        f"{body}\n\n"
        "Please let me know if you need any additional information or if there are any "
        "actions you would like me to take regarding this matter.\n\n"
        "Best regards,\n"
        f"{guard_name}\n"
        "Security Team"
    )


def incident_facts(incident: IncidentReport) -> str:
    people = ", ".join(
        f"{p.get('name')} ({p.get('role')})" if p.get("role") else str(p.get("name"))
        for p in incident.people_involved or []
    )
    lines = [
        f"Date: {incident.incident_date.strftime('%d/%m/%Y')}",
        f"Time: {incident.incident_time.strftime('%H:%M')}",
        f"Location: {incident.location}",
        f"Type: {incident.incident_type}",
        f"Description: {incident.description}",
        f"People involved: {people or 'None recorded'}",
        f"Actions taken: {incident.actions_taken or 'None recorded'}",
        f"Witnesses: {incident.witnesses or 'None'}",
        f"Injuries: {'Yes - ' + (incident.injury_details or 'no details') if incident.injuries else 'No'}",
        f"Police involved: {'Yes - ' + (incident.police_details or 'no details') if incident.police_involved else 'No'}",
        f"Follow-up required: {'Yes - ' + (incident.follow_up_details or 'no details') if incident.follow_up_required else 'No'}",
    ]
    return "\n".join(lines)


def fallback_incident_narrative(incident: IncidentReport) -> str:
    parts = [
        f"On {incident.incident_date.strftime('%d/%m/%Y')} at {incident.incident_time.strftime('%H:%M')}, "
        f"an incident of type \"{incident.incident_type}\" occurred at {incident.location}.",
        incident.description.strip(),
    ]
    names = [str(p.get("name")) for p in incident.people_involved or [] if p.get("name")]
    if names:
        parts.append(f"Persons involved: {', '.join(names)}.")
    if incident.actions_taken:
        parts.append(f"Actions taken by security: {incident.actions_taken.strip()}")
    if incident.witnesses:
        parts.append(f"Witnesses: {incident.witnesses.strip()}")
    if incident.injuries:
        parts.append(f"Injuries were reported. {incident.injury_details or ''}".strip())
    if incident.police_involved:
        parts.append(f"Police were involved. {incident.police_details or ''}".strip())
    if incident.follow_up_required:
        parts.append(f"Follow-up is required. {incident.follow_up_details or ''}".strip())
    return "\n\n".join(parts)


# ── Service ───────────────────────────────────────────────────────────────────

@dataclass
class GeneratedText:
    text: str
    source: str  # ai | template


class DocumentService:

    def __init__(self, db: AsyncSession, client_factory=AIClient):
        self.db = db
        self._client_factory = client_factory

    async def get_template(self, tenant_id: uuid.UUID, name: str) -> SystemTemplate:
        result = await self.db.execute(
            select(SystemTemplate).where(
                SystemTemplate.tenant_id == tenant_id, SystemTemplate.name == name
            )
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise TemplateNotFoundError(f"System template '{name}' not found")
        return template

    async def generate_tender(self, tenant_id: uuid.UUID, req: TenderRequest) -> tuple[str, str]:
        """Returns (markdown, suggested file name)."""
        boilerplate = await self.get_template(tenant_id, TENDER_TEMPLATE_NAME)
        user_prompt = (
            "Company boilerplate:\n"
            f"{boilerplate.content}\n\n"
            "Client details:\n"
            f"Client: {req.client_name}\n"
            f"Site Address: {req.site_address}\n"
            f"Guarding Hours Per Week: {req.guarding_hours_per_week:g}\n"
            f"Key Risks: {req.key_risks}\n"
            f"Mobilisation Date: {req.mobilisation_date.strftime('%d/%m/%Y')}\n"
            f"Site Specifics: {req.site_specifics or 'None provided'}\n\n"
            "Write the complete tender response in Markdown."
        )
        client = self._client_factory(req.provider)
        markdown = await client.complete(TENDER_SYSTEM_PROMPT, user_prompt, temperature=0.2, max_tokens=3000)
        return markdown, f"tender_draft_{snake_case(req.client_name)}.md"

    async def format_email(self, text: str, recipient: str, guard_name: str, tone: str = "professional") -> GeneratedText:
        client = self._client_factory("openai")
        user_prompt = (
            "Please rewrite this security message into a professional email:\n\n"
            f"Raw message: \"{text}\"\n"
            f"Recipient: {recipient}\n"
            f"Guard name: {guard_name}\n"
            f"Tone: {tone}\n\n"
            "Format this as a complete professional email with greeting, body, and signature."
        )
        try:
            return GeneratedText(await client.complete(EMAIL_SYSTEM_PROMPT, user_prompt, max_tokens=500), "ai")
        except AIServiceError as e:
            logger.warning("Email formatter falling back to template: %s", e)
            return GeneratedText(fallback_email(text, recipient, guard_name), "template")

    async def polish_incident(self, incident: IncidentReport) -> GeneratedText:
        client = self._client_factory("openai")
        try:
            text = await client.complete(
                INCIDENT_SYSTEM_PROMPT, incident_facts(incident), temperature=0.2, max_tokens=1200
            )
            return GeneratedText(text, "ai")
        except AIServiceError as e:
            logger.warning("Incident %s narrative falling back to template: %s", incident.id, e)
            return GeneratedText(fallback_incident_narrative(incident), "template")

    async def structure_sop(self, raw_text: str, provider: str = "openai") -> list[TopicNode]:
        client = self._client_factory(provider)
        completion = await client.complete(SOP_SYSTEM_PROMPT, raw_text, temperature=0.2, max_tokens=3000)
        try:
            data = json.loads(strip_code_fences(completion))
        except json.JSONDecodeError as e:
            raise AIServiceError("AI returned invalid JSON for the SOP structure") from e
        if isinstance(data, dict):
            data = data.get("topics", [data])
        if not isinstance(data, list):
            raise AIServiceError("AI returned an unexpected SOP structure")
        try:
            nodes = [TopicNode.model_validate(item) for item in data]
        except ValueError as e:
            raise AIServiceError("AI returned an unexpected SOP structure") from e
        return ensure_unique_ids(nodes)

    # ── Knowledge base ────────────────────────────────────────────────────────

    async def _topics(self, tenant_id: uuid.UUID) -> list[KnowledgeTopic]:
        result = await self.db.execute(
            select(KnowledgeTopic)
            .where(KnowledgeTopic.tenant_id == tenant_id)
            .order_by(KnowledgeTopic.position, KnowledgeTopic.title)
        )
        return list(result.scalars().all())

    async def topic_tree(self, tenant_id: uuid.UUID) -> list[TopicNode]:
        topics = await self._topics(tenant_id)
        by_parent: dict[uuid.UUID | None, list[KnowledgeTopic]] = {}
        for t in topics:
            by_parent.setdefault(t.parent_id, []).append(t)

        def build(parent_id):
            return [
                TopicNode(id=t.slug, title=t.title, content=t.content, children=build(t.id))
                for t in by_parent.get(parent_id, [])
            ]

        return build(None)

    async def save_topics(
        self, tenant_id: uuid.UUID, nodes: list[TopicNode], parent_slug: str | None = None
    ) -> tuple[int, int]:
        """
        Merge a topic tree into the knowledge base. Nodes whose id already
        exists are updated in place; new nodes are inserted under their parent.
        Returns (created, updated).
        """
        existing = {t.slug: t for t in await self._topics(tenant_id)}
        parent_id = None
        if parent_slug:
            parent = existing.get(parent_slug)
            if parent is None:
                raise LookupError(f"Parent topic '{parent_slug}' not found")
            parent_id = parent.id

        taken = set(existing)
        counts = {"created": 0, "updated": 0}

        async def merge(items: list[TopicNode], under: uuid.UUID | None):
            for position, node in enumerate(items):
                topic = existing.get(node.id) if node.id else None
                if topic is not None:
                    topic.title = node.title
                    topic.content = node.content
                    counts["updated"] += 1
                else:
                    slug = _unique(kebab_case(node.id or node.title), taken)
                    topic = KnowledgeTopic(
                        id=uuid.uuid4(),
                        tenant_id=tenant_id,
                        parent_id=under,
                        slug=slug,
                        title=node.title,
                        content=node.content,
                        position=position,
                    )
                    self.db.add(topic)
                    existing[slug] = topic
                    counts["created"] += 1
                await merge(node.children, topic.id)

        await merge(nodes, parent_id)
        await self.db.commit()
        logger.info(
            "Knowledge base for tenant %s: %d created, %d updated",
            tenant_id, counts["created"], counts["updated"],
        )
        return counts["created"], counts["updated"]
