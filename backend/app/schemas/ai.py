from pydantic import BaseModel, Field, field_validator
import uuid
from datetime import date, datetime
from typing import Literal, Optional

Provider = Literal["openai", "perplexity"]


# ── Tender writer ─────────────────────────────────────────────────────────────

class TenderRequest(BaseModel):
    client_name: str
    site_address: str
    guarding_hours_per_week: float = Field(gt=0)
    key_risks: str
    mobilisation_date: date
    site_specifics: Optional[str] = None
    provider: Provider = "openai"


class TenderResponse(BaseModel):
    markdown: str
    suggested_filename: str
    provider: Provider


# ── Email formatter ───────────────────────────────────────────────────────────

class EmailFormatRequest(BaseModel):
    text: str
    recipient: str = "Team"
    guard_name: str = "Security Officer"
    tone: str = "professional"

    @field_validator("text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v


class EmailFormatResponse(BaseModel):
    email: str
    source: str  # ai | template


# ── SOP structuring / knowledge base ──────────────────────────────────────────

class TopicNode(BaseModel):
    id: Optional[str] = None
    title: str
    content: Optional[str] = None
    children: list["TopicNode"] = []


TopicNode.model_rebuild()


class SopStructureRequest(BaseModel):
    raw_text: str
    provider: Provider = "openai"


class SopStructureResponse(BaseModel):
    topics: list[TopicNode]


class KnowledgeSaveRequest(BaseModel):
    topics: list[TopicNode]
    parent_id: Optional[str] = None  # slug of the node to insert under


class KnowledgeSaveResult(BaseModel):
    created: int
    updated: int


class SystemTemplateUpsert(BaseModel):
    name: str
    content: str


class SystemTemplateOut(BaseModel):
    id: uuid.UUID
    name: str
    content: str
    updated_at: datetime

    model_config = {"from_attributes": True}
