from pydantic import BaseModel, model_validator
import uuid
from datetime import datetime
from typing import Optional


class ChecklistItem(BaseModel):
    id: str
    label: str
    confirmed: bool = False
    comment: Optional[str] = None


def unconfirmed_without_comment(items: list[ChecklistItem]) -> list[str]:
    """Labels of unconfirmed items that carry no comment."""
    return [
        item.label for item in items
        if not item.confirmed and not (item.comment or "").strip()
    ]


class UniformCheckCreate(BaseModel):
    guard_id: Optional[uuid.UUID] = None  # defaults to the caller's guard profile
    items: list[ChecklistItem]
    notes: Optional[str] = None

    @model_validator(mode="after")
    def comments_for_unconfirmed(self):
        if not self.items:
            raise ValueError("At least one checklist item is required")
        missing = unconfirmed_without_comment(self.items)
        if missing:
            raise ValueError(f"Comment required if not confirmed: {', '.join(missing)}")
        return self


class UniformCheckOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID
    checked_by: Optional[uuid.UUID]
    items: list[ChecklistItem]
    notes: Optional[str]
    checked_at: datetime
    is_compliant: bool

    model_config = {"from_attributes": True}
