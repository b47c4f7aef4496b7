from pydantic import BaseModel, model_validator
import uuid
from datetime import datetime
from typing import Optional

from app.models.edob import (
    EDOB_TYPES, EDOB_PATROL, EDOB_INCIDENT, EDOB_ACCESS, EDOB_ALARM, EDOB_EQUIPMENT, EDOB_UNIFORM,
)
from app.schemas.uniform import ChecklistItem, unconfirmed_without_comment

EQUIPMENT_STATUSES = ("OK", "Needs Attention")


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


class EdobEntryCreate(BaseModel):
    entry_type: str
    details: Optional[str] = None
    site_id: Optional[uuid.UUID] = None
    occurred_at: Optional[datetime] = None

    route: Optional[str] = None
    access_type: Optional[str] = None
    person_name: Optional[str] = None
    company: Optional[str] = None
    alarm_zone: Optional[str] = None
    alarm_type: Optional[str] = None
    equipment: Optional[str] = None
    equipment_status: Optional[str] = None
    checklist: list[ChecklistItem] = []

    @model_validator(mode="after")
    def fields_for_entry_type(self):
        if self.entry_type not in EDOB_TYPES:
            raise ValueError(f"entry_type must be one of: {', '.join(EDOB_TYPES)}")

        errors: list[str] = []
        t = self.entry_type
        if t == EDOB_PATROL and _blank(self.route):
            errors.append("Patrol route is required for this entry type.")
        if t == EDOB_ACCESS:
            if _blank(self.access_type):
                errors.append("Access type is required.")
            if _blank(self.person_name):
                errors.append("Person name is required.")
            if _blank(self.company):
                errors.append("Company is required.")
        if t == EDOB_ALARM:
            if _blank(self.alarm_zone):
                errors.append("Alarm zone is required.")
            if _blank(self.alarm_type):
                errors.append("Alarm type is required.")
        if t == EDOB_EQUIPMENT:
            if _blank(self.equipment):
                errors.append("Equipment selection is required.")
            if self.equipment_status not in EQUIPMENT_STATUSES:
                errors.append("Equipment status is required (OK or Needs Attention).")
        if t == EDOB_UNIFORM:
            if _blank(self.person_name):
                errors.append("Guard name is required.")
            for label in unconfirmed_without_comment(self.checklist):
                errors.append(f"Comment required if not confirmed: {label}.")
        if t not in (EDOB_PATROL, EDOB_UNIFORM) and _blank(self.details):
            errors.append(
                "Incident details are required."
                if t == EDOB_INCIDENT
                else "Additional details/observations are required for this entry type."
            )

        if errors:
            raise ValueError(" ".join(errors))
        return self


class EdobEntryOut(BaseModel):
    id: uuid.UUID
    guard_id: Optional[uuid.UUID]
    site_id: Optional[uuid.UUID]
    entry_type: str
    details: Optional[str]
    route: Optional[str]
    access_type: Optional[str]
    person_name: Optional[str]
    company: Optional[str]
    alarm_zone: Optional[str]
    alarm_type: Optional[str]
    equipment: Optional[str]
    equipment_status: Optional[str]
    checklist: list[ChecklistItem]
    occurred_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}
