from pydantic import BaseModel, field_validator, model_validator
import uuid
from datetime import date, datetime
from typing import Optional


class TrainingCreate(BaseModel):
    guard_name: str
    course_name: str
    completed_date: Optional[date] = None
    expiry_date: date
    certificate_url: Optional[str] = None
    guard_id: Optional[uuid.UUID] = None

    @field_validator("guard_name", "course_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def expiry_after_completion(self):
        if self.completed_date and self.expiry_date < self.completed_date:
            raise ValueError("expiry_date must not be before completed_date")
        return self


class TrainingOut(BaseModel):
    id: uuid.UUID
    guard_id: Optional[uuid.UUID]
    guard_name: str
    course_name: str
    completed_date: Optional[date]
    expiry_date: date
    certificate_url: Optional[str]
    added_by: Optional[uuid.UUID]
    created_at: datetime
    status: str  # valid | expiring_soon | expired


class TrainingNotifyResult(BaseModel):
    guards_notified: int
    records: int
    admin_summary_sent: bool
