from pydantic import BaseModel, field_validator, model_validator
import uuid
from datetime import date, datetime
from typing import Optional

from app.models.payroll import VARIANCE_STATUSES


class PayrollInputCreate(BaseModel):
    guard_id: uuid.UUID
    period_start: date
    period_end: date
    hours_paid: float
    notes: Optional[str] = None

    @field_validator("hours_paid")
    @classmethod
    def non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("hours_paid must not be negative")
        return v

    @model_validator(mode="after")
    def range_order(self):
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class PayrollInputUpdate(BaseModel):
    hours_paid: Optional[float] = None
    notes: Optional[str] = None


class PayrollInputOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID
    period_start: date
    period_end: date
    hours_paid: float
    notes: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class VarianceOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID
    period_start: date
    period_end: date
    scheduled_hours: float
    paid_hours: float
    variance_hours: float
    status: str
    notes: Optional[str]
    reviewed_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VarianceUpdate(BaseModel):
    status: str
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: str) -> str:
        if v not in VARIANCE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(VARIANCE_STATUSES)}")
        return v


class VarianceJobResult(BaseModel):
    period_start: date
    period_end: date
    guards_checked: int
    variances: int
