from pydantic import BaseModel, field_validator, model_validator
import uuid
from datetime import date as Date, datetime as DateTime, time as Time
from typing import Optional

from app.models.shift import SHIFT_TYPES


class BreakWindow(BaseModel):
    break_start: Time
    break_end: Time
    break_type: str = "unpaid"  # paid | unpaid | meal

    @model_validator(mode="after")
    def distinct_times(self):
        if self.break_start == self.break_end:
            raise ValueError("Break start and end must differ")
        return self


def breaks_to_json(breaks: list[BreakWindow]) -> list[dict]:
    """Break windows as stored on a shift: HH:MM strings."""
    return [
        {
            "break_start": b.break_start.strftime("%H:%M"),
            "break_end": b.break_end.strftime("%H:%M"),
            "break_type": b.break_type,
        }
        for b in breaks
    ]


def _check_shift_type(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in SHIFT_TYPES:
        raise ValueError(f"shift_type must be one of {', '.join(SHIFT_TYPES)}")
    return v


class ShiftTemplateCreate(BaseModel):
    name: str
    weekdays: list[int]  # 0=Mon ... 6=Sun
    start_time: Time
    end_time: Time
    site_id: Optional[uuid.UUID] = None
    shift_type: str = "Day"
    position: Optional[str] = None
    break_times: list[BreakWindow] = []
    notes: Optional[str] = None

    @field_validator("shift_type")
    @classmethod
    def valid_shift_type(cls, v):
        return _check_shift_type(v)

    @field_validator("weekdays")
    @classmethod
    def valid_weekdays(cls, v: list[int]) -> list[int]:
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("weekdays must be between 0 (Mon) and 6 (Sun)")
        return v


class ShiftTemplateOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    site_id: Optional[uuid.UUID]
    name: str
    weekdays: list[int]
    start_time: Time
    end_time: Time
    shift_type: str
    position: Optional[str]
    break_times: list[BreakWindow]
    notes: Optional[str]
    is_active: bool
    created_at: DateTime

    model_config = {"from_attributes": True}


class ShiftCreate(BaseModel):
    guard_id: Optional[uuid.UUID] = None
    site_id: Optional[uuid.UUID] = None
    template_id: Optional[uuid.UUID] = None
    date: Date
    start_time: Time
    end_time: Time
    position: Optional[str] = None
    shift_type: str = "Day"
    break_times: list[BreakWindow] = []
    notes: Optional[str] = None

    @field_validator("shift_type")
    @classmethod
    def valid_shift_type(cls, v):
        return _check_shift_type(v)


REQUIRED_SHIFT_FIELDS = ("date", "start_time", "end_time", "shift_type")


class ShiftUpdate(BaseModel):
    guard_id: Optional[uuid.UUID] = None
    site_id: Optional[uuid.UUID] = None
    date: Optional[Date] = None
    start_time: Optional[Time] = None
    end_time: Optional[Time] = None
    position: Optional[str] = None
    shift_type: Optional[str] = None
    break_times: Optional[list[BreakWindow]] = None
    notes: Optional[str] = None
    status: Optional[str] = None

    @field_validator("shift_type")
    @classmethod
    def valid_shift_type(cls, v):
        return _check_shift_type(v)

    @model_validator(mode="after")
    def required_fields_not_null(self):
        cleared = [f for f in REQUIRED_SHIFT_FIELDS if f in self.model_fields_set and getattr(self, f) is None]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class ShiftRespond(BaseModel):
    """Guard confirms or declines a planned shift."""
    accept: bool
    note: Optional[str] = None


class ShiftOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    guard_id: Optional[uuid.UUID]
    site_id: Optional[uuid.UUID]
    template_id: Optional[uuid.UUID]
    date: Date
    start_time: Time
    end_time: Time
    position: Optional[str]
    shift_type: str
    break_times: list[BreakWindow]
    notes: Optional[str]
    status: str
    responded_by: Optional[uuid.UUID]
    responded_at: Optional[DateTime]
    response_note: Optional[str]
    created_at: DateTime
    updated_at: DateTime

    model_config = {"from_attributes": True}


class BulkShiftCreate(BaseModel):
    template_id: uuid.UUID
    from_date: Date
    to_date: Date
    guard_id: Optional[uuid.UUID] = None
    site_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def range_order(self):
        if self.to_date < self.from_date:
            raise ValueError("to_date must not be before from_date")
        return self


# ── Time off ──────────────────────────────────────────────────────────────────

class TimeOffCreate(BaseModel):
    start_date: Date
    end_date: Date
    reason: Optional[str] = None
    guard_id: Optional[uuid.UUID] = None  # managers may file for a guard

    @model_validator(mode="after")
    def range_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TimeOffDecision(BaseModel):
    approve: bool
    note: Optional[str] = None


class TimeOffOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID
    start_date: Date
    end_date: Date
    reason: Optional[str]
    status: str
    decided_by: Optional[uuid.UUID]
    decided_at: Optional[DateTime]
    decision_note: Optional[str]
    created_at: DateTime

    model_config = {"from_attributes": True}


# ── Site requirements ─────────────────────────────────────────────────────────

class ShiftRequirementCreate(BaseModel):
    shift_type: str = "Day"
    weekdays: list[int] = [0, 1, 2, 3, 4, 5, 6]
    start_time: Time
    end_time: Time
    guards_required: int = 1
    required_skills: list[str] = []

    @field_validator("shift_type")
    @classmethod
    def valid_shift_type(cls, v):
        return _check_shift_type(v)


class ShiftRequirementOut(BaseModel):
    id: uuid.UUID
    site_id: uuid.UUID
    shift_type: str
    weekdays: list[int]
    start_time: Time
    end_time: Time
    guards_required: int
    required_skills: list[str]

    model_config = {"from_attributes": True}
