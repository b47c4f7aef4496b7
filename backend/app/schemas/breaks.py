from pydantic import BaseModel, model_validator
import uuid
from datetime import date as Date, datetime as DateTime, time as Time
from typing import Optional


class BreakCheckRequest(BaseModel):
    guard_id: Optional[uuid.UUID] = None
    guard_name: Optional[str] = None  # case-insensitive fragment
    date: Optional[Date] = None       # defaults to today (company timezone)
    time: Optional[str] = None        # HH:MM, defaults to now

    @model_validator(mode="after")
    def guard_given(self):
        if self.guard_id is None and not (self.guard_name or "").strip():
            raise ValueError("guard_id or guard_name is required")
        return self


class BreakInfo(BaseModel):
    start_time: str
    end_time: str
    break_type: str


class ShiftInfo(BaseModel):
    shift_id: uuid.UUID
    start_time: str
    end_time: str
    position: Optional[str]


class BreakCheckResult(BaseModel):
    status: str  # ON_BREAK | BEFORE_NEXT_BREAK | NO_MORE_BREAKS | NO_BREAKS | NO_SHIFT | error
    on_break: bool
    message: str
    guard_id: Optional[uuid.UUID] = None
    guard_name: Optional[str] = None
    current_break: Optional[BreakInfo] = None
    next_break: Optional[BreakInfo] = None
    current_shift: Optional[ShiftInfo] = None


class BreakCheckQueryOut(BaseModel):
    id: uuid.UUID
    guard_id: Optional[uuid.UUID]
    shift_id: Optional[uuid.UUID]
    guard_name: Optional[str]
    query_date: Date
    query_time: Time
    status: str
    message: str
    created_at: DateTime

    model_config = {"from_attributes": True}
