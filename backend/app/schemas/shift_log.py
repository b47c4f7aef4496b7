from pydantic import BaseModel, field_validator
import uuid
from datetime import datetime
from typing import Optional

from app.models.shift_log import SHIFT_LOG_ACTIONS


class ShiftLogCreate(BaseModel):
    action: str
    shift_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    logged_at: Optional[datetime] = None  # defaults to now

    @field_validator("action")
    @classmethod
    def valid_action(cls, v: str) -> str:
        if v not in SHIFT_LOG_ACTIONS:
            raise ValueError(f"action must be one of: {', '.join(SHIFT_LOG_ACTIONS)}")
        return v


class ShiftLogOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID
    shift_id: Optional[uuid.UUID]
    action: str
    notes: Optional[str]
    logged_at: datetime

    model_config = {"from_attributes": True}
