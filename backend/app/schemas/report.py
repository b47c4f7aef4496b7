from pydantic import BaseModel
import uuid
from datetime import date, datetime
from typing import Any, Optional


class DailySummaryOut(BaseModel):
    id: uuid.UUID
    summary_date: date
    summary_text: str
    source: str
    stats: dict[str, Any]
    generated_at: datetime

    model_config = {"from_attributes": True}


class WeeklyReportRequest(BaseModel):
    week_start: Optional[date] = None  # Monday; defaults to last week
    site_id: Optional[uuid.UUID] = None


class WeeklyReportOut(BaseModel):
    id: uuid.UUID
    site_id: Optional[uuid.UUID]
    week_start: date
    week_end: date
    client_name: Optional[str]
    markdown: str
    created_at: datetime

    model_config = {"from_attributes": True}


class NoShowAlertOut(BaseModel):
    id: uuid.UUID
    shift_id: uuid.UUID
    guard_id: Optional[uuid.UUID]
    guard_name: Optional[str]
    site_name: Optional[str]
    shift_start: datetime
    message: str
    resolved: bool
    created_at: datetime

    model_config = {"from_attributes": True}
