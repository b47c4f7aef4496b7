from pydantic import BaseModel
import uuid
from datetime import date, datetime


class DailyKpiOut(BaseModel):
    id: uuid.UUID
    report_date: date
    total_patrols: int
    breaks_logged: int
    guards_on_duty: int
    patrol_target_pct: float
    patrols_per_guard: float
    uniform_compliance_pct: float
    patrols_by_guard: dict[str, int]
    generated_at: datetime

    model_config = {"from_attributes": True}
