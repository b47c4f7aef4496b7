from pydantic import BaseModel, field_validator
import uuid
from datetime import date, datetime
from typing import Optional

from app.models.licence import LICENCE_ACTIVE, LICENCE_EXPIRED, LICENCE_REVOKED

LICENCE_STATUSES = (LICENCE_ACTIVE, LICENCE_EXPIRED, LICENCE_REVOKED)


def _check_status(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in LICENCE_STATUSES:
        raise ValueError(f"status must be one of {', '.join(LICENCE_STATUSES)}")
    return v


class LicenceCreate(BaseModel):
    guard_id: uuid.UUID
    licence_number: str
    licence_type: str = "Door Supervisor"
    issue_date: Optional[date] = None
    expiry_date: date
    status: str = LICENCE_ACTIVE

    @field_validator("status")
    @classmethod
    def valid_status(cls, v):
        return _check_status(v)


class LicenceUpdate(BaseModel):
    licence_number: Optional[str] = None
    licence_type: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def valid_status(cls, v):
        return _check_status(v)


class LicenceOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID
    licence_number: str
    licence_type: str
    issue_date: Optional[date]
    expiry_date: date
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class LicenceAlertOut(BaseModel):
    id: uuid.UUID
    licence_id: uuid.UUID
    guard_id: uuid.UUID
    level: str
    days_until_expiry: int
    message: str
    acknowledged: bool
    acknowledged_by: Optional[uuid.UUID]
    acknowledged_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class LicenceJobResult(BaseModel):
    checked: int
    alerts_created: int
    expired: int
    notified: int
