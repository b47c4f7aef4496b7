from pydantic import BaseModel, field_validator
import uuid
from datetime import datetime
from typing import Optional


class VisitorCheckIn(BaseModel):
    visitor_name: str
    company: Optional[str] = None
    host_contact: Optional[str] = None
    purpose: Optional[str] = None
    escort: Optional[str] = None
    vehicle_reg: Optional[str] = None
    badge_number: Optional[str] = None
    site_id: Optional[uuid.UUID] = None
    arrival_time: Optional[datetime] = None

    @field_validator("visitor_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Visitor name is required")
        return v.strip()

    @field_validator("vehicle_reg")
    @classmethod
    def normalise_reg(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class VisitorCheckOutByName(BaseModel):
    visitor_name: str


class VisitorOut(BaseModel):
    id: uuid.UUID
    site_id: Optional[uuid.UUID]
    visitor_name: str
    company: Optional[str]
    host_contact: Optional[str]
    purpose: Optional[str]
    escort: Optional[str]
    vehicle_reg: Optional[str]
    badge_number: Optional[str]
    arrival_time: datetime
    departure_time: Optional[datetime]
    on_site: bool

    model_config = {"from_attributes": True}
