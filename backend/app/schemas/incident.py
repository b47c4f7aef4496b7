from pydantic import BaseModel, Field
import uuid
from datetime import date as Date, datetime as DateTime, time as Time
from typing import Optional


class PersonInvolved(BaseModel):
    name: str
    role: Optional[str] = None  # e.g. Suspect, Witness, Member of public
    contact: Optional[str] = None


class IncidentCreate(BaseModel):
    incident_date: Date
    incident_time: Time
    location: str
    incident_type: str
    description: str
    people_involved: list[PersonInvolved] = Field(min_length=1)
    actions_taken: Optional[str] = None
    witnesses: Optional[str] = None
    site_id: Optional[uuid.UUID] = None

    injuries: bool = False
    injury_details: Optional[str] = None
    police_involved: bool = False
    police_details: Optional[str] = None
    follow_up_required: bool = False
    follow_up_details: Optional[str] = None

    acknowledge_warnings: bool = False

    def warnings(self) -> list[str]:
        found = []
        if self.injuries and not (self.injury_details or "").strip():
            found.append("Injuries reported but no details provided")
        if self.police_involved and not (self.police_details or "").strip():
            found.append("Police involvement noted but no details provided")
        if self.follow_up_required and not (self.follow_up_details or "").strip():
            found.append("Follow-up required but no details provided")
        return found


class IncidentOut(BaseModel):
    id: uuid.UUID
    guard_id: Optional[uuid.UUID]
    site_id: Optional[uuid.UUID]
    incident_date: Date
    incident_time: Time
    location: str
    incident_type: str
    description: str
    people_involved: list[PersonInvolved]
    actions_taken: Optional[str]
    witnesses: Optional[str]
    injuries: bool
    injury_details: Optional[str]
    police_involved: bool
    police_details: Optional[str]
    follow_up_required: bool
    follow_up_details: Optional[str]
    polished_narrative: Optional[str]
    created_at: DateTime

    model_config = {"from_attributes": True}


class PolishResult(BaseModel):
    incident_id: uuid.UUID
    narrative: str
    source: str  # ai | template
