from pydantic import BaseModel, EmailStr
from typing import Any
import uuid
from datetime import datetime, time


# ── Guards ────────────────────────────────────────────────────────────────────

class GuardOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: uuid.UUID | None
    guard_code: str | None
    first_name: str
    last_name: str
    position: str
    email: str | None
    phone: str | None
    max_hours_per_week: float | None
    skills: list[str]
    availability_preferences: dict[str, Any]
    notification_prefs: dict[str, Any]
    telegram_chat_id: str | None
    quiet_hours_start: time
    quiet_hours_end: time
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class GuardCreate(BaseModel):
    first_name: str
    last_name: str
    guard_code: str | None = None
    position: str = "Security Officer"
    email: EmailStr | None = None
    phone: str | None = None
    max_hours_per_week: float | None = None
    skills: list[str] = []
    availability_preferences: dict[str, Any] = {}
    telegram_chat_id: str | None = None
    create_login: bool = False  # creates a guard user with a random first password


class GuardUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    guard_code: str | None = None
    position: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    max_hours_per_week: float | None = None
    skills: list[str] | None = None
    availability_preferences: dict[str, Any] | None = None
    telegram_chat_id: str | None = None
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    is_active: bool | None = None


class GuardCreatedOut(GuardOut):
    initial_password: str | None = None


# ── Sites ─────────────────────────────────────────────────────────────────────

class SiteCreate(BaseModel):
    name: str
    client_name: str | None = None
    address: str | None = None


class SiteUpdate(BaseModel):
    name: str | None = None
    client_name: str | None = None
    address: str | None = None
    is_active: bool | None = None


class SiteOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    client_name: str | None
    address: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
