"""
Users API – login accounts (admin only)
"""
import uuid
from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy import select

from app.api.deps import DB, AdminUser
from app.core.security import hash_password
from app.models.guard import Guard
from app.models.user import User, ROLES, ROLE_GUARD

router = APIRouter(prefix="/users", tags=["users"])


class UserOut(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str | None
    role: str
    is_active: bool
    created_at: datetime
    has_guard_profile: bool  # convenience flag


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str | None = None
    role: str = ROLE_GUARD

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class UserUpdate(BaseModel):
    full_name: str | None = None
    role: str | None = None
    is_active: bool | None = None
    password: str | None = None


async def _linked_user_ids(db, tenant_id: uuid.UUID) -> set[uuid.UUID]:
    result = await db.execute(
        select(Guard.user_id).where(Guard.tenant_id == tenant_id, Guard.user_id.isnot(None))
    )
    return {row[0] for row in result.all()}


def _out(user: User, linked: set[uuid.UUID]) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        has_guard_profile=user.id in linked,
    )


@router.get("", response_model=list[UserOut])
async def list_users(current_user: AdminUser, db: DB):
    """List all users in the tenant."""
    result = await db.execute(
        select(User).where(User.tenant_id == current_user.tenant_id).order_by(User.email)
    )
    linked = await _linked_user_ids(db, current_user.tenant_id)
    return [_out(u, linked) for u in result.scalars().all()]


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, current_user: AdminUser, db: DB):
    """Admin creates a new login account (e.g. for a supervisor)."""
    if payload.role not in ROLES:
        raise HTTPException(status_code=400, detail=f"Invalid role. Allowed: {', '.join(ROLES)}")

    existing = await db.execute(select(User).where(User.email == payload.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        tenant_id=current_user.tenant_id,
        email=payload.email,
        full_name=payload.full_name,
        hashed_password=hash_password(payload.password),
        role=payload.role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return _out(user, set())


@router.put("/{user_id}", response_model=UserOut)
async def update_user(user_id: uuid.UUID, payload: UserUpdate, current_user: AdminUser, db: DB):
    """Update name, role, active status, or password."""
    result = await db.execute(
        select(User).where(User.id == user_id, User.tenant_id == current_user.tenant_id)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    # Prevent demoting self
    if user.id == current_user.id and payload.role and payload.role != current_user.role:
        raise HTTPException(status_code=400, detail="You cannot change your own role")

    if payload.role:
        if payload.role not in ROLES:
            raise HTTPException(status_code=400, detail="Invalid role")
        user.role = payload.role
    if payload.full_name is not None:
        user.full_name = payload.full_name
    if payload.is_active is not None:
        user.is_active = payload.is_active
    if payload.password:
        if len(payload.password) < 8:
            raise HTTPException(status_code=422, detail="Password must be at least 8 characters")
        user.hashed_password = hash_password(payload.password)

    await db.commit()
    await db.refresh(user)
    return _out(user, await _linked_user_ids(db, current_user.tenant_id))
