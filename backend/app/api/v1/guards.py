import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, ManagerOrAdmin, get_tenant_row, require_own_guard
from app.core.security import generate_initial_password, hash_password
from app.models.guard import Guard
from app.models.user import User, ROLE_GUARD
from app.schemas.guard import GuardCreate, GuardUpdate, GuardOut, GuardCreatedOut

router = APIRouter(prefix="/guards", tags=["guards"])


# ── Own profile (every guard) ─────────────────────────────────────────────────

@router.get("/me", response_model=GuardOut)
async def get_own_guard_profile(current_user: CurrentUser, db: DB):
    return await require_own_guard(db, current_user)


# ── Guard list / CRUD (supervisors) ──────────────────────────────────────────

@router.get("", response_model=list[GuardOut])
async def list_guards(current_user: ManagerOrAdmin, db: DB, active_only: bool = True, q: str | None = None):
    query = select(Guard).where(Guard.tenant_id == current_user.tenant_id)
    if active_only:
        query = query.where(Guard.is_active == True)  # noqa: E712
    if q:
        pattern = f"%{q.lower()}%"
        query = query.where(
            (Guard.first_name + " " + Guard.last_name).ilike(pattern) | Guard.guard_code.ilike(pattern)
        )
    result = await db.execute(query.order_by(Guard.last_name, Guard.first_name))
    return result.scalars().all()


@router.get("/{guard_id}", response_model=GuardOut)
async def get_guard(guard_id: uuid.UUID, current_user: CurrentUser, db: DB):
    guard = await get_tenant_row(db, Guard, guard_id, current_user.tenant_id, "Guard")
    # Guards may only read their own profile
    if not current_user.is_privileged and guard.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Guard not found")
    return guard


@router.post("", response_model=GuardCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_guard(payload: GuardCreate, current_user: ManagerOrAdmin, db: DB):
    data = payload.model_dump(exclude={"create_login"})
    if payload.guard_code:
        dup = await db.execute(
            select(Guard.id).where(
                Guard.tenant_id == current_user.tenant_id, Guard.guard_code == payload.guard_code
            )
        )
        if dup.scalar_one_or_none():
            raise HTTPException(status_code=409, detail=f"Guard code {payload.guard_code} already in use")

    guard = Guard(tenant_id=current_user.tenant_id, **data)
    initial_password = None

    if payload.create_login:
        if not payload.email:
            raise HTTPException(status_code=400, detail="An email address is required to create a login")
        existing = await db.execute(select(User).where(User.email == payload.email))
        if existing.scalar_one_or_none():
            raise HTTPException(status_code=409, detail="Email already registered")
        initial_password = generate_initial_password()
        user = User(
            tenant_id=current_user.tenant_id,
            email=payload.email,
            full_name=f"{payload.first_name} {payload.last_name}",
            hashed_password=hash_password(initial_password),
            role=ROLE_GUARD,
        )
        db.add(user)
        await db.flush()  # assign user.id without committing
        guard.user_id = user.id

    db.add(guard)
    await db.commit()
    await db.refresh(guard)
    out = GuardCreatedOut.model_validate(guard)
    out.initial_password = initial_password
    return out


@router.put("/{guard_id}", response_model=GuardOut)
async def update_guard(guard_id: uuid.UUID, payload: GuardUpdate, current_user: ManagerOrAdmin, db: DB):
    guard = await get_tenant_row(db, Guard, guard_id, current_user.tenant_id, "Guard")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(guard, field, value)
    await db.commit()
    await db.refresh(guard)
    return guard


@router.delete("/{guard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_guard(guard_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    guard = await get_tenant_row(db, Guard, guard_id, current_user.tenant_id, "Guard")
    guard.is_active = False
    await db.commit()
