import uuid
from datetime import date

from fastapi import APIRouter, status, Query
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, get_own_guard, get_tenant_row, require_own_guard
from app.models.guard import Guard
from app.models.uniform import UniformCheck
from app.schemas.uniform import UniformCheckCreate, UniformCheckOut
from app.utils.time_helpers import local_day_bounds

router = APIRouter(prefix="/uniform-checks", tags=["uniform-checks"])


@router.post("", response_model=UniformCheckOut, status_code=status.HTTP_201_CREATED)
async def create_check(payload: UniformCheckCreate, current_user: CurrentUser, db: DB):
    # Supervisors may check any guard, guards record a self-check
    if current_user.is_privileged and payload.guard_id:
        guard = await get_tenant_row(db, Guard, payload.guard_id, current_user.tenant_id, "Guard")
    else:
        guard = await require_own_guard(db, current_user)

    check = UniformCheck(
        tenant_id=current_user.tenant_id,
        guard_id=guard.id,
        checked_by=current_user.id,
        items=[item.model_dump() for item in payload.items],
        notes=payload.notes,
    )
    db.add(check)
    await db.commit()
    await db.refresh(check)
    return check


@router.get("", response_model=list[UniformCheckOut])
async def list_checks(
    current_user: CurrentUser,
    db: DB,
    check_date: date | None = Query(None, alias="date"),
    guard_id: uuid.UUID | None = Query(None),
):
    query = select(UniformCheck).where(UniformCheck.tenant_id == current_user.tenant_id)
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None:
            return []
        query = query.where(UniformCheck.guard_id == own.id)
    elif guard_id:
        query = query.where(UniformCheck.guard_id == guard_id)
    if check_date:
        start, end = local_day_bounds(check_date)
        query = query.where(UniformCheck.checked_at >= start, UniformCheck.checked_at < end)
    result = await db.execute(query.order_by(UniformCheck.checked_at.desc()))
    return result.scalars().all()
