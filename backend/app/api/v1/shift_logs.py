import uuid
from datetime import date, datetime, timezone

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, get_own_guard, get_tenant_row, require_own_guard
from app.models.shift import Shift
from app.models.shift_log import ShiftLog
from app.schemas.shift_log import ShiftLogCreate, ShiftLogOut
from app.utils.time_helpers import as_utc, local_day_bounds

router = APIRouter(prefix="/shift-logs", tags=["shift-logs"])


@router.post("", response_model=ShiftLogOut, status_code=status.HTTP_201_CREATED)
async def log_shift_action(payload: ShiftLogCreate, current_user: CurrentUser, db: DB):
    guard = await require_own_guard(db, current_user)
    if payload.shift_id is not None:
        shift = await get_tenant_row(db, Shift, payload.shift_id, current_user.tenant_id, "Shift")
        if shift.guard_id != guard.id:
            raise HTTPException(status_code=400, detail="Shift is not assigned to you")

    entry = ShiftLog(
        tenant_id=current_user.tenant_id,
        guard_id=guard.id,
        shift_id=payload.shift_id,
        action=payload.action,
        notes=payload.notes,
        logged_at=as_utc(payload.logged_at) if payload.logged_at else datetime.now(timezone.utc),
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


@router.get("", response_model=list[ShiftLogOut])
async def list_shift_logs(
    current_user: CurrentUser,
    db: DB,
    log_date: date | None = Query(None, alias="date"),
    guard_id: uuid.UUID | None = Query(None),
    action: str | None = Query(None),
):
    query = select(ShiftLog).where(ShiftLog.tenant_id == current_user.tenant_id)
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None:
            return []
        query = query.where(ShiftLog.guard_id == own.id)
    elif guard_id:
        query = query.where(ShiftLog.guard_id == guard_id)
    if log_date:
        start, end = local_day_bounds(log_date)
        query = query.where(ShiftLog.logged_at >= start, ShiftLog.logged_at < end)
    if action:
        query = query.where(ShiftLog.action == action)
    result = await db.execute(query.order_by(ShiftLog.logged_at.desc()))
    return result.scalars().all()
