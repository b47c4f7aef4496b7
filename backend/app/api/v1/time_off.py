import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, ManagerOrAdmin, get_own_guard, get_tenant_row, require_own_guard
from app.models.guard import Guard
from app.models.time_off import TimeOffRequest
from app.schemas.shift import TimeOffCreate, TimeOffDecision, TimeOffOut
from app.services.notification_service import notify_time_off_decision

router = APIRouter(prefix="/time-off", tags=["time-off"])


@router.get("", response_model=list[TimeOffOut])
async def list_time_off(
    current_user: CurrentUser,
    db: DB,
    status_filter: str | None = Query(None, alias="status"),
    guard_id: uuid.UUID | None = Query(None),
):
    query = select(TimeOffRequest).where(TimeOffRequest.tenant_id == current_user.tenant_id)
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None:
            return []
        query = query.where(TimeOffRequest.guard_id == own.id)
    elif guard_id:
        query = query.where(TimeOffRequest.guard_id == guard_id)
    if status_filter:
        query = query.where(TimeOffRequest.status == status_filter)
    result = await db.execute(query.order_by(TimeOffRequest.start_date.desc()))
    return result.scalars().all()


@router.post("", response_model=TimeOffOut, status_code=status.HTTP_201_CREATED)
async def request_time_off(payload: TimeOffCreate, current_user: CurrentUser, db: DB):
    if current_user.is_privileged and payload.guard_id:
        guard = await get_tenant_row(db, Guard, payload.guard_id, current_user.tenant_id, "Guard")
    else:
        guard = await require_own_guard(db, current_user)

    request = TimeOffRequest(
        tenant_id=current_user.tenant_id,
        guard_id=guard.id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
    )
    db.add(request)
    await db.commit()
    await db.refresh(request)
    return request


@router.put("/{request_id}/decision", response_model=TimeOffOut)
async def decide_time_off(request_id: uuid.UUID, payload: TimeOffDecision, current_user: ManagerOrAdmin, db: DB):
    request = await get_tenant_row(db, TimeOffRequest, request_id, current_user.tenant_id, "Time-off request")
    if request.status != "pending":
        raise HTTPException(status_code=400, detail=f"Request already {request.status}")

    request.status = "approved" if payload.approve else "declined"
    request.decided_by = current_user.id
    request.decided_at = datetime.now(timezone.utc)
    request.decision_note = payload.note
    await db.commit()
    await db.refresh(request)

    guard = await db.get(Guard, request.guard_id)
    if guard is not None:
        await notify_time_off_decision(request, guard, db)
    return request


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw_time_off(request_id: uuid.UUID, current_user: CurrentUser, db: DB):
    """Guards may withdraw their own pending requests; supervisors any request."""
    request = await get_tenant_row(db, TimeOffRequest, request_id, current_user.tenant_id, "Time-off request")
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None or request.guard_id != own.id:
            raise HTTPException(status_code=404, detail="Time-off request not found")
        if request.status != "pending":
            raise HTTPException(status_code=400, detail="Only pending requests can be withdrawn")
    await db.delete(request)
    await db.commit()
