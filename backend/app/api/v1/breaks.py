import uuid
from datetime import date

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, ManagerOrAdmin
from app.models.shift_log import BreakCheckQuery
from app.schemas.breaks import BreakCheckRequest, BreakCheckResult, BreakCheckQueryOut
from app.services.break_service import BreakService
from app.utils.time_helpers import parse_hhmm

router = APIRouter(prefix="/breaks", tags=["breaks"])


@router.post("/check", response_model=BreakCheckResult)
async def check_break_status(payload: BreakCheckRequest, current_user: CurrentUser, db: DB):
    """Where a guard stands in their break plan at a given time (default: now)."""
    query_time = None
    if payload.time:
        try:
            query_time = parse_hhmm(payload.time)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    return await BreakService(db).check(
        current_user.tenant_id,
        guard_id=payload.guard_id,
        guard_name=payload.guard_name,
        query_date=payload.date,
        query_time=query_time,
    )


@router.get("/queries", response_model=list[BreakCheckQueryOut])
async def list_break_queries(
    current_user: ManagerOrAdmin,
    db: DB,
    query_date: date | None = Query(None, alias="date"),
    guard_id: uuid.UUID | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
):
    query = select(BreakCheckQuery).where(BreakCheckQuery.tenant_id == current_user.tenant_id)
    if query_date:
        query = query.where(BreakCheckQuery.query_date == query_date)
    if guard_id:
        query = query.where(BreakCheckQuery.guard_id == guard_id)
    result = await db.execute(query.order_by(BreakCheckQuery.created_at.desc()).limit(limit))
    return result.scalars().all()
