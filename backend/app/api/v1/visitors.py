import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select, func

from app.api.deps import DB, CurrentUser, get_tenant_row
from app.models.site import Site
from app.models.visitor import VisitorLog
from app.schemas.visitor import VisitorCheckIn, VisitorCheckOutByName, VisitorOut
from app.utils.time_helpers import as_utc, local_day_bounds, today_local

router = APIRouter(prefix="/visitors", tags=["visitors"])


@router.post("", response_model=VisitorOut, status_code=status.HTTP_201_CREATED)
async def check_in(payload: VisitorCheckIn, current_user: CurrentUser, db: DB):
    if payload.site_id is not None:
        await get_tenant_row(db, Site, payload.site_id, current_user.tenant_id, "Site")
    visit = VisitorLog(
        tenant_id=current_user.tenant_id,
        logged_by=current_user.id,
        arrival_time=as_utc(payload.arrival_time) if payload.arrival_time else datetime.now(timezone.utc),
        **payload.model_dump(exclude={"arrival_time"}),
    )
    db.add(visit)
    await db.commit()
    await db.refresh(visit)
    return visit


@router.post("/{visit_id}/checkout", response_model=VisitorOut)
async def check_out(visit_id: uuid.UUID, current_user: CurrentUser, db: DB):
    visit = await get_tenant_row(db, VisitorLog, visit_id, current_user.tenant_id, "Visitor")
    if visit.departure_time is not None:
        raise HTTPException(status_code=400, detail="Visitor already checked out")
    visit.departure_time = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(visit)
    return visit


@router.post("/checkout-by-name", response_model=VisitorOut)
async def check_out_by_name(payload: VisitorCheckOutByName, current_user: CurrentUser, db: DB):
    """Checks out the most recent open visit for the given name."""
    result = await db.execute(
        select(VisitorLog)
        .where(
            VisitorLog.tenant_id == current_user.tenant_id,
            func.lower(VisitorLog.visitor_name) == payload.visitor_name.strip().lower(),
            VisitorLog.departure_time.is_(None),
        )
        .order_by(VisitorLog.arrival_time.desc())
        .limit(1)
    )
    visit = result.scalar_one_or_none()
    if visit is None:
        raise HTTPException(status_code=404, detail=f"No open visit found for {payload.visitor_name}")
    visit.departure_time = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(visit)
    return visit


@router.get("/today", response_model=list[VisitorOut])
async def visitors_today(current_user: CurrentUser, db: DB, site_id: uuid.UUID | None = Query(None)):
    start, end = local_day_bounds(today_local())
    query = select(VisitorLog).where(
        VisitorLog.tenant_id == current_user.tenant_id,
        VisitorLog.arrival_time >= start,
        VisitorLog.arrival_time < end,
    )
    if site_id:
        query = query.where(VisitorLog.site_id == site_id)
    result = await db.execute(query.order_by(VisitorLog.arrival_time))
    return result.scalars().all()


@router.get("/on-site", response_model=list[VisitorOut])
async def visitors_on_site(current_user: CurrentUser, db: DB, site_id: uuid.UUID | None = Query(None)):
    query = select(VisitorLog).where(
        VisitorLog.tenant_id == current_user.tenant_id,
        VisitorLog.departure_time.is_(None),
    )
    if site_id:
        query = query.where(VisitorLog.site_id == site_id)
    result = await db.execute(query.order_by(VisitorLog.arrival_time))
    return result.scalars().all()
