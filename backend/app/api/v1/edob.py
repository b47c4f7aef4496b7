import uuid
from datetime import date, datetime, timezone

from fastapi import APIRouter, status, Query
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, get_own_guard, get_tenant_row
from app.models.edob import EdobEntry
from app.models.site import Site
from app.schemas.edob import EdobEntryCreate, EdobEntryOut
from app.utils.time_helpers import as_utc, local_day_bounds

router = APIRouter(prefix="/edob", tags=["edob"])


@router.post("", response_model=EdobEntryOut, status_code=status.HTTP_201_CREATED)
async def create_entry(payload: EdobEntryCreate, current_user: CurrentUser, db: DB):
    if payload.site_id is not None:
        await get_tenant_row(db, Site, payload.site_id, current_user.tenant_id, "Site")
    # Control-room staff without a guard profile log unattributed entries
    guard = await get_own_guard(db, current_user)

    data = payload.model_dump(exclude={"checklist", "occurred_at"})
    entry = EdobEntry(
        tenant_id=current_user.tenant_id,
        guard_id=guard.id if guard else None,
        checklist=[item.model_dump() for item in payload.checklist],
        occurred_at=as_utc(payload.occurred_at) if payload.occurred_at else datetime.now(timezone.utc),
        **data,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


@router.get("", response_model=list[EdobEntryOut])
async def list_entries(
    current_user: CurrentUser,
    db: DB,
    entry_date: date | None = Query(None, alias="date"),
    guard_id: uuid.UUID | None = Query(None),
    entry_type: str | None = Query(None),
    site_id: uuid.UUID | None = Query(None),
    limit: int = Query(200, ge=1, le=1000),
):
    query = select(EdobEntry).where(EdobEntry.tenant_id == current_user.tenant_id)
    if entry_date:
        start, end = local_day_bounds(entry_date)
        query = query.where(EdobEntry.occurred_at >= start, EdobEntry.occurred_at < end)
    if guard_id:
        query = query.where(EdobEntry.guard_id == guard_id)
    if entry_type:
        query = query.where(EdobEntry.entry_type == entry_type)
    if site_id:
        query = query.where(EdobEntry.site_id == site_id)
    result = await db.execute(query.order_by(EdobEntry.occurred_at.desc()).limit(limit))
    return result.scalars().all()


@router.get("/{entry_id}", response_model=EdobEntryOut)
async def get_entry(entry_id: uuid.UUID, current_user: CurrentUser, db: DB):
    return await get_tenant_row(db, EdobEntry, entry_id, current_user.tenant_id, "Entry")
