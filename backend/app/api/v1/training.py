import uuid
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, ManagerOrAdmin, get_own_guard, get_tenant_row
from app.models.guard import Guard
from app.models.training import TrainingRecord
from app.schemas.training import TrainingCreate, TrainingOut, TrainingNotifyResult
from app.services.training_service import find_duplicate, training_status, run_training_expiry_notify

router = APIRouter(prefix="/training", tags=["training"])


def _out(record: TrainingRecord) -> TrainingOut:
    return TrainingOut(
        id=record.id,
        guard_id=record.guard_id,
        guard_name=record.guard_name,
        course_name=record.course_name,
        completed_date=record.completed_date,
        expiry_date=record.expiry_date,
        certificate_url=record.certificate_url,
        added_by=record.added_by,
        created_at=record.created_at,
        status=training_status(record.expiry_date),
    )


@router.get("", response_model=list[TrainingOut])
async def list_training(
    current_user: CurrentUser,
    db: DB,
    guard_id: uuid.UUID | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
):
    query = select(TrainingRecord).where(TrainingRecord.tenant_id == current_user.tenant_id)
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None:
            return []
        query = query.where(TrainingRecord.guard_id == own.id)
    elif guard_id:
        query = query.where(TrainingRecord.guard_id == guard_id)
    result = await db.execute(query.order_by(TrainingRecord.expiry_date))
    records = [_out(r) for r in result.scalars().all()]
    if status_filter:
        records = [r for r in records if r.status == status_filter]
    return records


@router.post("", response_model=TrainingOut, status_code=status.HTTP_201_CREATED)
async def create_training(payload: TrainingCreate, current_user: ManagerOrAdmin, db: DB):
    if payload.guard_id is not None:
        await get_tenant_row(db, Guard, payload.guard_id, current_user.tenant_id, "Guard")
    if await find_duplicate(db, current_user.tenant_id, payload.guard_name, payload.course_name, payload.expiry_date):
        raise HTTPException(
            status_code=409,
            detail=f"{payload.course_name} for {payload.guard_name} expiring {payload.expiry_date:%d/%m/%Y} already exists",
        )
    record = TrainingRecord(tenant_id=current_user.tenant_id, added_by=current_user.id, **payload.model_dump())
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return _out(record)


@router.post("/notify-expiring", response_model=TrainingNotifyResult)
async def notify_expiring(current_user: ManagerOrAdmin, db: DB):
    result = await run_training_expiry_notify(db, current_user.tenant_id)
    return TrainingNotifyResult(**asdict(result))


@router.get("/{record_id}", response_model=TrainingOut)
async def get_training(record_id: uuid.UUID, current_user: CurrentUser, db: DB):
    record = await get_tenant_row(db, TrainingRecord, record_id, current_user.tenant_id, "Training record")
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None or record.guard_id != own.id:
            raise HTTPException(status_code=404, detail="Training record not found")
    return _out(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_training(record_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    record = await get_tenant_row(db, TrainingRecord, record_id, current_user.tenant_id, "Training record")
    await db.delete(record)
    await db.commit()
