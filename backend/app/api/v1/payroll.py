"""
Payroll API – hours paid per pay period and the variances against the rota.
"""
import uuid
from datetime import date

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select

from app.api.deps import DB, ManagerOrAdmin, get_tenant_row
from app.models.guard import Guard
from app.models.payroll import PayrollInput, PayrollVariance
from app.schemas.payroll import (
    PayrollInputCreate, PayrollInputUpdate, PayrollInputOut,
    VarianceOut, VarianceUpdate, VarianceJobResult,
)
from app.services.payroll_service import PayrollService

router = APIRouter(prefix="/payroll", tags=["payroll"])


# ── Payroll inputs ────────────────────────────────────────────────────────────

@router.get("/inputs", response_model=list[PayrollInputOut])
async def list_inputs(
    current_user: ManagerOrAdmin,
    db: DB,
    guard_id: uuid.UUID | None = Query(None),
    period_start: date | None = Query(None),
):
    query = select(PayrollInput).where(PayrollInput.tenant_id == current_user.tenant_id)
    if guard_id:
        query = query.where(PayrollInput.guard_id == guard_id)
    if period_start:
        query = query.where(PayrollInput.period_start == period_start)
    result = await db.execute(query.order_by(PayrollInput.period_start.desc(), PayrollInput.guard_id))
    return result.scalars().all()


@router.post("/inputs", response_model=PayrollInputOut, status_code=status.HTTP_201_CREATED)
async def create_input(payload: PayrollInputCreate, current_user: ManagerOrAdmin, db: DB):
    await get_tenant_row(db, Guard, payload.guard_id, current_user.tenant_id, "Guard")
    dup = await db.execute(
        select(PayrollInput.id).where(
            PayrollInput.tenant_id == current_user.tenant_id,
            PayrollInput.guard_id == payload.guard_id,
            PayrollInput.period_start == payload.period_start,
            PayrollInput.period_end == payload.period_end,
        )
    )
    if dup.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Hours for this guard and period are already recorded")

    row = PayrollInput(tenant_id=current_user.tenant_id, **payload.model_dump())
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


@router.put("/inputs/{input_id}", response_model=PayrollInputOut)
async def update_input(input_id: uuid.UUID, payload: PayrollInputUpdate, current_user: ManagerOrAdmin, db: DB):
    row = await get_tenant_row(db, PayrollInput, input_id, current_user.tenant_id, "Payroll input")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("hours_paid") is not None and changes["hours_paid"] < 0:
        raise HTTPException(status_code=400, detail="hours_paid must not be negative")
    for field, value in changes.items():
        setattr(row, field, value)
    await db.commit()
    await db.refresh(row)
    return row


@router.delete("/inputs/{input_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_input(input_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    row = await get_tenant_row(db, PayrollInput, input_id, current_user.tenant_id, "Payroll input")
    await db.delete(row)
    await db.commit()


# ── Variances ─────────────────────────────────────────────────────────────────

@router.get("/variances", response_model=list[VarianceOut])
async def list_variances(
    current_user: ManagerOrAdmin,
    db: DB,
    status_filter: str | None = Query(None, alias="status"),
    period_start: date | None = Query(None),
):
    query = select(PayrollVariance).where(PayrollVariance.tenant_id == current_user.tenant_id)
    if status_filter:
        query = query.where(PayrollVariance.status == status_filter)
    if period_start:
        query = query.where(PayrollVariance.period_start == period_start)
    result = await db.execute(query.order_by(PayrollVariance.period_start.desc(), PayrollVariance.guard_id))
    return result.scalars().all()


@router.put("/variances/{variance_id}", response_model=VarianceOut)
async def update_variance(variance_id: uuid.UUID, payload: VarianceUpdate, current_user: ManagerOrAdmin, db: DB):
    variance = await get_tenant_row(db, PayrollVariance, variance_id, current_user.tenant_id, "Variance")
    variance.status = payload.status
    if payload.notes is not None:
        variance.notes = payload.notes
    variance.reviewed_by = current_user.id
    await db.commit()
    await db.refresh(variance)
    return variance


@router.post("/variances/run", response_model=VarianceJobResult)
async def run_variance_check(
    current_user: ManagerOrAdmin,
    db: DB,
    period_start: date | None = Query(None),
    period_end: date | None = Query(None),
):
    """Compares rostered and paid hours; defaults to the last completed pay week."""
    period = None
    if period_start or period_end:
        if not (period_start and period_end):
            raise HTTPException(status_code=400, detail="Give both period_start and period_end, or neither")
        if period_end < period_start:
            raise HTTPException(status_code=400, detail="period_end must not be before period_start")
        period = (period_start, period_end)

    start, end, checked, created = await PayrollService(db).run_variance_check(current_user.tenant_id, period)
    return VarianceJobResult(period_start=start, period_end=end, guards_checked=checked, variances=len(created))
