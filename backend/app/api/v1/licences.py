import uuid
from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select, delete

from app.api.deps import DB, CurrentUser, ManagerOrAdmin, get_own_guard, get_tenant_row
from app.models.guard import Guard
from app.models.licence import SiaLicence, LicenceAlert
from app.schemas.licence import LicenceCreate, LicenceUpdate, LicenceOut, LicenceAlertOut, LicenceJobResult
from app.services.licence_service import run_licence_expiry_check

router = APIRouter(prefix="/licences", tags=["licences"])


@router.get("", response_model=list[LicenceOut])
async def list_licences(
    current_user: CurrentUser,
    db: DB,
    guard_id: uuid.UUID | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
):
    query = select(SiaLicence).where(SiaLicence.tenant_id == current_user.tenant_id)
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None:
            return []
        query = query.where(SiaLicence.guard_id == own.id)
    elif guard_id:
        query = query.where(SiaLicence.guard_id == guard_id)
    if status_filter:
        query = query.where(SiaLicence.status == status_filter)
    result = await db.execute(query.order_by(SiaLicence.expiry_date))
    return result.scalars().all()


@router.post("", response_model=LicenceOut, status_code=status.HTTP_201_CREATED)
async def create_licence(payload: LicenceCreate, current_user: ManagerOrAdmin, db: DB):
    await get_tenant_row(db, Guard, payload.guard_id, current_user.tenant_id, "Guard")
    dup = await db.execute(
        select(SiaLicence.id).where(
            SiaLicence.tenant_id == current_user.tenant_id,
            SiaLicence.licence_number == payload.licence_number,
        )
    )
    if dup.scalar_one_or_none():
        raise HTTPException(status_code=409, detail=f"Licence {payload.licence_number} already recorded")

    licence = SiaLicence(tenant_id=current_user.tenant_id, **payload.model_dump())
    db.add(licence)
    await db.commit()
    await db.refresh(licence)
    return licence


# ── Alerts (before /{licence_id} so the path is not parsed as an id) ─────────

@router.get("/alerts", response_model=list[LicenceAlertOut])
async def list_alerts(
    current_user: ManagerOrAdmin,
    db: DB,
    include_acknowledged: bool = Query(False),
    level: str | None = Query(None),
):
    query = select(LicenceAlert).where(LicenceAlert.tenant_id == current_user.tenant_id)
    if not include_acknowledged:
        query = query.where(LicenceAlert.acknowledged == False)  # noqa: E712
    if level:
        query = query.where(LicenceAlert.level == level)
    result = await db.execute(query.order_by(LicenceAlert.days_until_expiry))
    return result.scalars().all()


@router.post("/alerts/{alert_id}/acknowledge", response_model=LicenceAlertOut)
async def acknowledge_alert(alert_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    alert = await get_tenant_row(db, LicenceAlert, alert_id, current_user.tenant_id, "Alert")
    if not alert.acknowledged:
        alert.acknowledged = True
        alert.acknowledged_by = current_user.id
        alert.acknowledged_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(alert)
    return alert


@router.post("/run-expiry-check", response_model=LicenceJobResult)
async def run_expiry_check(current_user: ManagerOrAdmin, db: DB):
    """Runs the daily licence job for the caller's company now."""
    result = await run_licence_expiry_check(db, current_user.tenant_id)
    return LicenceJobResult(**asdict(result))


@router.get("/{licence_id}", response_model=LicenceOut)
async def get_licence(licence_id: uuid.UUID, current_user: CurrentUser, db: DB):
    licence = await get_tenant_row(db, SiaLicence, licence_id, current_user.tenant_id, "Licence")
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None or licence.guard_id != own.id:
            raise HTTPException(status_code=404, detail="Licence not found")
    return licence


@router.put("/{licence_id}", response_model=LicenceOut)
async def update_licence(licence_id: uuid.UUID, payload: LicenceUpdate, current_user: ManagerOrAdmin, db: DB):
    licence = await get_tenant_row(db, SiaLicence, licence_id, current_user.tenant_id, "Licence")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(licence, field, value)
    await db.commit()
    await db.refresh(licence)
    return licence


@router.delete("/{licence_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_licence(licence_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    licence = await get_tenant_row(db, SiaLicence, licence_id, current_user.tenant_id, "Licence")
    await db.execute(delete(LicenceAlert).where(LicenceAlert.licence_id == licence.id))
    await db.execute(delete(SiaLicence).where(SiaLicence.id == licence.id))
    await db.commit()
