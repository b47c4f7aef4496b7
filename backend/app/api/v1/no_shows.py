import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Query
from sqlalchemy import select

from app.api.deps import DB, ManagerOrAdmin, get_tenant_row
from app.models.no_show import NoShowAlert
from app.schemas.report import NoShowAlertOut
from app.services.no_show_service import run_no_show_check

router = APIRouter(prefix="/no-shows", tags=["no-shows"])


@router.get("", response_model=list[NoShowAlertOut])
async def list_no_shows(
    current_user: ManagerOrAdmin,
    db: DB,
    hours: int = Query(24, ge=1, le=24 * 31),
    include_resolved: bool = Query(True),
):
    since = datetime.now(timezone.utc) - timedelta(hours=hours)
    query = select(NoShowAlert).where(
        NoShowAlert.tenant_id == current_user.tenant_id,
        NoShowAlert.created_at >= since,
    )
    if not include_resolved:
        query = query.where(NoShowAlert.resolved == False)  # noqa: E712
    result = await db.execute(query.order_by(NoShowAlert.shift_start.desc()))
    return result.scalars().all()


@router.post("/run", response_model=list[NoShowAlertOut])
async def run_check(current_user: ManagerOrAdmin, db: DB):
    """Runs the no-show detector now; returns the alerts it raised."""
    return await run_no_show_check(db, current_user.tenant_id)


@router.post("/{alert_id}/resolve", response_model=NoShowAlertOut)
async def resolve_alert(alert_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    alert = await get_tenant_row(db, NoShowAlert, alert_id, current_user.tenant_id, "Alert")
    alert.resolved = True
    await db.commit()
    await db.refresh(alert)
    return alert
