from datetime import date, timedelta

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy import select

from app.api.deps import DB, ManagerOrAdmin
from app.models.kpi import DailyKpiMetric
from app.schemas.kpi import DailyKpiOut
from app.services.kpi_service import generate_daily_kpis
from app.utils.time_helpers import today_local

router = APIRouter(prefix="/kpis", tags=["kpis"])


@router.get("", response_model=list[DailyKpiOut])
async def list_kpis(
    current_user: ManagerOrAdmin,
    db: DB,
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
):
    """Defaults to the last 30 days."""
    to_date = to_date or today_local()
    from_date = from_date or to_date - timedelta(days=30)
    result = await db.execute(
        select(DailyKpiMetric).where(
            DailyKpiMetric.tenant_id == current_user.tenant_id,
            DailyKpiMetric.report_date >= from_date,
            DailyKpiMetric.report_date <= to_date,
        ).order_by(DailyKpiMetric.report_date)
    )
    return result.scalars().all()


@router.get("/{report_date}", response_model=DailyKpiOut)
async def get_kpis(report_date: date, current_user: ManagerOrAdmin, db: DB):
    result = await db.execute(
        select(DailyKpiMetric).where(
            DailyKpiMetric.tenant_id == current_user.tenant_id,
            DailyKpiMetric.report_date == report_date,
        )
    )
    metric = result.scalar_one_or_none()
    if metric is None:
        raise HTTPException(status_code=404, detail=f"No KPIs for {report_date.isoformat()}")
    return metric


@router.post("/generate", response_model=DailyKpiOut)
async def generate_kpis(current_user: ManagerOrAdmin, db: DB, report_date: date | None = Query(None)):
    """Computes (or recomputes) the roll-up; defaults to yesterday."""
    return await generate_daily_kpis(db, current_user.tenant_id, report_date)
