import uuid
from datetime import date, timedelta

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import select

from app.api.deps import DB, ManagerOrAdmin, get_tenant_row
from app.models.report import DailySummary, WeeklyReport
from app.models.tenant import Tenant
from app.schemas.report import DailySummaryOut, WeeklyReportRequest, WeeklyReportOut
from app.services.pdf_service import generate_weekly_report_pdf
from app.services.report_service import generate_daily_summary, generate_weekly_report
from app.utils.time_helpers import today_local

router = APIRouter(prefix="/reports", tags=["reports"])


# ── Daily summaries ───────────────────────────────────────────────────────────

@router.post("/daily/generate", response_model=DailySummaryOut)
async def generate_daily(current_user: ManagerOrAdmin, db: DB, summary_date: date | None = Query(None)):
    """Writes (or rewrites) the summary; defaults to yesterday."""
    return await generate_daily_summary(db, current_user.tenant_id, summary_date)


@router.get("/daily", response_model=list[DailySummaryOut])
async def list_daily(
    current_user: ManagerOrAdmin,
    db: DB,
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
):
    to_date = to_date or today_local()
    from_date = from_date or to_date - timedelta(days=14)
    result = await db.execute(
        select(DailySummary).where(
            DailySummary.tenant_id == current_user.tenant_id,
            DailySummary.summary_date >= from_date,
            DailySummary.summary_date <= to_date,
        ).order_by(DailySummary.summary_date.desc())
    )
    return result.scalars().all()


@router.get("/daily/{summary_date}", response_model=DailySummaryOut)
async def get_daily(summary_date: date, current_user: ManagerOrAdmin, db: DB):
    result = await db.execute(
        select(DailySummary).where(
            DailySummary.tenant_id == current_user.tenant_id,
            DailySummary.summary_date == summary_date,
        )
    )
    summary = result.scalar_one_or_none()
    if summary is None:
        raise HTTPException(status_code=404, detail=f"No summary for {summary_date.isoformat()}")
    return summary


# ── Weekly client reports ─────────────────────────────────────────────────────

@router.post("/weekly", response_model=WeeklyReportOut)
async def create_weekly(payload: WeeklyReportRequest, current_user: ManagerOrAdmin, db: DB):
    try:
        return await generate_weekly_report(db, current_user.tenant_id, payload.week_start, payload.site_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/weekly", response_model=list[WeeklyReportOut])
async def list_weekly(current_user: ManagerOrAdmin, db: DB, limit: int = Query(20, ge=1, le=100)):
    result = await db.execute(
        select(WeeklyReport)
        .where(WeeklyReport.tenant_id == current_user.tenant_id)
        .order_by(WeeklyReport.week_start.desc(), WeeklyReport.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()


@router.get("/weekly/{report_id}", response_model=WeeklyReportOut)
async def get_weekly(report_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    return await get_tenant_row(db, WeeklyReport, report_id, current_user.tenant_id, "Report")


@router.get("/weekly/{report_id}/pdf")
async def weekly_pdf(report_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    report = await get_tenant_row(db, WeeklyReport, report_id, current_user.tenant_id, "Report")
    tenant = await db.get(Tenant, current_user.tenant_id)
    pdf_bytes = generate_weekly_report_pdf(report, tenant.name if tenant else "")
    filename = f"weekly_report_{report.week_start.isoformat()}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
