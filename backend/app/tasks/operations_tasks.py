"""
Celery tasks for day-to-day operations: no-shows, KPIs and reports.
"""
import asyncio

from app.tasks.celery_app import celery_app
from app.tasks.runner import run_for_all_tenants


@celery_app.task(name="app.tasks.operations_tasks.check_no_shows")
def check_no_shows():
    from app.services.no_show_service import run_no_show_check
    return asyncio.run(run_for_all_tenants("No-show check", run_no_show_check))


@celery_app.task(name="app.tasks.operations_tasks.generate_kpis")
def generate_kpis():
    """KPI roll-up for yesterday (company timezone)."""
    from app.services.kpi_service import generate_daily_kpis
    return asyncio.run(run_for_all_tenants("KPI roll-up", generate_daily_kpis))


@celery_app.task(name="app.tasks.operations_tasks.generate_daily_summaries")
def generate_daily_summaries():
    from app.services.report_service import generate_daily_summary
    return asyncio.run(run_for_all_tenants("Daily summary", generate_daily_summary))


@celery_app.task(name="app.tasks.operations_tasks.generate_weekly_reports")
def generate_weekly_reports():
    """Company-wide weekly report for the previous Monday–Sunday."""
    from app.services.report_service import generate_weekly_report
    return asyncio.run(run_for_all_tenants("Weekly report", generate_weekly_report))
