"""
Celery task for the weekly payroll variance check.
"""
import asyncio

from app.tasks.celery_app import celery_app
from app.tasks.runner import run_for_all_tenants


async def _variance_for_tenant(db, tenant_id):
    from app.services.payroll_service import PayrollService
    return await PayrollService(db).run_variance_check(tenant_id)


@celery_app.task(name="app.tasks.payroll_tasks.check_payroll_variance")
def check_payroll_variance():
    """Compares rostered and paid hours for the last Sunday–Saturday pay week."""
    return asyncio.run(run_for_all_tenants("Payroll variance", _variance_for_tenant))
