"""
Celery tasks for SIA licence and training certificate expiry.
"""
import asyncio

from app.tasks.celery_app import celery_app
from app.tasks.runner import run_for_all_tenants


@celery_app.task(name="app.tasks.compliance_tasks.check_licence_expiry")
def check_licence_expiry():
    from app.services.licence_service import run_licence_expiry_check
    return asyncio.run(run_for_all_tenants("Licence expiry check", run_licence_expiry_check))


@celery_app.task(name="app.tasks.compliance_tasks.notify_training_expiry")
def notify_training_expiry():
    from app.services.training_service import run_training_expiry_notify
    return asyncio.run(run_for_all_tenants("Training expiry notify", run_training_expiry_notify))
