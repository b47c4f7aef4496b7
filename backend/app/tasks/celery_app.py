from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

celery_app = Celery(
    "guardops",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.operations_tasks", "app.tasks.compliance_tasks", "app.tasks.payroll_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    beat_schedule={
        # Every 5 minutes: rostered guards who have not started their shift
        "no-show-check": {
            "task": "app.tasks.operations_tasks.check_no_shows",
            "schedule": crontab(minute="*/5"),
        },
        # Daily 00:30: KPI roll-up for yesterday
        "daily-kpis": {
            "task": "app.tasks.operations_tasks.generate_kpis",
            "schedule": crontab(hour=0, minute=30),
        },
        # Daily 06:00: end-of-day summary for yesterday
        "daily-summary": {
            "task": "app.tasks.operations_tasks.generate_daily_summaries",
            "schedule": crontab(hour=6, minute=0),
        },
        # Mondays 07:00: weekly client report for last week
        "weekly-report": {
            "task": "app.tasks.operations_tasks.generate_weekly_reports",
            "schedule": crontab(hour=7, minute=0, day_of_week="mon"),
        },
        # Daily 07:00: SIA licence expiry
        "licence-expiry": {
            "task": "app.tasks.compliance_tasks.check_licence_expiry",
            "schedule": crontab(hour=7, minute=0),
        },
        # Daily 07:15: training certificate expiry
        "training-expiry": {
            "task": "app.tasks.compliance_tasks.notify_training_expiry",
            "schedule": crontab(hour=7, minute=15),
        },
        # Sundays 08:00: payroll variance for the pay week ending yesterday
        "weekly-payroll-variance": {
            "task": "app.tasks.payroll_tasks.check_payroll_variance",
            "schedule": crontab(hour=8, minute=0, day_of_week="sun"),
        },
    },
)
