"""
Everything a planner needs to roster a site for a date range, in one call.
No solver: the bundle is handed to a human (or an external assistant).
"""
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.guard import Guard
from app.models.licence import SiaLicence, LICENCE_ACTIVE
from app.models.shift import Shift, ShiftRequirement
from app.models.time_off import TimeOffRequest
from app.models.training import TrainingRecord
from app.utils.time_helpers import today_local


async def fetch_rota_constraints(
    db: AsyncSession, tenant_id: uuid.UUID, site_id: uuid.UUID, start: date, end: date
) -> dict:
    today = today_local()

    # sequential: an AsyncSession runs one statement at a time
    guards = (await db.execute(
        select(Guard)
        .where(Guard.tenant_id == tenant_id, Guard.is_active == True)  # noqa: E712
        .order_by(Guard.last_name, Guard.first_name)
    )).scalars().all()

    time_off = (await db.execute(
        select(TimeOffRequest).where(
            TimeOffRequest.tenant_id == tenant_id,
            TimeOffRequest.status == "approved",
            TimeOffRequest.start_date <= end,
            TimeOffRequest.end_date >= start,
        )
    )).scalars().all()

    requirements = (await db.execute(
        select(ShiftRequirement).where(
            ShiftRequirement.tenant_id == tenant_id, ShiftRequirement.site_id == site_id
        )
    )).scalars().all()

    shifts = (await db.execute(
        select(Shift)
        .where(
            Shift.tenant_id == tenant_id,
            Shift.site_id == site_id,
            Shift.date >= start,
            Shift.date <= end,
        )
        .order_by(Shift.date, Shift.start_time)
    )).scalars().all()

    licences = (await db.execute(
        select(SiaLicence).where(
            SiaLicence.tenant_id == tenant_id,
            SiaLicence.status == LICENCE_ACTIVE,
            SiaLicence.expiry_date >= today,
        )
    )).scalars().all()

    training = (await db.execute(
        select(TrainingRecord).where(
            TrainingRecord.tenant_id == tenant_id,
            TrainingRecord.expiry_date >= today,
        )
    )).scalars().all()

    return {
        "site_id": site_id,
        "start_date": start,
        "end_date": end,
        "guards": [
            {
                "id": g.id,
                "name": g.full_name,
                "guard_code": g.guard_code,
                "position": g.position,
                "max_hours_per_week": float(g.max_hours_per_week) if g.max_hours_per_week is not None else None,
                "skills": g.skills or [],
                "availability_preferences": g.availability_preferences or {},
            }
            for g in guards
        ],
        "time_off": [
            {"guard_id": t.guard_id, "start_date": t.start_date, "end_date": t.end_date}
            for t in time_off
        ],
        "requirements": [
            {
                "shift_type": r.shift_type,
                "weekdays": r.weekdays,
                "start_time": r.start_time,
                "end_time": r.end_time,
                "guards_required": r.guards_required,
                "required_skills": r.required_skills or [],
            }
            for r in requirements
        ],
        "existing_shifts": [
            {
                "id": s.id,
                "guard_id": s.guard_id,
                "date": s.date,
                "start_time": s.start_time,
                "end_time": s.end_time,
                "shift_type": s.shift_type,
                "status": s.status,
            }
            for s in shifts
        ],
        "licences": [
            {"guard_id": l.guard_id, "licence_type": l.licence_type, "expiry_date": l.expiry_date}
            for l in licences
        ],
        "training": [
            {"guard_id": t.guard_id, "guard_name": t.guard_name, "course_name": t.course_name,
             "expiry_date": t.expiry_date}
            for t in training
        ],
    }
