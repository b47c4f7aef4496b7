import uuid
from datetime import date, timedelta, datetime, timezone

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select, and_

from app.api.deps import DB, CurrentUser, ManagerOrAdmin, get_own_guard, get_tenant_row
from app.models.audit import AuditLog
from app.models.guard import Guard
from app.models.shift import Shift, ShiftTemplate
from app.models.site import Site
from app.schemas.shift import (
    ShiftCreate, ShiftUpdate, ShiftOut, ShiftRespond,
    ShiftTemplateCreate, ShiftTemplateOut, BulkShiftCreate, breaks_to_json,
)
from app.services.notification_service import notify_shift_assigned, notify_shift_changed

NOTIFY_FIELDS = ("date", "start_time", "end_time", "position", "site_id")


async def _write_audit(db, *, tenant_id, user_id, entity_id, action: str,
                       old_values: dict | None = None, new_values: dict | None = None,
                       entity_type: str = "shift"):
    db.add(AuditLog(
        tenant_id=tenant_id,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        old_values=old_values,
        new_values=new_values,
    ))


def _audit_value(value):
    if isinstance(value, list):
        return value
    return None if value is None else str(value)


async def _check_refs(db, tenant_id: uuid.UUID, guard_id: uuid.UUID | None, site_id: uuid.UUID | None) -> Guard | None:
    guard = None
    if guard_id is not None:
        guard = await get_tenant_row(db, Guard, guard_id, tenant_id, "Guard")
    if site_id is not None:
        await get_tenant_row(db, Site, site_id, tenant_id, "Site")
    return guard


# ── Shift Templates ──────────────────────────────────────────────────────────

templates_router = APIRouter(prefix="/shift-templates", tags=["shift-templates"])


@templates_router.get("", response_model=list[ShiftTemplateOut])
async def list_templates(current_user: CurrentUser, db: DB):
    result = await db.execute(
        select(ShiftTemplate).where(
            ShiftTemplate.tenant_id == current_user.tenant_id,
            ShiftTemplate.is_active == True,  # noqa: E712
        ).order_by(ShiftTemplate.name)
    )
    return result.scalars().all()


@templates_router.post("", response_model=ShiftTemplateOut, status_code=status.HTTP_201_CREATED)
async def create_template(payload: ShiftTemplateCreate, current_user: ManagerOrAdmin, db: DB):
    await _check_refs(db, current_user.tenant_id, None, payload.site_id)
    template = ShiftTemplate(
        tenant_id=current_user.tenant_id,
        break_times=breaks_to_json(payload.break_times),
        **payload.model_dump(exclude={"break_times"}),
    )
    db.add(template)
    await db.commit()
    await db.refresh(template)
    return template


@templates_router.put("/{template_id}", response_model=ShiftTemplateOut)
async def update_template(template_id: uuid.UUID, payload: ShiftTemplateCreate, current_user: ManagerOrAdmin, db: DB):
    template = await get_tenant_row(db, ShiftTemplate, template_id, current_user.tenant_id, "Template")
    for field, value in payload.model_dump(exclude_unset=True, exclude={"break_times"}).items():
        setattr(template, field, value)
    if "break_times" in payload.model_fields_set:
        template.break_times = breaks_to_json(payload.break_times)
    await db.commit()
    await db.refresh(template)
    return template


@templates_router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_template(template_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    template = await get_tenant_row(db, ShiftTemplate, template_id, current_user.tenant_id, "Template")
    template.is_active = False
    await db.commit()


# ── Shifts ───────────────────────────────────────────────────────────────────

shifts_router = APIRouter(prefix="/shifts", tags=["shifts"])


@shifts_router.get("", response_model=list[ShiftOut])
async def list_shifts(
    current_user: CurrentUser,
    db: DB,
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    guard_id: uuid.UUID | None = Query(None),
    site_id: uuid.UUID | None = Query(None),
):
    conditions = [Shift.tenant_id == current_user.tenant_id]

    if not current_user.is_privileged:
        # Guards: only own shifts, any guard_id filter from the client is ignored
        own = await get_own_guard(db, current_user)
        if own is None:
            return []
        conditions.append(Shift.guard_id == own.id)
    elif guard_id:
        conditions.append(Shift.guard_id == guard_id)

    if site_id:
        conditions.append(Shift.site_id == site_id)
    if from_date:
        conditions.append(Shift.date >= from_date)
    if to_date:
        conditions.append(Shift.date <= to_date)

    result = await db.execute(
        select(Shift).where(and_(*conditions)).order_by(Shift.date, Shift.start_time)
    )
    return result.scalars().all()


@shifts_router.post("", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
async def create_shift(payload: ShiftCreate, current_user: ManagerOrAdmin, db: DB):
    guard = await _check_refs(db, current_user.tenant_id, payload.guard_id, payload.site_id)
    shift = Shift(
        tenant_id=current_user.tenant_id,
        break_times=breaks_to_json(payload.break_times),
        **payload.model_dump(exclude={"break_times"}),
    )
    db.add(shift)
    await db.flush()
    await _write_audit(db, tenant_id=current_user.tenant_id, user_id=current_user.id,
                       entity_id=shift.id, action="create",
                       new_values={k: _audit_value(getattr(shift, k))
                                   for k in ("guard_id", "site_id", "date", "start_time", "end_time", "break_times")})
    await db.commit()
    await db.refresh(shift)
    if guard is not None:
        await notify_shift_assigned(shift, guard, db)
    return shift


@shifts_router.post("/bulk", response_model=list[ShiftOut], status_code=status.HTTP_201_CREATED)
async def create_bulk_shifts(payload: BulkShiftCreate, current_user: ManagerOrAdmin, db: DB):
    template = await get_tenant_row(db, ShiftTemplate, payload.template_id, current_user.tenant_id, "Template")
    site_id = payload.site_id or template.site_id
    await _check_refs(db, current_user.tenant_id, payload.guard_id, site_id)

    shifts = []
    current_date = payload.from_date
    while current_date <= payload.to_date:
        if current_date.weekday() in template.weekdays:
            shift = Shift(
                tenant_id=current_user.tenant_id,
                template_id=template.id,
                guard_id=payload.guard_id,
                site_id=site_id,
                date=current_date,
                start_time=template.start_time,
                end_time=template.end_time,
                shift_type=template.shift_type,
                position=template.position,
                break_times=list(template.break_times or []),
                notes=template.notes,
            )
            db.add(shift)
            shifts.append(shift)
        current_date += timedelta(days=1)

    await db.flush()
    for s in shifts:
        await _write_audit(db, tenant_id=current_user.tenant_id, user_id=current_user.id,
                           entity_id=s.id, action="create",
                           new_values={"template_id": str(template.id), "date": str(s.date)})
    await db.commit()
    for s in shifts:
        await db.refresh(s)
    return shifts


@shifts_router.get("/{shift_id}", response_model=ShiftOut)
async def get_shift(shift_id: uuid.UUID, current_user: CurrentUser, db: DB):
    shift = await get_tenant_row(db, Shift, shift_id, current_user.tenant_id, "Shift")
    # Guards may only access their own shifts
    if not current_user.is_privileged:
        own = await get_own_guard(db, current_user)
        if own is None or shift.guard_id != own.id:
            raise HTTPException(status_code=404, detail="Shift not found")
    return shift


@shifts_router.put("/{shift_id}", response_model=ShiftOut)
async def update_shift(shift_id: uuid.UUID, payload: ShiftUpdate, current_user: ManagerOrAdmin, db: DB):
    shift = await get_tenant_row(db, Shift, shift_id, current_user.tenant_id, "Shift")
    changes = payload.model_dump(exclude_unset=True, exclude={"break_times"})

    if "status" in changes and changes["status"] not in ("planned", "confirmed", "declined", "completed", "cancelled"):
        raise HTTPException(status_code=400, detail=f"Invalid status: {changes['status']}")
    if shift.status in ("completed", "cancelled") and current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Only admins can edit completed or cancelled shifts")

    guard = await _check_refs(db, current_user.tenant_id, changes.get("guard_id"), changes.get("site_id"))

    # Capture old values for audit log
    fields = list(changes) + (["break_times"] if "break_times" in payload.model_fields_set else [])
    old_values = {f: _audit_value(getattr(shift, f)) for f in fields}

    for field, value in changes.items():
        setattr(shift, field, value)
    if "break_times" in payload.model_fields_set:
        shift.break_times = breaks_to_json(payload.break_times or [])

    new_values = {f: _audit_value(getattr(shift, f)) for f in fields}
    await _write_audit(db, tenant_id=current_user.tenant_id, user_id=current_user.id,
                       entity_id=shift_id, action="update",
                       old_values=old_values, new_values=new_values)
    await db.commit()
    await db.refresh(shift)

    if shift.guard_id is not None:
        guard = guard or await db.get(Guard, shift.guard_id)
        if "guard_id" in changes and old_values.get("guard_id") != new_values.get("guard_id"):
            await notify_shift_assigned(shift, guard, db)
        else:
            changed = [f for f in NOTIFY_FIELDS if f in changes and old_values[f] != new_values[f]]
            if changed:
                await notify_shift_changed(shift, guard, changed, db)
    return shift


@shifts_router.post("/{shift_id}/respond", response_model=ShiftOut)
async def respond_to_shift(shift_id: uuid.UUID, payload: ShiftRespond, current_user: CurrentUser, db: DB):
    """Guard confirms or declines their own planned shift."""
    shift = await get_tenant_row(db, Shift, shift_id, current_user.tenant_id, "Shift")
    own = await get_own_guard(db, current_user)
    if own is None or shift.guard_id != own.id:
        raise HTTPException(status_code=403, detail="You can only respond to your own shifts")
    if shift.status != "planned":
        raise HTTPException(
            status_code=400,
            detail=f"Shift cannot be answered – current status: {shift.status}",
        )

    old_status = shift.status
    shift.status = "confirmed" if payload.accept else "declined"
    shift.responded_by = current_user.id
    shift.responded_at = datetime.now(timezone.utc)
    shift.response_note = payload.note

    await _write_audit(db, tenant_id=current_user.tenant_id, user_id=current_user.id,
                       entity_id=shift_id, action="respond",
                       old_values={"status": old_status},
                       new_values={
                           "status": shift.status,
                           "responded_by": str(current_user.id),
                           "responded_at": shift.responded_at.isoformat(),
                           "response_note": payload.note,
                       })
    await db.commit()
    await db.refresh(shift)
    return shift


@shifts_router.delete("/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift(shift_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    shift = await get_tenant_row(db, Shift, shift_id, current_user.tenant_id, "Shift")
    await _write_audit(db, tenant_id=current_user.tenant_id, user_id=current_user.id,
                       entity_id=shift_id, action="delete",
                       old_values={"guard_id": _audit_value(shift.guard_id), "date": str(shift.date),
                                   "start_time": str(shift.start_time), "end_time": str(shift.end_time)})
    await db.delete(shift)
    await db.commit()


# ── Audit trail ──────────────────────────────────────────────────────────────

@shifts_router.get("/{shift_id}/audit")
async def shift_audit(shift_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    result = await db.execute(
        select(AuditLog).where(
            AuditLog.tenant_id == current_user.tenant_id,
            AuditLog.entity_type == "shift",
            AuditLog.entity_id == shift_id,
        ).order_by(AuditLog.created_at)
    )
    return [
        {
            "id": str(a.id),
            "action": a.action,
            "user_id": str(a.user_id) if a.user_id else None,
            "old_values": a.old_values,
            "new_values": a.new_values,
            "created_at": a.created_at.isoformat(),
        }
        for a in result.scalars().all()
    ]
