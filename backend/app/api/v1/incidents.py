import uuid
from datetime import date

from fastapi import APIRouter, HTTPException, status, Query
from fastapi.responses import Response
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, get_own_guard, get_tenant_row
from app.models.guard import Guard
from app.models.incident import IncidentReport
from app.models.site import Site
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.incident import IncidentCreate, IncidentOut, PolishResult
from app.services.document_service import DocumentService
from app.services.pdf_service import generate_incident_pdf

router = APIRouter(prefix="/incidents", tags=["incidents"])


async def _get_visible_incident(db, incident_id: uuid.UUID, user: User) -> IncidentReport:
    incident = await get_tenant_row(db, IncidentReport, incident_id, user.tenant_id, "Incident")
    # Guards only see the reports they filed
    if not user.is_privileged and incident.created_by != user.id:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident


@router.post("", response_model=IncidentOut, status_code=status.HTTP_201_CREATED)
async def create_incident(payload: IncidentCreate, current_user: CurrentUser, db: DB):
    warnings = payload.warnings()
    if warnings and not payload.acknowledge_warnings:
        raise HTTPException(
            status_code=422,
            detail={"message": "Please review the warnings or set acknowledge_warnings", "warnings": warnings},
        )
    if payload.site_id is not None:
        await get_tenant_row(db, Site, payload.site_id, current_user.tenant_id, "Site")

    guard = await get_own_guard(db, current_user)
    data = payload.model_dump(exclude={"acknowledge_warnings", "people_involved"})
    incident = IncidentReport(
        tenant_id=current_user.tenant_id,
        guard_id=guard.id if guard else None,
        created_by=current_user.id,
        people_involved=[p.model_dump() for p in payload.people_involved],
        **data,
    )
    db.add(incident)
    await db.commit()
    await db.refresh(incident)
    return incident


@router.get("", response_model=list[IncidentOut])
async def list_incidents(
    current_user: CurrentUser,
    db: DB,
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    site_id: uuid.UUID | None = Query(None),
    incident_type: str | None = Query(None),
):
    query = select(IncidentReport).where(IncidentReport.tenant_id == current_user.tenant_id)
    if not current_user.is_privileged:
        query = query.where(IncidentReport.created_by == current_user.id)
    if from_date:
        query = query.where(IncidentReport.incident_date >= from_date)
    if to_date:
        query = query.where(IncidentReport.incident_date <= to_date)
    if site_id:
        query = query.where(IncidentReport.site_id == site_id)
    if incident_type:
        query = query.where(IncidentReport.incident_type == incident_type)
    result = await db.execute(
        query.order_by(IncidentReport.incident_date.desc(), IncidentReport.incident_time.desc())
    )
    return result.scalars().all()


@router.get("/{incident_id}", response_model=IncidentOut)
async def get_incident(incident_id: uuid.UUID, current_user: CurrentUser, db: DB):
    return await _get_visible_incident(db, incident_id, current_user)


@router.post("/{incident_id}/polish", response_model=PolishResult)
async def polish_incident(incident_id: uuid.UUID, current_user: CurrentUser, db: DB):
    """Rewrite the report as a formal narrative; falls back to a template without AI."""
    incident = await _get_visible_incident(db, incident_id, current_user)
    generated = await DocumentService(db).polish_incident(incident)
    incident.polished_narrative = generated.text
    await db.commit()
    return PolishResult(incident_id=incident.id, narrative=generated.text, source=generated.source)


@router.get("/{incident_id}/pdf")
async def incident_pdf(incident_id: uuid.UUID, current_user: CurrentUser, db: DB):
    incident = await _get_visible_incident(db, incident_id, current_user)
    tenant = await db.get(Tenant, current_user.tenant_id)
    guard = await db.get(Guard, incident.guard_id) if incident.guard_id else None

    pdf_bytes = generate_incident_pdf(
        incident,
        tenant_name=tenant.name if tenant else "",
        guard_name=guard.full_name if guard else None,
    )
    filename = f"incident_{incident.incident_date.isoformat()}_{str(incident.id)[:8]}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
