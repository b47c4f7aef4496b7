import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, ManagerOrAdmin, get_tenant_row
from app.models.shift import ShiftRequirement
from app.models.site import Site
from app.schemas.guard import SiteCreate, SiteUpdate, SiteOut
from app.schemas.shift import ShiftRequirementCreate, ShiftRequirementOut

router = APIRouter(prefix="/sites", tags=["sites"])


@router.get("", response_model=list[SiteOut])
async def list_sites(current_user: CurrentUser, db: DB, active_only: bool = True):
    query = select(Site).where(Site.tenant_id == current_user.tenant_id)
    if active_only:
        query = query.where(Site.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(Site.name))
    return result.scalars().all()


@router.get("/{site_id}", response_model=SiteOut)
async def get_site(site_id: uuid.UUID, current_user: CurrentUser, db: DB):
    return await get_tenant_row(db, Site, site_id, current_user.tenant_id, "Site")


@router.post("", response_model=SiteOut, status_code=status.HTTP_201_CREATED)
async def create_site(payload: SiteCreate, current_user: ManagerOrAdmin, db: DB):
    site = Site(tenant_id=current_user.tenant_id, **payload.model_dump())
    db.add(site)
    await db.commit()
    await db.refresh(site)
    return site


@router.put("/{site_id}", response_model=SiteOut)
async def update_site(site_id: uuid.UUID, payload: SiteUpdate, current_user: ManagerOrAdmin, db: DB):
    site = await get_tenant_row(db, Site, site_id, current_user.tenant_id, "Site")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(site, field, value)
    await db.commit()
    await db.refresh(site)
    return site


@router.delete("/{site_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_site(site_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    site = await get_tenant_row(db, Site, site_id, current_user.tenant_id, "Site")
    site.is_active = False
    await db.commit()


# ── Shift requirements per site ──────────────────────────────────────────────

@router.get("/{site_id}/requirements", response_model=list[ShiftRequirementOut])
async def list_requirements(site_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    await get_tenant_row(db, Site, site_id, current_user.tenant_id, "Site")
    result = await db.execute(
        select(ShiftRequirement).where(
            ShiftRequirement.site_id == site_id, ShiftRequirement.tenant_id == current_user.tenant_id
        )
    )
    return result.scalars().all()


@router.post("/{site_id}/requirements", response_model=ShiftRequirementOut, status_code=status.HTTP_201_CREATED)
async def add_requirement(site_id: uuid.UUID, payload: ShiftRequirementCreate, current_user: ManagerOrAdmin, db: DB):
    await get_tenant_row(db, Site, site_id, current_user.tenant_id, "Site")
    req = ShiftRequirement(tenant_id=current_user.tenant_id, site_id=site_id, **payload.model_dump())
    db.add(req)
    await db.commit()
    await db.refresh(req)
    return req


@router.delete("/{site_id}/requirements/{requirement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_requirement(site_id: uuid.UUID, requirement_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    req = await get_tenant_row(db, ShiftRequirement, requirement_id, current_user.tenant_id, "Requirement")
    if req.site_id != site_id:
        raise HTTPException(status_code=404, detail="Requirement not found")
    await db.delete(req)
    await db.commit()
