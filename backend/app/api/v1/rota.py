import uuid
from datetime import date

from fastapi import APIRouter, HTTPException, Query

from app.api.deps import DB, ManagerOrAdmin, get_tenant_row
from app.models.site import Site
from app.services.rota_constraints import fetch_rota_constraints

router = APIRouter(prefix="/rota", tags=["rota"])

MAX_RANGE_DAYS = 62


@router.get("/constraints")
async def rota_constraints(
    current_user: ManagerOrAdmin,
    db: DB,
    site_id: uuid.UUID = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
):
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    if (end_date - start_date).days > MAX_RANGE_DAYS:
        raise HTTPException(status_code=400, detail=f"Range may span at most {MAX_RANGE_DAYS} days")
    await get_tenant_row(db, Site, site_id, current_user.tenant_id, "Site")
    return await fetch_rota_constraints(db, current_user.tenant_id, site_id, start_date, end_date)
