"""
Tests for the per-tenant job runner used by the Celery tasks.
"""
import uuid

import pytest
from sqlalchemy import select

from app.models.site import Site
from app.models.tenant import Tenant
from app.tasks.runner import active_tenant_ids, run_for_all_tenants


async def _add_tenant(db, name: str, is_active: bool = True) -> Tenant:
    t = Tenant(name=name, slug=f"t-{uuid.uuid4().hex[:8]}", is_active=is_active)
    db.add(t)
    await db.commit()
    return t


@pytest.mark.asyncio
async def test_active_tenant_ids_skips_inactive(db, session_factory, tenant):
    other = await _add_tenant(db, "Northgate Guarding")
    await _add_tenant(db, "Closed Down Ltd", is_active=False)

    ids = await active_tenant_ids(session_factory)
    assert set(ids) == {tenant.id, other.id}


@pytest.mark.asyncio
async def test_failing_tenant_does_not_stop_others(db, session_factory, tenant):
    other = await _add_tenant(db, "Northgate Guarding")
    seen = []

    async def job(session, tenant_id):
        seen.append(tenant_id)
        session.add(Site(tenant_id=tenant_id, name="Added by job"))
        if tenant_id == tenant.id:
            raise RuntimeError("boom")

    result = await run_for_all_tenants("test_job", job, session_factory)
    assert result == {"tenants": 2, "failed": 1}
    assert set(seen) == {tenant.id, other.id}

    # the failing tenant's work is rolled back, the other one's committed
    async with session_factory() as session:
        rows = (await session.execute(select(Site.tenant_id))).scalars().all()
    assert rows == [other.id]


@pytest.mark.asyncio
async def test_no_active_tenants(session_factory):
    async def job(session, tenant_id):
        raise AssertionError("should not run")

    assert await run_for_all_tenants("test_job", job, session_factory) == {"tenants": 0, "failed": 0}
