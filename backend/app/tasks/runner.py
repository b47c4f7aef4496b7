"""
Runs a job once per active tenant, each tenant in its own session, so a
failing tenant does not stop the others.
"""
import logging
from typing import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import AsyncSessionLocal, engine, job_session
from app.models.tenant import Tenant

logger = logging.getLogger(__name__)


async def active_tenant_ids(session_factory: async_sessionmaker | None = None) -> list:
    async with (session_factory or AsyncSessionLocal)() as db:
        result = await db.execute(select(Tenant.id).where(Tenant.is_active == True))  # noqa: E712
        return list(result.scalars().all())


async def run_for_all_tenants(
    job_name: str,
    job: Callable[[AsyncSession, object], Awaitable],
    session_factory: async_sessionmaker | None = None,
) -> dict[str, int]:
    """Returns {"tenants": n, "failed": m}."""
    tenant_ids = await active_tenant_ids(session_factory)
    failed = 0
    for tenant_id in tenant_ids:
        try:
            async with job_session(session_factory) as db:
                await job(db, tenant_id)
        except Exception:
            failed += 1
            logger.exception("%s failed for tenant %s", job_name, tenant_id)
    if session_factory is None:
        # Each Celery task runs its own event loop; pooled connections must not outlive it
        await engine.dispose()
    logger.info("%s finished: %d tenants, %d failed", job_name, len(tenant_ids), failed)
    return {"tenants": len(tenant_ids), "failed": failed}
