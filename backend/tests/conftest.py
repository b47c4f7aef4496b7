"""
Shared pytest fixtures for GuardOps backend tests.

Uses SQLite in-memory with StaticPool so all sessions share one connection,
meaning data written in one session is visible to others (important for HTTP client tests).
"""
import uuid
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

import app.models  # noqa – registers all SQLAlchemy models with Base.metadata
from app.core.database import Base, get_db
from app.core.security import hash_password, create_access_token
from app.main import app
from app.models.guard import Guard
from app.models.site import Site
from app.models.tenant import Tenant
from app.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpass123"


# ── Shared engine (function-scoped: fresh DB per test) ───────────────────────

@pytest_asyncio.fixture
async def engine():
    """Creates a fresh in-memory SQLite engine per test with a shared connection pool."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,          # single shared connection → all sessions see same data
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    """Async DB session for direct data inspection inside tests."""
    async with session_factory() as session:
        yield session


# ── HTTP client fixture ───────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(session_factory) -> AsyncClient:
    """
    FastAPI test client with get_db overridden to use the test engine.
    Each request gets its own session but shares the same underlying
    connection via StaticPool.
    """
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ── Tenant, users, guard profile ──────────────────────────────────────────────

async def _make_user(db, tenant, email: str, role: str, full_name: str) -> User:
    u = User(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        email=email,
        full_name=full_name,
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


@pytest_asyncio.fixture
async def tenant(db) -> Tenant:
    t = Tenant(
        id=uuid.uuid4(),
        name="Test Security Ltd",
        slug=f"test-{uuid.uuid4().hex[:8]}",
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db.add(t)
    await db.commit()
    await db.refresh(t)
    return t


@pytest_asyncio.fixture
async def admin_user(db, tenant) -> User:
    return await _make_user(db, tenant, "admin@example-security.co.uk", "admin", "Alice Admin")


@pytest_asyncio.fixture
async def manager_user(db, tenant) -> User:
    return await _make_user(db, tenant, "manager@example-security.co.uk", "manager", "Mark Manager")


@pytest_asyncio.fixture
async def guard_user(db, tenant) -> User:
    return await _make_user(db, tenant, "guard@example-security.co.uk", "guard", "James Walker")


@pytest_asyncio.fixture
async def guard(db, tenant, guard_user) -> Guard:
    """Guard profile linked to guard_user."""
    g = Guard(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        user_id=guard_user.id,
        guard_code="G001",
        first_name="James",
        last_name="Walker",
        email=guard_user.email,
        notification_prefs={},
        is_active=True,
    )
    db.add(g)
    await db.commit()
    await db.refresh(g)
    return g


@pytest_asyncio.fixture
async def site(db, tenant) -> Site:
    s = Site(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        name="Riverside Business Park",
        client_name="Riverside Estates Ltd",
    )
    db.add(s)
    await db.commit()
    await db.refresh(s)
    return s


@pytest_asyncio.fixture
def admin_token(admin_user) -> str:
    return create_access_token(admin_user.id, admin_user.tenant_id, "admin")


@pytest_asyncio.fixture
def manager_token(manager_user) -> str:
    return create_access_token(manager_user.id, manager_user.tenant_id, "manager")


@pytest_asyncio.fixture
def guard_token(guard_user) -> str:
    return create_access_token(guard_user.id, guard_user.tenant_id, "guard")


# ── Helper ────────────────────────────────────────────────────────────────────

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
