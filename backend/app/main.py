from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import create_tables
from app.api.v1.auth import router as auth_router
from app.api.v1.users import router as users_router
from app.api.v1.guards import router as guards_router
from app.api.v1.sites import router as sites_router
from app.api.v1.shifts import shifts_router, templates_router
from app.api.v1.time_off import router as time_off_router
from app.api.v1.rota import router as rota_router
from app.api.v1.breaks import router as breaks_router
from app.api.v1.shift_logs import router as shift_logs_router
from app.api.v1.edob import router as edob_router
from app.api.v1.incidents import router as incidents_router
from app.api.v1.visitors import router as visitors_router
from app.api.v1.uniform_checks import router as uniform_checks_router
from app.api.v1.licences import router as licences_router
from app.api.v1.training import router as training_router
from app.api.v1.kpis import router as kpis_router
from app.api.v1.no_shows import router as no_shows_router
from app.api.v1.payroll import router as payroll_router
from app.api.v1.reports import router as reports_router
from app.api.v1.ai_documents import router as ai_router
from app.api.v1.knowledge_base import router as knowledge_router
from app.api.v1.notifications import router as notifications_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables on startup (SQLite / local development)
    await create_tables()
    yield


app = FastAPI(
    title="GuardOps API",
    description="Rostering, occurrence book, compliance & reporting for security companies",
    version="1.0.0",
    lifespan=lifespan,
    # Swagger UI only in development – set DEBUG=false in production
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(guards_router, prefix=API_PREFIX)
app.include_router(sites_router, prefix=API_PREFIX)
app.include_router(shifts_router, prefix=API_PREFIX)
app.include_router(templates_router, prefix=API_PREFIX)
app.include_router(time_off_router, prefix=API_PREFIX)
app.include_router(rota_router, prefix=API_PREFIX)
app.include_router(breaks_router, prefix=API_PREFIX)
app.include_router(shift_logs_router, prefix=API_PREFIX)
app.include_router(edob_router, prefix=API_PREFIX)
app.include_router(incidents_router, prefix=API_PREFIX)
app.include_router(visitors_router, prefix=API_PREFIX)
app.include_router(uniform_checks_router, prefix=API_PREFIX)
app.include_router(licences_router, prefix=API_PREFIX)
app.include_router(training_router, prefix=API_PREFIX)
app.include_router(kpis_router, prefix=API_PREFIX)
app.include_router(no_shows_router, prefix=API_PREFIX)
app.include_router(payroll_router, prefix=API_PREFIX)
app.include_router(reports_router, prefix=API_PREFIX)
app.include_router(ai_router, prefix=API_PREFIX)
app.include_router(knowledge_router, prefix=API_PREFIX)
app.include_router(notifications_router, prefix=API_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "GuardOps API", "version": "1.0.0"}
