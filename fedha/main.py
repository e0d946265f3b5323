import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fedha.core.config import CORS_ORIGINS, DATABASE_URL
from fedha.core.database import Base, engine
from fedha.core.errors import FedhaError, InsufficientStock
from fedha.core.logging_setup import configure_logging
from fedha.core.startup_checks import apply_migrations, ensure_migrations_applied, validate_database_environment
from fedha.middleware.observability import ObservabilityMiddleware
import fedha.models  # registers every model before create_all

from fedha.routers.auth import router as auth_router
from fedha.routers.dashboard import router as dashboard_router
from fedha.routers.payments import router as payments_router
from fedha.routers.rentals import router as rentals_router
from fedha.routers.reservations import router as reservations_router
from fedha.routers.sales import router as sales_router
from fedha.routers.school import router as school_router
from fedha.routers.staff import router as staff_router
from fedha.routers.tenants import router as tenants_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        else:
            apply_migrations(alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s startup failed", STARTUP_PREFIX)
        raise


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Fedha API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


@app.exception_handler(FedhaError)
async def fedha_error_handler(request: Request, exc: FedhaError):
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, InsufficientStock):
        body["item_id"] = exc.item_id
    if exc.status_code >= 500:
        logger.error("Request failed: code=%s path=%s", exc.code, request.url.path)
    return JSONResponse(status_code=exc.status_code, content=body)


# Routers
app.include_router(auth_router)
app.include_router(tenants_router)
app.include_router(staff_router)
app.include_router(sales_router)
app.include_router(reservations_router)
app.include_router(payments_router)
app.include_router(rentals_router)
app.include_router(school_router)
app.include_router(dashboard_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
