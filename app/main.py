# app/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.db import create_tables
from app.utils.logger import setup_app_logging, get_logger
# Local application imports - Routes
from app.properties.router import router as property_routes
from app.leases.router import router as lease_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create missing tables before serving when AUTO_CREATE_TABLES is on
    """
    if settings.auto_create_tables:
        create_tables()
    yield


lease_app = FastAPI(
    title=f"NYC Rentals Leases - {settings.environment}",
    description="Lease lifecycle, renewals and portfolio dashboard API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# JSON lines in production, readable console output elsewhere
setup_app_logging(
    lease_app,
    log_level=settings.log_level,
    use_json=settings.environment.lower() == "production",
    log_file=settings.log_file,
    app_name="NYC Rentals Lease Service",
    environment=settings.environment,
)
logger = get_logger(__name__)

lease_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

lease_app.include_router(property_routes)
lease_app.include_router(lease_routes)


@lease_app.get("/", tags=["Base"])
async def health_check():
    """
    Liveness probe
    """
    logger.debug("Health check")
    return {"status": "ok"}
