"""
Storefront order service: checkout, order lifecycle, invoices and returns.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import subprocess
import os

from storefront.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from storefront.core_settings import get_settings
from storefront.api.routes import router as orders_router
from storefront.api.admin_routes import router as admin_router
from storefront.api.errors import register_error_handlers
from storefront.infrastructure.db import engine, init_models

SERVICE_NAME = "storefront-orders"
SERVICE_DESCRIPTION = "Order pricing, lifecycle, invoicing and returns"
ALEMBIC_INI = os.path.join(os.path.dirname(__file__), "alembic.ini")

logger = get_logger(__name__)

def run_migrations() -> None:
    logger.info("Running database migrations")
    result = subprocess.run(
        ["alembic", "-c", ALEMBIC_INI, "upgrade", "head"],
        capture_output=True,
        text=True,
        check=False
    )
    if result.returncode != 0:
        logger.warning(f"Migration output: {result.stderr}")
    else:
        logger.info("Database migrations completed")

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(f"Starting {SERVICE_NAME} version {settings.SERVICE_VERSION}")

    if settings.RUN_MIGRATIONS:
        try:
            run_migrations()
        except OSError as e:
            logger.error(f"Migration error: {e}")

    init_models()
    logger.info("Database models initialized")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")

def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(
        service_name=SERVICE_NAME,
        level=settings.LOG_LEVEL,
        version=settings.SERVICE_VERSION,
        environment=os.getenv("ENVIRONMENT", "development"),
    )

    app = FastAPI(
        title=SERVICE_NAME,
        description=SERVICE_DESCRIPTION,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    health_service = ServiceHealth(SERVICE_NAME, engine, settings.SERVICE_VERSION)
    app.include_router(health_service.create_health_router())

    app.include_router(orders_router)
    app.include_router(admin_router)

    @app.get("/")
    async def root():
        return {
            "service": SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "status": "running",
            "docs": "/api/docs"
        }

    return app

app = create_app()
