"""SIADes API - Main FastAPI application."""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy import text

from siades_api.db.session import SessionLocal
from siades_api.errors import WorkflowError
from siades_api.middleware.actor import ActorMiddleware
from siades_api.middleware.correlation import RequestIDMiddleware
from siades_api.routes import letters
from siades_api.settings import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting SIADes API...")
    try:
        settings.validate_production_settings()
    except ValueError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise ValueError(f"Invalid configuration: {e}") from e

    yield
    logger.info("Shutting down SIADes API...")


app = FastAPI(
    title="SIADes API",
    description="Village administration: letter request workflow",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Custom middleware (order matters - last added is first executed)
app.add_middleware(ActorMiddleware)
app.add_middleware(RequestIDMiddleware)

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Register routers
app.include_router(letters.router)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    """Map workflow errors to HTTP responses."""
    content = {"detail": exc.message, "code": exc.code}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.http_status, content=content)


@app.get("/health")
async def health_check():
    """Health check endpoint (basic liveness)."""
    return {
        "status": "healthy",
        "service": "siades-api",
        "version": "0.1.0",
    }


@app.get("/ready")
def readiness_check():
    """Readiness check endpoint (verifies dependencies)."""
    checks = {
        "database": False,
        "migrations": False,
    }

    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error(f"Database check failed: {e}")
    finally:
        db.close()

    # Check Alembic migrations are at head
    if checks["database"]:
        try:
            from alembic.config import Config
            from alembic.runtime.migration import MigrationContext
            from alembic.script import ScriptDirectory

            alembic_ini_path = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
            alembic_cfg = Config(alembic_ini_path)
            alembic_cfg.set_main_option(
                "script_location", os.path.join(os.path.dirname(__file__), "..", "alembic")
            )
            head_rev = ScriptDirectory.from_config(alembic_cfg).get_current_head()

            db = SessionLocal()
            try:
                current_rev = MigrationContext.configure(db.connection()).get_current_revision()
            finally:
                db.close()

            if current_rev == head_rev:
                checks["migrations"] = True
            else:
                logger.warning(f"Migrations not at head: current={current_rev}, head={head_rev}")
        except Exception as e:
            logger.error(f"Migration check failed: {e}")

    all_ready = all(checks.values())

    return JSONResponse(
        content={
            "status": "ready" if all_ready else "not_ready",
            "checks": checks,
        },
        status_code=200 if all_ready else 503,
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "SIADes API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
