"""
Tableflow - FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from tableflow import __version__
from tableflow.config import settings
from tableflow.api import auth, public, reservations
from tableflow.scheduling.errors import (
    BadRequestError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SchedulingError,
)


def configure_logging() -> None:
    """Configure structured logging"""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger()

ERROR_STATUS_CODES = {
    NotFoundError: 404,
    ConflictError: 409,
    InvalidTransitionError: 422,
    BadRequestError: 400,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Tableflow API", version=__version__)
    yield
    logger.info("Shutting down Tableflow API")


# Create FastAPI application
app = FastAPI(
    title="Tableflow",
    description="Reservation scheduling and table availability for restaurants",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    """Translate scheduling errors to HTTP responses"""
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        400,
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": __version__}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from sqlalchemy import text
    from tableflow.database import SessionLocal

    checks = {}

    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Include API routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(reservations.router, prefix="/tenants/{tenant_id}/reservations", tags=["Reservations"])
app.include_router(public.router, prefix="/public/{tenant_id}/reservations", tags=["Public"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tableflow.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
