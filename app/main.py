"""
Bistro Reservations - FastAPI Backend Application
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
import structlog

from app.config import settings
from app.database import SessionLocal
from app.api import hours, reports, reservations, tables
from app.jobs.scheduler import SweepScheduler

logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level.upper())

# Configure structured logging
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
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager: runs the sweep scheduler while serving"""
    logger.info("Starting Bistro Reservations API", version="1.0.0")

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = SweepScheduler(SessionLocal)
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        await scheduler.stop()
    logger.info("Shutting down Bistro Reservations API")


# Create FastAPI application
app = FastAPI(
    title="Bistro Reservations",
    description="Table reservations, waitlist and billing for a single restaurant",
    version="1.0.0",
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


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    checks = {}

    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    scheduler = getattr(app.state, "scheduler", None)
    checks["scheduler"] = "ok" if scheduler is None or scheduler.running else "stopped"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Include API routers
app.include_router(reservations.router, prefix="/reservations", tags=["Reservations"])
app.include_router(tables.router, prefix="/tables", tags=["Tables"])
app.include_router(hours.router, prefix="/hours", tags=["Opening Hours"])
app.include_router(reports.router, prefix="/reports", tags=["Reports"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
