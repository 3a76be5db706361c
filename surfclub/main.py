"""
Surf Club Booking API - Main Application Entry Point

Capacity-safe reservations for surf/SUP/kayak sessions, stay + activity
packages and stay-only accommodation:
- Per (slot, date, activity) capacity claimed with conditional updates
- One transaction per booking, all-or-nothing across every claimed tuple
- Structured logging with request correlation
- Prometheus metrics for booking outcomes and capacity claims
"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from surfclub.core.config import get_settings
from surfclub.core.logging import setup_logging, get_logger
from surfclub.core.metrics import metrics_endpoint
from surfclub.api.dependencies import get_session_factory
from surfclub.api.errors import register_error_handlers
from surfclub.api.router import api_router
from surfclub.api.middleware import RequestLoggingMiddleware
from surfclub.db.session import engine

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        tax_rate=str(settings.TAX_RATE),
    )

    yield

    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Capacity-safe booking and pricing API for surf, SUP and kayak sessions, packages and stays",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

register_error_handlers(app)

# Routes
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check(session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)):
    """Liveness plus a round trip to the booking database."""
    database = "ok"
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        get_logger(__name__).warning("health_database_unreachable", error=str(exc))
        database = "unreachable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "tax_rate": str(settings.TAX_RATE),
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "api": api_router.prefix,
    }
