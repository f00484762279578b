"""
AgriHub Catalog API - Main Application Entry Point
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import make_asgi_app
from slowapi.errors import RateLimitExceeded

from agrihub.api.v1.router import api_router
from agrihub.core.config import settings
from agrihub.core.database import Database
from agrihub.core.logging import RequestContextMiddleware, setup_logging
from agrihub.core.metrics import MetricsMiddleware
from agrihub.core.rate_limiter import RateLimitMiddleware, _rate_limit_handler, limiter
from agrihub.core.redis import close_redis
from agrihub.tasks.session_cleanup import session_cleanup_loop


def build_database() -> Database:
    """Construct the process-wide database owner from settings."""
    return Database(
        settings.DATABASE_URL,
        echo=settings.ENVIRONMENT == "development",
        pool_size=settings.DATABASE_POOL_SIZE,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown."""
    # Startup
    setup_logging()
    database = getattr(app.state, "database", None) or build_database()
    app.state.database = database
    cleanup = asyncio.create_task(
        session_cleanup_loop(database, settings.SESSION_CLEANUP_INTERVAL_SECONDS)
    )
    yield
    # Shutdown
    cleanup.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await cleanup
    await close_redis()
    await database.dispose()


app = FastAPI(
    title="AgriHub",
    description="Agricultural product catalog: admin sessions and bulk product import",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)

# Middleware
app.add_middleware(RateLimitMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestContextMiddleware)

# Mount Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "agrihub"}


@app.get("/")
async def root():
    """Root endpoint with system information."""
    return {
        "service": "AgriHub Catalog API",
        "version": "1.0.0",
        "docs": "/api/docs",
        "health": "/health",
        "metrics": "/metrics",
    }
