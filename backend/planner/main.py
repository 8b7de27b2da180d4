# backend/planner/main.py
"""
FastAPI entrypoint for the planner scheduling engine.

Run with:
    uvicorn planner.main:app --app-dir backend
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from .core.clock import system_clock
from .core.config import settings
from .core.exceptions import DomainException
from .database import init_db
from .routes import prometheus
from .routes.v1 import availability as availability_v1
from .routes.v1 import calendar as calendar_v1
from .routes.v1 import team_calendar as team_calendar_v1
from .routes.v1 import time_blocks as time_blocks_v1
from .services.cache_service import CacheService

API_TITLE = "Planner API"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")

    init_db()
    if getattr(app.state, "cache_service", None) is None:
        app.state.cache_service = CacheService()
    if getattr(app.state, "clock", None) is None:
        app.state.clock = system_clock
    logger.info(f"Calendar cache backend: {app.state.cache_service.backend}")

    yield

    logger.info(f"{API_TITLE} shutting down...")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Last-resort mapping for domain errors that escape a route's own handling."""
    http_exc = exc.to_http_exception()
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )


# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# Mount v1 routes
api_v1.include_router(time_blocks_v1.router, prefix="/time-blocks")
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(calendar_v1.router, prefix="/calendar")
api_v1.include_router(team_calendar_v1.router, prefix="/team-calendar")

app.include_router(api_v1)
app.include_router(prometheus.router)
