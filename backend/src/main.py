# pyright: reportMissingTypeStubs=false
"""
Practice Scheduling Backend API.

Serves provider availability settings, bookable slot listings and
appointment booking for a healthcare practice. Every write to a schedule
is checked before it is stored, and every booking is re-validated under a
provider lock at insert time.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import availability_settings, booking, providers
from core.config import LOG_LEVEL
from core.constants import CORS_ORIGINS
from core.database import create_tables
from shared_types.errors import MalformedScheduleError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)

API_TITLE = "Practice Scheduling Backend"
API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup; log shutdown."""
    logger.info(f"Starting {API_TITLE} API")
    create_tables()

    yield

    logger.info(f"Shutting down {API_TITLE} API")


app = FastAPI(
    title=API_TITLE,
    description="Provider availability and booking-slot engine for healthcare practices",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

_NOT_FOUND: Dict[int | str, Dict[str, Any]] = {
    404: {"description": "Provider, exception or appointment not found"},
    500: {"description": "Internal server error"},
}

# Router, tag, and the extra error responses it documents
_ROUTERS = [
    (providers.router, "providers", {409: {"description": "Email already registered"}}),
    (
        availability_settings.router,
        "availability-settings",
        {
            400: {"description": "Malformed schedule"},
            409: {"description": "Exception already exists for that date"},
        },
    ),
    (
        booking.router,
        "booking",
        {
            400: {"description": "Malformed date or time"},
            409: {"description": "Slot taken or day fully booked"},
            422: {"description": "Booking rejected"},
        },
    ),
]

for router, tag, extra_responses in _ROUTERS:
    app.include_router(router, prefix="/api", tags=[tag], responses={**_NOT_FOUND, **extra_responses})


@app.get("/", summary="Service information")
async def root() -> dict[str, str]:
    """Name, version and run state of the service."""
    return {
        "message": f"{API_TITLE} API",
        "version": API_VERSION,
        "status": "running",
    }


@app.get("/health", summary="Liveness probe")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Turn anything unhandled into a logged 500."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )


@app.exception_handler(MalformedScheduleError)
async def malformed_schedule_handler(request: Request, exc: MalformedScheduleError):
    """Report the offending weekday or date and intervals of a rejected schedule."""
    logger.warning(f"Malformed schedule: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": exc.to_dict(), "type": "malformed_schedule"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Unparseable dates, times or ranges are client errors."""
    logger.warning(f"ValueError: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )
