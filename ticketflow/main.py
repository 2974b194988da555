"""
FastAPI entry point.

The application exposes:
* ``POST  /api/v1/extract``             : extract a record + workflow graph
* ``POST  /api/v1/workflow``            : graph for an existing record
* ``POST  /api/v1/tickets/{ticket_id}`` : save a ticket
* ``GET   /api/v1/tickets``             : recently saved tickets
* ``GET   /api/v1/tickets/{ticket_id}`` : fetch a saved ticket
* ``PATCH /api/v1/tickets/{ticket_id}`` : edit a saved ticket
* ``GET   /api/v1/patterns``            : error-pattern catalogue
* ``GET   /api/v1/health``              : liveness probe
* ``GET   /api/v1/health/ai``           : AI stage configuration
* ``GET   /api/v1/metrics``             : Prometheus metrics
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ticketflow.api.routes import extract, health, patterns, tickets
from ticketflow.core.config import get_settings, get_version
from ticketflow.core.middleware import RequestIDMiddleware
from ticketflow.logging_config import setup_logging

# ── Logging ─────────────────────────────────────────────────────────────────

settings = get_settings()
setup_logging(level=settings.LOG_LEVEL, json_format=not settings.DEBUG)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup / shutdown hooks."""
    logger.info(
        "Starting %s (AI stages %s)",
        settings.APP_NAME,
        "enabled" if settings.AI_ENABLED else "disabled",
    )
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


# ── App factory ─────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.APP_NAME,
    description=(
        "Turns free-form EDI support tickets into structured records "
        "and workflow graphs."
    ),
    version=get_version(),
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    root_path=settings.ROOT_PATH,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# ── Routers ─────────────────────────────────────────────────────────────────

app.include_router(health.router, prefix=settings.API_V1_STR)
app.include_router(extract.router, prefix=settings.API_V1_STR)
app.include_router(tickets.router, prefix=settings.API_V1_STR)
app.include_router(patterns.router, prefix=settings.API_V1_STR)
