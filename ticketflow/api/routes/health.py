"""Health-check routes (liveness, AI readiness, metrics)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ticketflow.core.config import Settings, get_settings, get_version
from ticketflow.core.metrics import generate_metrics
from ticketflow.schemas import AIHealthResponse, HealthResponse, StageHealth

router = APIRouter(tags=["health"])

_version = get_version()


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness probe: returns OK if the web process is running."""
    return HealthResponse(status="ok", version=_version)


@router.get("/health/ai", response_model=AIHealthResponse)
def ai_health_check(
    settings: Settings = Depends(get_settings),
) -> AIHealthResponse:
    """Report which external stages are enabled and configured.

    Only checks for credentials; the providers are not called.
    """
    return AIHealthResponse(
        ai_enabled=settings.AI_ENABLED,
        response_generation_enabled=settings.RESPONSE_GENERATION_ENABLED,
        stage1=StageHealth(
            model=settings.STAGE1_MODEL,
            configured=settings.stage1_configured,
        ),
        stage2=StageHealth(
            model=settings.STAGE2_MODEL,
            configured=settings.stage2_configured,
        ),
    )


@router.get("/metrics", tags=["observability"])
def prometheus_metrics() -> Response:
    """Expose pipeline metrics in Prometheus exposition format."""
    return Response(content=generate_metrics(), media_type=CONTENT_TYPE_LATEST)
