"""Health check response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Returned by the health-check endpoint."""

    status: str = Field(
        ...,
        description="Service health status",
    )
    version: str = Field(
        ...,
        description="Application version",
    )


class StageHealth(BaseModel):
    """Configuration state of one external stage."""

    model: str = Field(..., description="Model identifier")
    configured: bool = Field(
        ...,
        description="Credentials are present for the model's provider",
    )


class AIHealthResponse(BaseModel):
    """Returned by the AI-stage health endpoint."""

    ai_enabled: bool = Field(
        ...,
        description="AI stages are switched on by default",
    )
    response_generation_enabled: bool
    stage1: StageHealth
    stage2: StageHealth
