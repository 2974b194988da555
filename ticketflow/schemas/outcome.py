"""Per-stage diagnostics and the orchestrator's return value."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from ticketflow.schemas.enums import StageName
from ticketflow.schemas.ticket import TicketRecord


class StageResult(BaseModel):
    """Diagnostics for one attempt by one stage."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    stage: StageName
    model: str | None = Field(
        default=None,
        description="External model / engine name, if any",
    )
    success: bool
    processing_time_ms: int = Field(default=0, ge=0)
    error: str | None = None
    tokens_per_second: float | None = Field(
        default=None,
        description="Throughput of the generative stage",
    )


class ResponseGeneration(BaseModel):
    """Human-readable texts produced by the response generator."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    customer_response: str
    internal_documentation: str
    technical_solutions: list[str] = Field(default_factory=list)
    resolution_steps: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.9, ge=0.0, le=1.0)


class ExtractionOutcome(BaseModel):
    """Everything one orchestration call produced.

    ``producer`` names the stage whose output became ``record``;
    ``overall_success`` is derived from it and never set directly.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    stages: list[StageResult] = Field(default_factory=list)
    record: TicketRecord | None = None
    producer: StageName | None = None
    response_generation: ResponseGeneration | None = None
    fallback_used: bool = False
    total_processing_time_ms: int = Field(default=0, ge=0)
    message: str | None = Field(
        default=None,
        description="Actionable explanation when no record was produced",
    )

    def stage(self, name: StageName) -> StageResult | None:
        """Return the diagnostics for *name*, if it was attempted."""
        for result in self.stages:
            if result.stage == name:
                return result
        return None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def overall_success(self) -> bool:
        """``True`` iff the stage that produced the record succeeded."""
        if self.record is None or self.producer is None:
            return False
        producing = self.stage(self.producer)
        return producing is not None and producing.success
