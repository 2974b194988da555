"""Response models for the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ticketflow.schemas.enums import Severity
from ticketflow.schemas.outcome import ExtractionOutcome
from ticketflow.schemas.ticket import TicketRecord
from ticketflow.schemas.workflow import WorkflowGraph


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ExtractResponse(_ApiModel):
    """Returned by ``POST /extract`` when a record was produced."""

    outcome: ExtractionOutcome
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Reported confidence of the record",
    )
    workflow: WorkflowGraph


class StoredTicketResponse(_ApiModel):
    """A saved ticket with its workflow graph."""

    ticket_id: str
    record: TicketRecord
    workflow: WorkflowGraph
    saved_at: datetime


class ErrorPatternResponse(_ApiModel):
    """One entry of the error-pattern reference catalogue."""

    id: str
    error_type: str
    error_code: str | None = None
    document_types: list[str]
    common_causes: list[str]
    resolution_steps: list[str]
    prevention_tips: list[str]
    estimated_time: str
    severity: Severity
    frequency: int = Field(..., ge=0, le=100, description="Share of tickets, %")
    tags: list[str] = Field(default_factory=list)
