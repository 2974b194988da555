"""Ticket extraction and workflow-graph routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ticketflow.api.deps import get_customer_directory, get_orchestrator_config
from ticketflow.core.constants import EXTRACTION_FAILED_MESSAGE
from ticketflow.schemas import (
    ExtractRequest,
    ExtractResponse,
    TicketRecord,
    WorkflowGraph,
)
from ticketflow.services.confidence import reported_confidence
from ticketflow.services.enrichment import CustomerDirectory
from ticketflow.services.orchestrator import ExtractionOrchestrator, OrchestratorConfig
from ticketflow.services.workflow_graph import generate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["extraction"])


@router.post(
    "/extract",
    response_model=ExtractResponse,
    response_model_exclude_none=True,
)
async def extract_ticket(
    request: ExtractRequest,
    config: OrchestratorConfig = Depends(get_orchestrator_config),
    directory: CustomerDirectory = Depends(get_customer_directory),
) -> ExtractResponse:
    """
    Extract a structured record and its workflow graph from ticket text.

    The AI stages are tried first when enabled; the pattern
    matcher is the fallback.  Returns 422 with an actionable
    message when no stage could identify the document.
    """
    config = config.with_overrides(
        ai_enabled=request.ai_enabled,
        response_generation_enabled=request.generate_responses,
        enrichment_enabled=request.enrich,
    )
    outcome = await ExtractionOrchestrator(config, directory).run(request.raw_text)

    if outcome.record is None:
        raise HTTPException(
            status_code=422,
            detail=outcome.message or EXTRACTION_FAILED_MESSAGE,
        )

    confidence = reported_confidence(outcome.record, outcome.producer)
    return ExtractResponse(
        outcome=outcome,
        confidence=confidence,
        workflow=generate(outcome.record, confidence),
    )


@router.post(
    "/workflow",
    response_model=WorkflowGraph,
    response_model_exclude_none=True,
    tags=["workflow"],
)
def build_workflow(record: TicketRecord) -> WorkflowGraph:
    """Generate the workflow graph for an already extracted record."""
    return generate(record)
