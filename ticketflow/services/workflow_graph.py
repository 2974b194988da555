"""
Workflow graph generation.

Each document type maps to a fixed template of lifecycle steps.
The generator instantiates one node per step, splices the
record's error into the ``error`` step, lays the nodes out left
to right and links consecutive nodes.  The function is total:
unknown document types use the invoice template.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from ticketflow.core.constants import (
    ERROR_DETAIL_EXCERPT_CHARS,
    NO_ERROR,
    VIDEO_PENDING_CONFIDENCE,
)
from ticketflow.schemas.enums import DocumentType, EdgeKind, NodeStatus, RecordKind
from ticketflow.schemas.ticket import TicketRecord
from ticketflow.schemas.workflow import (
    GraphMetadata,
    NodePosition,
    StageEdge,
    StageNode,
    WorkflowGraph,
)
from ticketflow.services.confidence import score

logger = logging.getLogger(__name__)

# ── Layout ──────────────────────────────────────────────────

ORIGIN_X = 200
STEP_X = 250
BASE_Y = 200
ODD_STEP_OFFSET_Y = 50

ERROR_STEP_ID = "error"


@dataclass(frozen=True)
class TemplateStep:
    """One step of a document lifecycle template."""

    id: str
    label: str
    status: NodeStatus


def _error_step() -> TemplateStep:
    # Label is filled in per record.
    return TemplateStep(ERROR_STEP_ID, "Error", NodeStatus.ERROR)


TEMPLATES: dict[DocumentType, tuple[TemplateStep, ...]] = {
    DocumentType.INVOICE: (
        TemplateStep("start", "Invoice Received", NodeStatus.COMPLETE),
        TemplateStep("validate", "Validate Invoice", NodeStatus.PROCESSING),
        _error_step(),
        TemplateStep("resolution", "Apply Resolution", NodeStatus.PROCESSING),
        TemplateStep("complete", "Invoice Processed", NodeStatus.START),
    ),
    DocumentType.PURCHASE_ORDER: (
        TemplateStep("start", "PO Received", NodeStatus.COMPLETE),
        TemplateStep("validate", "Validate Order", NodeStatus.PROCESSING),
        _error_step(),
        TemplateStep("resolution", "Resolve Issue", NodeStatus.PROCESSING),
        TemplateStep("complete", "Order Accepted", NodeStatus.START),
    ),
    DocumentType.SHIP_NOTICE: (
        TemplateStep("start", "ASN Created", NodeStatus.COMPLETE),
        TemplateStep("validate", "Validate Shipment", NodeStatus.PROCESSING),
        _error_step(),
        TemplateStep("resolution", "Correct ASN", NodeStatus.PROCESSING),
        TemplateStep("complete", "ASN Accepted", NodeStatus.START),
    ),
    DocumentType.PO_ACKNOWLEDGMENT: (
        TemplateStep("start", "PO Acknowledgment", NodeStatus.COMPLETE),
        _error_step(),
        TemplateStep("complete", "Acknowledged", NodeStatus.START),
    ),
    DocumentType.FUNCTIONAL_ACK: (
        TemplateStep("start", "Functional Ack", NodeStatus.COMPLETE),
        _error_step(),
        TemplateStep("complete", "Acknowledged", NodeStatus.START),
    ),
}

VIDEO_PENDING_TEMPLATE: tuple[TemplateStep, ...] = (
    TemplateStep("start", "Video Received", NodeStatus.COMPLETE),
    TemplateStep("analyse", "Frames Analysed", NodeStatus.COMPLETE),
    TemplateStep(ERROR_STEP_ID, "Manual Review Required", NodeStatus.ERROR),
    TemplateStep("details", "Complete Ticket Details", NodeStatus.PROCESSING),
    TemplateStep("complete", "Ticket Ready", NodeStatus.START),
)

VIDEO_PENDING_DESCRIPTION = "Video ticket needs manual completion"


def template_for(record: TicketRecord) -> tuple[TemplateStep, ...]:
    """Pick the step template for *record*."""
    if record.kind == RecordKind.VIDEO_PENDING:
        return VIDEO_PENDING_TEMPLATE
    return TEMPLATES.get(record.document_type, TEMPLATES[DocumentType.INVOICE])


def error_excerpt(raw_text: str) -> str:
    """First characters of the ticket, shown on the error node."""
    return raw_text[:ERROR_DETAIL_EXCERPT_CHARS] + "..."


def _build_node(index: int, step: TemplateStep, record: TicketRecord) -> StageNode:
    position = NodePosition(
        x=ORIGIN_X + STEP_X * index,
        y=BASE_Y + (ODD_STEP_OFFSET_Y if index % 2 else 0),
    )
    if step.status != NodeStatus.ERROR:
        return StageNode(
            id=step.id,
            position=position,
            label=step.label,
            status=step.status,
        )

    if record.kind == RecordKind.VIDEO_PENDING:
        label = step.label
        description = VIDEO_PENDING_DESCRIPTION
    else:
        label = f"Error: {record.error_type}"
        description = record.error_code
    return StageNode(
        id=step.id,
        position=position,
        label=label,
        status=step.status,
        description=description,
        error_details=error_excerpt(record.raw_text),
    )


def _build_edges(nodes: list[StageNode]) -> list[StageEdge]:
    edges: list[StageEdge] = []
    for i, (source, target) in enumerate(zip(nodes, nodes[1:])):
        touches_error = NodeStatus.ERROR in (source.status, target.status)
        edges.append(
            StageEdge(
                id=f"edge-{i}",
                source=source.id,
                target=target.id,
                kind=EdgeKind.ERROR if touches_error else EdgeKind.MAIN,
                animated=source.status == NodeStatus.PROCESSING,
            )
        )
    return edges


def generate(
    record: TicketRecord,
    confidence: float | None = None,
) -> WorkflowGraph:
    """Derive the workflow graph for *record*.

    Args:
        record: The extracted ticket.
        confidence: Confidence to report; defaults to the
            scorer's value, or the fixed video-pending value for
            video tickets.

    Returns:
        A path graph with exactly one error node unless the
        record's error type is ``NONE``.
    """
    steps = template_for(record)
    if record.error_type == NO_ERROR:
        steps = tuple(s for s in steps if s.status != NodeStatus.ERROR)

    if record.kind == RecordKind.VIDEO_PENDING:
        confidence = VIDEO_PENDING_CONFIDENCE
    elif confidence is None:
        confidence = score(record)

    nodes = [_build_node(i, step, record) for i, step in enumerate(steps)]
    graph = WorkflowGraph(
        nodes=nodes,
        edges=_build_edges(nodes),
        metadata=GraphMetadata(
            document_type=record.document_type,
            generated_at=datetime.now(UTC),
            confidence=confidence,
        ),
    )
    logger.debug(
        "Generated %d-node graph for %s (%s)",
        len(nodes),
        record.id,
        record.document_type,
    )
    return graph
