"""
Pydantic models for records, graphs, diagnostics and the HTTP API.

Every public model is re-exported from this ``__init__`` so that
``from ticketflow.schemas import TicketRecord`` works without
knowing which module defines it.
"""

from ticketflow.schemas.enums import (
    ActionType,
    DocumentType,
    EdgeKind,
    ErrorType,
    NodeStatus,
    RecordKind,
    Severity,
    StageName,
)
from ticketflow.schemas.health import AIHealthResponse, HealthResponse, StageHealth
from ticketflow.schemas.outcome import (
    ExtractionOutcome,
    ResponseGeneration,
    StageResult,
)
from ticketflow.schemas.requests import ExtractRequest, SaveTicketRequest
from ticketflow.schemas.responses import (
    ErrorPatternResponse,
    ExtractResponse,
    StoredTicketResponse,
)
from ticketflow.schemas.ticket import TicketEdits, TicketRecord
from ticketflow.schemas.workflow import (
    GraphMetadata,
    NodePosition,
    StageEdge,
    StageNode,
    WorkflowGraph,
)

__all__ = [
    "AIHealthResponse",
    "ActionType",
    "DocumentType",
    "EdgeKind",
    "ErrorPatternResponse",
    "ErrorType",
    "ExtractRequest",
    "ExtractResponse",
    "ExtractionOutcome",
    "GraphMetadata",
    "HealthResponse",
    "NodePosition",
    "NodeStatus",
    "RecordKind",
    "ResponseGeneration",
    "SaveTicketRequest",
    "Severity",
    "StageEdge",
    "StageHealth",
    "StageName",
    "StageNode",
    "StageResult",
    "StoredTicketResponse",
    "TicketEdits",
    "TicketRecord",
    "WorkflowGraph",
]
