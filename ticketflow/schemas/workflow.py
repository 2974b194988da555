"""Workflow graph models derived from a ticket record."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ticketflow.schemas.enums import DocumentType, EdgeKind, NodeStatus


class _GraphModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class NodePosition(_GraphModel):
    """Layout coordinates assigned by the generator."""

    x: int
    y: int


class StageNode(_GraphModel):
    """One processing stage of the document lifecycle."""

    id: str
    type: str = Field(default="station", description="Renderer node type")
    position: NodePosition
    label: str
    status: NodeStatus
    description: str | None = None
    error_details: str | None = None


class StageEdge(_GraphModel):
    """Directed connection between two consecutive stages."""

    id: str
    source: str
    target: str
    kind: EdgeKind = EdgeKind.MAIN
    animated: bool = False


class GraphMetadata(_GraphModel):
    """Provenance of a generated graph."""

    document_type: DocumentType
    generated_at: datetime
    confidence: float = Field(..., ge=0.0, le=1.0)


class WorkflowGraph(_GraphModel):
    """Renderable path of stage nodes with the failure spliced in."""

    nodes: list[StageNode] = Field(default_factory=list)
    edges: list[StageEdge] = Field(default_factory=list)
    metadata: GraphMetadata

    @property
    def error_nodes(self) -> list[StageNode]:
        """Nodes carrying the ``error`` status."""
        return [n for n in self.nodes if n.status == NodeStatus.ERROR]
