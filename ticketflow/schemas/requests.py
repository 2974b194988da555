"""Request models for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ticketflow.schemas.ticket import TicketRecord
from ticketflow.schemas.workflow import WorkflowGraph

# Maximum raw_text size in characters (~1 MB of text).
_MAX_RAW_TEXT_CHARS: int = 1_000_000


class ExtractRequest(BaseModel):
    """Body of ``POST /extract``.

    The optional switches override the server defaults for this
    request only; ``None`` keeps the default.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    raw_text: str = Field(
        ...,
        min_length=1,
        max_length=_MAX_RAW_TEXT_CHARS,
        description="Free-form support ticket text",
    )
    ai_enabled: bool | None = Field(
        default=None,
        description="Try the AI parsing stage before the pattern matcher",
    )
    generate_responses: bool | None = Field(
        default=None,
        description="Generate support responses after AI parsing",
    )
    enrich: bool | None = Field(
        default=None,
        description="Merge customer directory details into the record",
    )

    @field_validator("raw_text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("raw_text must not be blank")
        return v


class SaveTicketRequest(BaseModel):
    """Body of ``POST /tickets/{ticket_id}``.

    When ``workflow`` is omitted the graph is generated from the
    record.
    """

    record: TicketRecord
    workflow: WorkflowGraph | None = None
