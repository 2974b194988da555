"""Structured ticket record produced by every extraction stage."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ticketflow.core.constants import UNKNOWN_BUYER, UNKNOWN_ERROR, UNKNOWN_SUPPLIER
from ticketflow.schemas.enums import ActionType, DocumentType, RecordKind

_TAG_SEPARATORS_RE = re.compile(r"[\s\-]+")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalise_identifiers(values: list[str] | None) -> list[str]:
    """Trim, drop empties, and de-duplicate preserving first occurrence.

    Args:
        values: Raw identifier tokens.

    Returns:
        Clean, ordered, duplicate-free list.
    """
    seen: dict[str, None] = {}
    for value in values or []:
        token = str(value).strip()
        if token and token not in seen:
            seen[token] = None
    return list(seen)


def normalise_error_tag(value: str | None) -> str:
    """Upper-snake-case an error tag; blank becomes ``UNKNOWN_ERROR``."""
    if value is None:
        return UNKNOWN_ERROR
    tag = _TAG_SEPARATORS_RE.sub("_", str(value).strip()).upper()
    return tag or UNKNOWN_ERROR


class TicketRecord(BaseModel):
    """Business facts extracted from one support ticket.

    The record is immutable; edits go through
    ``ticketflow.services.tickets.apply_edits`` which builds a new
    record and re-derives the dependent title and graph.

    Serialised field names are camelCase (``documentType``,
    ``affectedPOs`` …) and optional fields are omitted when absent.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str = Field(..., min_length=1, description="Ticket identifier")
    document_type: DocumentType = Field(
        ...,
        description="EDI transaction code of the failing document",
    )
    supplier: str = Field(default=UNKNOWN_SUPPLIER)
    buyer: str = Field(default=UNKNOWN_BUYER)
    error_type: str = Field(
        default=UNKNOWN_ERROR,
        description="Upper-snake error classification",
    )
    error_code: str | None = Field(default=None)
    affected_pos: list[str] = Field(
        default_factory=list,
        alias="affectedPOs",
        description="Purchase-order / invoice identifiers, ordered",
    )
    action: ActionType = Field(default=ActionType.REJECTION)
    timestamp: datetime = Field(default_factory=_utcnow)
    raw_text: str = Field(default="", description="Original ticket text")
    kind: RecordKind = Field(default=RecordKind.STANDARD)

    # ── Optional enrichment fields ──────────────────────────
    ticket_title: str | None = None
    customer_name: str | None = None
    company_name: str | None = None
    company_id: str | None = None
    email: str | None = None
    phone_number: str | None = None
    trading_partner: str | None = None
    integration_type: str | None = None
    issue_description: str | None = None
    message_ids: list[str] | None = None
    control_number: str | None = None
    document_types: list[str] | None = None
    error_date: datetime | None = None
    resolution_steps: list[str] | None = None
    common_causes: list[str] | None = None

    @field_validator("affected_pos", mode="before")
    @classmethod
    def _clean_identifiers(cls, v: Any) -> list[str]:
        """Reject empty and duplicate identifiers."""
        if v is None:
            return []
        if isinstance(v, str):
            v = re.split(r"[,\s]+", v)
        return normalise_identifiers(list(v))

    @field_validator("error_type", mode="before")
    @classmethod
    def _normalise_error_type(cls, v: Any) -> str:
        return normalise_error_tag(v)

    @field_validator("message_ids", mode="before")
    @classmethod
    def _clean_message_ids(cls, v: Any) -> list[str] | None:
        if v is None:
            return None
        if isinstance(v, str):
            v = [v]
        cleaned = normalise_identifiers(list(v))
        return cleaned or None

    def to_payload(self) -> dict[str, Any]:
        """Serialise for collaborators: camelCase, absent fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TicketEdits(BaseModel):
    """User-supplied corrections applied to an existing record.

    Every field is optional; only the ones that are set replace
    the corresponding value on the record.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        extra="forbid",
    )

    document_type: DocumentType | None = None
    supplier: str | None = None
    buyer: str | None = None
    error_type: str | None = None
    error_code: str | None = None
    affected_pos: list[str] | None = Field(default=None, alias="affectedPOs")
    action: ActionType | None = None
    ticket_title: str | None = None
    customer_name: str | None = None
    company_name: str | None = None
    company_id: str | None = None
    email: str | None = None
    phone_number: str | None = None
    trading_partner: str | None = None
    integration_type: str | None = None
    issue_description: str | None = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller explicitly set."""
        return self.model_dump(exclude_unset=True)
