"""
Exception hierarchy for the extraction pipeline.

These are carried as the error payload of ``Err`` values rather
than raised across the orchestrator boundary, so stage failures
surface as diagnostics instead of crashing a request.
"""

from __future__ import annotations

from ticketflow.schemas.enums import StageName

#: Evidence categories the deterministic extractor searches for.
EVIDENCE_CATEGORIES: tuple[str, ...] = (
    "document-type tokens",
    "purchase-order / invoice identifiers",
    "company names",
)


class TicketFlowError(Exception):
    """Base exception for the ticketflow package."""


class ExtractionError(TicketFlowError):
    """The deterministic extractor could not build a record."""


class NoDocumentTypeError(ExtractionError):
    """No textual evidence for any supported EDI transaction code."""

    def __init__(self, message: str = "Could not detect document type") -> None:
        super().__init__(message)
        self.evidence_searched = EVIDENCE_CATEGORIES


class StageError(TicketFlowError):
    """An external-service stage failed.

    Attributes:
        stage: Which stage failed.
        cause: Human-readable cause, safe for diagnostics only.
    """

    def __init__(self, stage: StageName, cause: str) -> None:
        super().__init__(f"{stage}: {cause}")
        self.stage = stage
        self.cause = cause


class StageUnavailableError(StageError):
    """Stage disabled, unconfigured, unreachable, or timed out."""


class StageMalformedReplyError(StageError):
    """Stage responded, but not with the documented payload shape."""
