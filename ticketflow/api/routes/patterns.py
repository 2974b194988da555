"""Error-pattern reference catalogue routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ticketflow.schemas import DocumentType, ErrorPatternResponse, Severity
from ticketflow.services.patterns import (
    ERROR_PATTERN_CATALOG,
    ErrorPatternEntry,
    get_error_pattern,
    get_errors_by_document_type,
    get_errors_by_severity,
)

router = APIRouter(prefix="/patterns", tags=["patterns"])


def _to_response(entry: ErrorPatternEntry) -> ErrorPatternResponse:
    return ErrorPatternResponse(
        id=entry.id,
        error_type=entry.error_type,
        error_code=entry.error_code,
        document_types=list(entry.document_types),
        common_causes=list(entry.common_causes),
        resolution_steps=list(entry.resolution_steps),
        prevention_tips=list(entry.prevention_tips),
        estimated_time=entry.estimated_time,
        severity=entry.severity,
        frequency=entry.frequency,
        tags=list(entry.tags),
    )


@router.get(
    "",
    response_model=list[ErrorPatternResponse],
    response_model_exclude_none=True,
)
def list_patterns(
    document_type: DocumentType | None = None,
    severity: Severity | None = None,
) -> list[ErrorPatternResponse]:
    """List catalogue entries, optionally filtered.

    Both filters may be combined.
    """
    entries = list(ERROR_PATTERN_CATALOG)
    if document_type is not None:
        entries = get_errors_by_document_type(document_type)
    if severity is not None:
        by_severity = get_errors_by_severity(severity)
        entries = [e for e in entries if e in by_severity]
    return [_to_response(e) for e in entries]


@router.get(
    "/{error_type}",
    response_model=ErrorPatternResponse,
    response_model_exclude_none=True,
)
def get_pattern(error_type: str) -> ErrorPatternResponse:
    """Look a catalogue entry up by id, error tag, or display name."""
    entry = get_error_pattern(error_type)
    if entry is None:
        raise HTTPException(
            status_code=404,
            detail=f"No catalogued pattern for {error_type!r}",
        )
    return _to_response(entry)
