"""
Ticket titles and user edits.

Edits never mutate a record: ``apply_edits`` validates a new
record and re-derives everything that depends on the edited
fields (the standard title and the workflow graph).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ticketflow.core.constants import UNKNOWN_ERROR
from ticketflow.schemas.ticket import TicketEdits, TicketRecord
from ticketflow.schemas.workflow import WorkflowGraph
from ticketflow.services.patterns import document_type_name, error_type_description
from ticketflow.services.workflow_graph import generate

logger = logging.getLogger(__name__)

_KEY_ISSUE_RE = re.compile(
    r"(?:rejected|error|failed)[^.]*?(?:\.|$)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class EditResult:
    """The edited record and its regenerated graph."""

    record: TicketRecord
    graph: WorkflowGraph


def build_ticket_title(
    company_id: str,
    company_name: str,
    error_description: str,
    document_type: str,
) -> str:
    """Standard ticket title, e.g. ``5087 Sunset Brands - 810 Invoice Rejected``."""
    return (
        f"{company_id} {company_name} - "
        f"{document_type_name(document_type)} {error_description}"
    ).strip()


def describe_error(record: TicketRecord) -> str:
    """Short error phrase for the ticket title.

    Uses the first ``rejected…`` / ``error…`` / ``failed…``
    sentence of the issue description when there is one,
    otherwise the description of the error tag.
    """
    if record.issue_description:
        match = _KEY_ISSUE_RE.search(record.issue_description)
        if match:
            phrase = match.group(0).rstrip(".").strip()
            return phrase[:1].upper() + phrase[1:]
    return error_type_description(record.error_type)


def derive_title(record: TicketRecord) -> str | None:
    """Standard title when the record has enough company details."""
    if not (record.company_id and record.company_name and record.error_type):
        return None
    if record.error_type == UNKNOWN_ERROR and not record.issue_description:
        return None
    return build_ticket_title(
        record.company_id,
        record.company_name,
        describe_error(record),
        record.document_type,
    )


def with_derived_title(record: TicketRecord) -> TicketRecord:
    """Return *record* with the standard title filled in if missing."""
    if record.ticket_title:
        return record
    title = derive_title(record)
    if title is None:
        return record
    return record.model_copy(update={"ticket_title": title})


def apply_edits(record: TicketRecord, edits: TicketEdits) -> EditResult:
    """Apply user corrections to *record*.

    Args:
        record: The current record (left untouched).
        edits: Fields to replace.

    Returns:
        The new record and a freshly generated graph.

    Raises:
        pydantic.ValidationError: If the edited record is invalid.
    """
    changes = edits.changes()
    data = record.model_dump()
    data.update(changes)

    # Derived titles follow the facts; titles from the ticket text
    # or set by the user are kept.
    title_was_derived = record.ticket_title == derive_title(record)
    if "ticket_title" not in changes and title_was_derived:
        data["ticket_title"] = None

    edited = with_derived_title(TicketRecord.model_validate(data))

    logger.info(
        "Applied edits to ticket %s: %s",
        record.id,
        ", ".join(sorted(changes)) or "none",
    )
    return EditResult(record=edited, graph=generate(edited))
