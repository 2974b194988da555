"""Saved-ticket routes: save, fetch, list recent, edit."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from ticketflow.api.deps import get_ticket_store
from ticketflow.core.config import Settings, get_settings
from ticketflow.schemas import SaveTicketRequest, StoredTicketResponse, TicketEdits
from ticketflow.services.ticket_store import StoredTicket, TicketStore
from ticketflow.services.tickets import apply_edits
from ticketflow.services.workflow_graph import generate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["tickets"])


def _to_response(stored: StoredTicket) -> StoredTicketResponse:
    return StoredTicketResponse(
        ticket_id=stored.ticket_id,
        record=stored.record,
        workflow=stored.graph,
        saved_at=stored.saved_at,
    )


def _get_or_404(store: TicketStore, ticket_id: str) -> StoredTicket:
    stored = store.get(ticket_id)
    if stored is None:
        raise HTTPException(
            status_code=404,
            detail=f"Ticket {ticket_id!r} not found",
        )
    return stored


@router.post(
    "/{ticket_id}",
    response_model=StoredTicketResponse,
    response_model_exclude_none=True,
)
def save_ticket(
    ticket_id: str,
    request: SaveTicketRequest,
    store: TicketStore = Depends(get_ticket_store),
) -> StoredTicketResponse:
    """
    Save a record and its graph under *ticket_id*.

    Saving the same id again replaces the previous version.
    """
    graph = request.workflow or generate(request.record)
    return _to_response(store.save(ticket_id, request.record, graph))


@router.get(
    "",
    response_model=list[StoredTicketResponse],
    response_model_exclude_none=True,
)
def list_recent_tickets(
    limit: int | None = Query(default=None, ge=1, le=100),
    store: TicketStore = Depends(get_ticket_store),
    settings: Settings = Depends(get_settings),
) -> list[StoredTicketResponse]:
    """Most recently saved tickets first."""
    limit = limit or settings.RECENT_TICKETS_LIMIT
    return [_to_response(t) for t in store.recent(limit)]


@router.get(
    "/{ticket_id}",
    response_model=StoredTicketResponse,
    response_model_exclude_none=True,
)
def get_ticket(
    ticket_id: str,
    store: TicketStore = Depends(get_ticket_store),
) -> StoredTicketResponse:
    """Fetch one saved ticket."""
    return _to_response(_get_or_404(store, ticket_id))


@router.patch(
    "/{ticket_id}",
    response_model=StoredTicketResponse,
    response_model_exclude_none=True,
)
def edit_ticket(
    ticket_id: str,
    edits: TicketEdits,
    store: TicketStore = Depends(get_ticket_store),
) -> StoredTicketResponse:
    """
    Apply corrections to a saved ticket.

    The title and workflow graph are re-derived from the edited
    record and the new version replaces the saved one.
    """
    stored = _get_or_404(store, ticket_id)
    try:
        result = apply_edits(stored.record, edits)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False),
        ) from exc
    return _to_response(store.save(ticket_id, result.record, result.graph))
