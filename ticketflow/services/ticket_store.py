"""
Ticket persistence collaborator.

Stores the (record, graph) pair of a ticket under its
identifier.  Saving the same identifier twice replaces the
previous pair, so saves are idempotent.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from ticketflow.schemas.ticket import TicketRecord
from ticketflow.schemas.workflow import WorkflowGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredTicket:
    """A saved ticket and when it was last written."""

    ticket_id: str
    record: TicketRecord
    graph: WorkflowGraph
    saved_at: datetime


class TicketStore(Protocol):
    """Persistence boundary; no storage medium is assumed."""

    def save(
        self,
        ticket_id: str,
        record: TicketRecord,
        graph: WorkflowGraph,
    ) -> StoredTicket: ...

    def get(self, ticket_id: str) -> StoredTicket | None: ...

    def recent(self, limit: int) -> list[StoredTicket]: ...


class InMemoryTicketStore:
    """Thread-safe store that keeps tickets in insertion order.

    Re-saving an identifier moves it to the most-recent end.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tickets: OrderedDict[str, StoredTicket] = OrderedDict()

    def save(
        self,
        ticket_id: str,
        record: TicketRecord,
        graph: WorkflowGraph,
    ) -> StoredTicket:
        stored = StoredTicket(
            ticket_id=ticket_id,
            record=record,
            graph=graph,
            saved_at=datetime.now(UTC),
        )
        with self._lock:
            replaced = ticket_id in self._tickets
            self._tickets[ticket_id] = stored
            self._tickets.move_to_end(ticket_id)
        logger.debug(
            "%s ticket %s",
            "Replaced" if replaced else "Saved",
            ticket_id,
        )
        return stored

    def get(self, ticket_id: str) -> StoredTicket | None:
        with self._lock:
            return self._tickets.get(ticket_id)

    def recent(self, limit: int) -> list[StoredTicket]:
        """Return up to *limit* tickets, most recently saved first."""
        if limit <= 0:
            return []
        with self._lock:
            items = list(self._tickets.values())
        return items[::-1][:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._tickets)
