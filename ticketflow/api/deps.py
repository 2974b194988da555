"""
FastAPI dependency-injection helpers.

Provides ``Depends()``-compatible accessors for the shared
collaborators (ticket store, customer directory) and the
per-request orchestrator configuration.  Override them in tests
via ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from ticketflow.core.config import Settings, get_settings
from ticketflow.services.enrichment import CustomerDirectory, default_directory
from ticketflow.services.orchestrator import OrchestratorConfig
from ticketflow.services.ticket_store import InMemoryTicketStore, TicketStore


@lru_cache
def get_ticket_store() -> TicketStore:
    """Return the process-wide ticket store."""
    return InMemoryTicketStore()


@lru_cache
def get_customer_directory() -> CustomerDirectory:
    """Return the process-wide customer directory."""
    return default_directory()


def get_orchestrator_config(
    settings: Settings = Depends(get_settings),
) -> OrchestratorConfig:
    """Default orchestrator configuration derived from settings."""
    return OrchestratorConfig.from_settings(settings)
