"""
Customer enrichment.

Looks the ticket's company up in a customer directory and fills
in contact details the ticket text did not carry.  Populated
fields are never overwritten.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable
from typing import Protocol

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ticketflow.core.constants import UNKNOWN_BUYER, UNKNOWN_SUPPLIER
from ticketflow.schemas.ticket import TicketRecord

logger = logging.getLogger(__name__)

# Containment matches on names shorter than this are too loose.
_MIN_FUZZY_LENGTH = 3
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


class CustomerProfile(BaseModel):
    """One customer known to the directory."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    company_id: str
    company_name: str
    contact_name: str | None = None
    email: str | None = None
    phone_number: str | None = None


class CustomerDirectory(Protocol):
    """Lookup collaborator used by the orchestrator."""

    def lookup(self, name_or_id: str) -> CustomerProfile | None: ...


def _normalise(name: str) -> str:
    return _NON_ALNUM_RE.sub(" ", name.lower()).strip()


class InMemoryCustomerDirectory:
    """Thread-safe directory held in process memory.

    Lookup order: exact company id, exact (normalised) name, then
    containment in either direction on normalised names.
    """

    def __init__(self, profiles: Iterable[CustomerProfile] = ()) -> None:
        self._lock = threading.Lock()
        self._profiles: dict[str, CustomerProfile] = {}
        for profile in profiles:
            self.add(profile)

    def add(self, profile: CustomerProfile) -> None:
        """Insert or replace *profile* keyed by its company id."""
        with self._lock:
            self._profiles[profile.company_id] = profile

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)

    def lookup(self, name_or_id: str) -> CustomerProfile | None:
        key = name_or_id.strip()
        if not key:
            return None
        with self._lock:
            profiles = list(self._profiles.values())
            by_id = self._profiles.get(key)
        if by_id is not None:
            return by_id

        wanted = _normalise(key)
        for profile in profiles:
            if _normalise(profile.company_name) == wanted:
                return profile

        if len(wanted) < _MIN_FUZZY_LENGTH:
            return None
        for profile in profiles:
            known = _normalise(profile.company_name)
            if len(known) >= _MIN_FUZZY_LENGTH and (wanted in known or known in wanted):
                return profile
        return None


def lookup_keys(record: TicketRecord) -> list[str]:
    """Candidate lookup keys in priority order, sentinels skipped."""
    keys = [
        record.company_id,
        record.company_name,
        None if record.buyer == UNKNOWN_BUYER else record.buyer,
        None if record.supplier == UNKNOWN_SUPPLIER else record.supplier,
    ]
    return [k for k in keys if k]


def enrich_record(
    record: TicketRecord,
    directory: CustomerDirectory,
) -> TicketRecord:
    """Merge the first matching directory profile into *record*.

    Args:
        record: The extracted ticket.
        directory: Where to look the customer up.

    Returns:
        A new record when a profile matched and filled at least
        one empty field, otherwise *record* itself.
    """
    profile = None
    for key in lookup_keys(record):
        profile = directory.lookup(key)
        if profile is not None:
            break
    if profile is None:
        return record

    candidates = {
        "company_id": profile.company_id,
        "company_name": profile.company_name,
        "customer_name": profile.contact_name,
        "email": profile.email,
        "phone_number": profile.phone_number,
    }
    updates = {
        field: value
        for field, value in candidates.items()
        if value and not getattr(record, field)
    }
    if not updates:
        return record

    logger.info(
        "Enriched ticket %s from customer %s (%s)",
        record.id,
        profile.company_id,
        ", ".join(sorted(updates)),
    )
    return record.model_copy(update=updates)


# ── Seed data ───────────────────────────────────────────────

DEFAULT_CUSTOMERS: tuple[CustomerProfile, ...] = (
    CustomerProfile(
        company_id="5087",
        company_name="Sunset Brands",
        contact_name="John Geraci",
        email="john@sunsetbrands.com",
        phone_number="(210) 226-1088",
    ),
    CustomerProfile(
        company_id="5085",
        company_name="Sparks Group US LLC",
        contact_name="Stacy Williams",
        email="stacy.williams@sparksgroupus.com",
    ),
    CustomerProfile(
        company_id="5084",
        company_name="Britelites",
        contact_name="Laura Brinson",
        email="laura@britelites.com",
        phone_number="(972) 247-4290",
    ),
    CustomerProfile(
        company_id="5082",
        company_name="Wellen Construction",
        contact_name="James Crain",
        email="jcrain@wellen.com",
        phone_number="(314) 436-7600",
    ),
    CustomerProfile(
        company_id="5081",
        company_name="Atkins",
        contact_name="Sonia Garza",
        email="sonia.garza@atkinsrealis.com",
        phone_number="(214) 748-3700",
    ),
)


def default_directory() -> InMemoryCustomerDirectory:
    """Directory seeded with the bundled customer list."""
    return InMemoryCustomerDirectory(DEFAULT_CUSTOMERS)
