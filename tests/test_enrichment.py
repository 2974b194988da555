"""Tests for customer directory enrichment."""

from __future__ import annotations

from ticketflow.schemas.enums import DocumentType
from ticketflow.schemas.ticket import TicketRecord
from ticketflow.services.enrichment import (
    CustomerProfile,
    InMemoryCustomerDirectory,
    default_directory,
    enrich_record,
    lookup_keys,
)

SUNSET = CustomerProfile(
    company_id="5087",
    company_name="Sunset Brands",
    contact_name="John Geraci",
    email="john@sunsetbrands.com",
    phone_number="(210) 226-1088",
)


def _record(**overrides) -> TicketRecord:
    fields = {"id": "1", "document_type": DocumentType.INVOICE}
    fields.update(overrides)
    return TicketRecord(**fields)


class TestDirectoryLookup:
    """Tests for ``InMemoryCustomerDirectory.lookup``."""

    def test_by_id(self):
        assert InMemoryCustomerDirectory([SUNSET]).lookup("5087") == SUNSET

    def test_by_normalised_name(self):
        assert InMemoryCustomerDirectory([SUNSET]).lookup("sunset-brands") == SUNSET

    def test_by_containment(self):
        directory = InMemoryCustomerDirectory([SUNSET])
        assert directory.lookup("Sunset Brands LLC") == SUNSET
        assert directory.lookup("Sunset") == SUNSET

    def test_short_names_do_not_fuzzy_match(self):
        assert InMemoryCustomerDirectory([SUNSET]).lookup("Su") is None

    def test_blank_key(self):
        assert InMemoryCustomerDirectory([SUNSET]).lookup("  ") is None

    def test_add_replaces_by_id(self):
        directory = InMemoryCustomerDirectory([SUNSET])
        directory.add(CustomerProfile(company_id="5087", company_name="Sunset Co"))

        assert len(directory) == 1
        assert directory.lookup("5087").company_name == "Sunset Co"

    def test_default_directory_seeded(self):
        directory = default_directory()
        assert len(directory) == 5
        assert directory.lookup("Britelites").company_id == "5084"


class TestEnrichRecord:
    """Tests for ``enrich_record``."""

    def test_lookup_keys_skip_sentinels(self):
        assert lookup_keys(_record(company_name="Sunset Brands")) == ["Sunset Brands"]

    def test_fills_empty_fields(self):
        record = _record(supplier="Sunset Brands")

        enriched = enrich_record(record, InMemoryCustomerDirectory([SUNSET]))

        assert enriched.company_id == "5087"
        assert enriched.customer_name == "John Geraci"
        assert enriched.phone_number == "(210) 226-1088"
        assert record.company_id is None

    def test_never_overwrites(self):
        record = _record(company_id="5087", email="ap@sunsetbrands.com")

        enriched = enrich_record(record, InMemoryCustomerDirectory([SUNSET]))

        assert enriched.email == "ap@sunsetbrands.com"
        assert enriched.company_name == "Sunset Brands"

    def test_no_match_returns_same_record(self):
        record = _record(supplier="Acme Widgets")
        assert enrich_record(record, InMemoryCustomerDirectory([SUNSET])) is record
