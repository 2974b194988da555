"""Tests for the pattern library and error catalogue."""

from __future__ import annotations

from ticketflow.schemas.enums import DocumentType, ErrorType, Severity
from ticketflow.services.patterns import (
    ERROR_PATTERN_CATALOG,
    ERROR_SIGNATURES,
    document_type_name,
    error_type_description,
    get_error_pattern,
    get_errors_by_document_type,
    get_errors_by_severity,
    signatures_for,
)


class TestSignatures:
    """Tests for the error signature table."""

    def test_every_document_type_registered(self):
        assert set(ERROR_SIGNATURES) == set(DocumentType)

    def test_acknowledgments_have_no_signatures(self):
        assert signatures_for(DocumentType.FUNCTIONAL_ACK) == ()

    def test_signatures_case_insensitive(self):
        first = signatures_for(DocumentType.INVOICE)[0]
        assert first.matches("DUPLICATE INVOICE number")
        assert first.error_type == ErrorType.DUPLICATE_INVOICE


class TestDisplayNames:
    """Tests for the display-name helpers."""

    def test_document_type_name(self):
        assert document_type_name("856") == "856 Advance Ship Notice"

    def test_unknown_code_passes_through(self):
        assert document_type_name("940") == "940"

    def test_error_type_description(self):
        assert error_type_description("INVALID_PO") == "Invalid Purchase Order"
        assert error_type_description("CUSTOM_TAG") == "Custom Tag"


class TestCatalogue:
    """Tests for the reference catalogue lookups."""

    def test_ids_unique(self):
        ids = [e.id for e in ERROR_PATTERN_CATALOG]
        assert len(ids) == len(set(ids))

    def test_lookup_by_id(self):
        assert get_error_pattern("price-mismatch").error_code == "ERR_810_PRICE"

    def test_lookup_by_tag(self):
        assert get_error_pattern("duplicate_invoice").id == "duplicate-invoice"

    def test_lookup_by_display_name(self):
        assert get_error_pattern("ship-to location").id == "invalid-ship-to"

    def test_lookup_miss(self):
        assert get_error_pattern("volcano") is None
        assert get_error_pattern("") is None

    def test_by_document_type(self):
        entries = get_errors_by_document_type("855")
        assert [e.id for e in entries] == ["po-acknowledgment"]

    def test_by_severity(self):
        entries = get_errors_by_severity(Severity.CRITICAL)
        assert [e.id for e in entries] == ["missing-asn"]
