"""Tests for the deterministic ticket extractor."""

from __future__ import annotations

import pytest

from ticketflow.core.constants import UNKNOWN_BUYER, UNKNOWN_ERROR, UNKNOWN_SUPPLIER
from ticketflow.schemas.enums import ActionType, DocumentType, ErrorType
from ticketflow.services.deterministic import (
    classify_action,
    classify_error,
    detect_document_type,
    extract,
    extract_buyer,
    extract_error_code,
    extract_identifiers,
    extract_optional_fields,
    extract_supplier,
    extract_ticket_id,
)
from ticketflow.services.exceptions import NoDocumentTypeError


class TestScenarios:
    """End-to-end scenarios on realistic tickets."""

    def test_duplicate_invoice(self, invoice_ticket):
        """810 duplicate: type, ordered identifiers, error type."""
        result = extract(invoice_ticket)

        assert result.is_ok()
        record = result.unwrap()
        assert record.document_type == DocumentType.INVOICE
        assert record.affected_pos == ["RS41745897", "RS41732724"]
        assert record.error_type == ErrorType.DUPLICATE_INVOICE
        assert record.buyer == "Chewy"
        assert record.action == ActionType.REJECTION
        assert record.id == "5064"
        assert record.raw_text == invoice_ticket

    def test_item_not_found(self, order_ticket):
        """850 item-not-found carries the quoted error code."""
        record = extract(order_ticket).unwrap()

        assert record.document_type == DocumentType.PURCHASE_ORDER
        assert record.error_type == ErrorType.INVALID_ITEM
        assert record.error_code == "ERR-CAT-404"
        assert record.affected_pos == ["4500012345"]
        assert record.resolution_steps[0] == "Verify item code in catalog"
        assert record.common_causes == ["Item code not in catalog", "Discontinued item"]

    def test_no_evidence_fails(self, no_evidence_ticket):
        """Text without any EDI evidence is the one hard failure."""
        result = extract(no_evidence_ticket)

        assert not result.is_ok()
        assert isinstance(result.error, NoDocumentTypeError)
        assert "document-type tokens" in result.error.evidence_searched

    def test_unwrap_raises_on_failure(self, no_evidence_ticket):
        """``unwrap`` re-raises the carried error."""
        with pytest.raises(NoDocumentTypeError):
            extract(no_evidence_ticket).unwrap()

    def test_idempotent_apart_from_timestamp(self, invoice_ticket):
        """Running twice yields the same facts."""
        first = extract(invoice_ticket).unwrap()
        second = extract(invoice_ticket).unwrap()

        assert first.model_dump(exclude={"timestamp"}) == second.model_dump(
            exclude={"timestamp"}
        )

    def test_generated_id_when_none_in_text(self, order_ticket):
        """Tickets without an explicit id get a synthesised one."""
        record = extract(order_ticket).unwrap()
        assert record.id.startswith("ticket-")


class TestDocumentType:
    """Tests for ``detect_document_type``."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Outbound 856 failed for store 12", DocumentType.SHIP_NOTICE),
            ("EDI855 came back with errors", DocumentType.PO_ACKNOWLEDGMENT),
            ("document type: 997 missing", DocumentType.FUNCTIONAL_ACK),
            ("the 850 order bounced", DocumentType.PURCHASE_ORDER),
        ],
    )
    def test_explicit_code_tokens(self, text, expected):
        """Explicit codes win in every supported shape."""
        assert detect_document_type(text) == expected

    def test_first_code_in_text_wins(self):
        """The earliest code token decides."""
        assert detect_document_type("810 failed after 997 ack") == DocumentType.INVOICE

    def test_phone_area_code_counts_as_code(self):
        """A standalone area code is a code token and comes first."""
        text = "Caller: Jane (850) 555-1234\nEDI 810 invoice rejected"
        assert detect_document_type(text) == DocumentType.PURCHASE_ORDER

    def test_code_inside_identifier_ignored(self):
        """Digits embedded in a longer token are not codes."""
        assert detect_document_type("Ref AP8107761 pending") is None

    def test_invoice_rejected_keywords(self):
        assert detect_document_type("Invoice was rejected again") == DocumentType.INVOICE

    def test_purchase_order_keyword(self):
        assert (
            detect_document_type("Customer cannot see the purchase order")
            == DocumentType.PURCHASE_ORDER
        )

    def test_shipment_keywords(self):
        assert detect_document_type("tracking number missing") == DocumentType.SHIP_NOTICE

    def test_functional_ack_keyword(self):
        assert (
            detect_document_type("No functional acknowledgment received")
            == DocumentType.FUNCTIONAL_ACK
        )

    def test_no_evidence(self, no_evidence_ticket):
        assert detect_document_type(no_evidence_ticket) is None


class TestParties:
    """Tests for supplier and buyer resolution."""

    def test_labelled_fields(self):
        """``Supplier:`` and ``Buyer:`` labels are used verbatim."""
        text = "Supplier: Zero Egg Count\nBuyer: Walmart\nEDI 810 rejected"
        buyer = extract_buyer(text)

        assert buyer == "Walmart"
        assert extract_supplier(text, buyer) == "Zero Egg Count"

    def test_title_line_supplier(self):
        """``<id> <name> - Outbound <code>`` gives the supplier."""
        text = "5064 Zero Egg Count - Outbound 810 rejected by Chewy.com"

        assert extract_supplier(text, extract_buyer(text)) == "Zero Egg Count"

    def test_rejected_by_strips_domain(self):
        assert extract_buyer("invoice rejected by chewy.com (AP-810776)") == "Chewy"

    def test_known_partner_fallback(self):
        """Known partners match case-insensitively, first hit wins."""
        assert extract_buyer("PO for HOME DEPOT and Target stores") == "Target"

    def test_email_domain_supplier(self):
        text = "Reply to jane@sunsetbrands.com about the 810"
        assert extract_supplier(text, UNKNOWN_BUYER) == "Sunsetbrands"

    def test_collision_exception_skipped(self):
        """A retailer's own domain is never taken as the supplier."""
        text = "Forwarded from edi@chewy.com regarding invoice 810"
        assert extract_supplier(text, UNKNOWN_BUYER) == UNKNOWN_SUPPLIER

    def test_candidate_equal_to_buyer_skipped(self):
        text = "From: Walmart\nBuyer: Walmart\n810 rejected"
        assert extract_supplier(text, "Walmart") == UNKNOWN_SUPPLIER

    def test_sentinels(self):
        assert extract_buyer("810 failed") == UNKNOWN_BUYER
        assert extract_supplier("810 failed") == UNKNOWN_SUPPLIER


class TestIdentifiers:
    """Tests for ``extract_identifiers``."""

    def test_deduplicates_preserving_order(self):
        text = "PO Numbers: RS41745897, RS41732724. Again RS41745897."
        assert extract_identifiers(text) == ["RS41745897", "RS41732724"]

    def test_short_and_digitless_tokens_rejected(self):
        """Tokens under five characters or without a digit are dropped."""
        assert extract_identifiers("PO 1234 and order ABCDEF") == []

    def test_invoice_label(self):
        assert extract_identifiers("invoice # INV-20931 was rejected") == ["INV-20931"]

    def test_bare_shapes(self):
        assert extract_identifiers("see RS00000001 and AB1234567") == [
            "RS00000001",
            "AB1234567",
        ]


class TestErrorClassification:
    """Tests for error-type and error-code detection."""

    def test_signature_table_order(self):
        """The first matching signature wins."""
        result = classify_error(
            "duplicate invoice with price mismatch", DocumentType.INVOICE
        )
        assert result.error_type == ErrorType.DUPLICATE_INVOICE

    def test_signatures_scoped_to_document_type(self):
        """856 signatures do not apply to an 850."""
        result = classify_error(
            "tracking invalid on the order", DocumentType.PURCHASE_ORDER
        )
        # Falls back to the keyword classification.
        assert result.error_type == ErrorType.INVALID_TRACKING

    def test_keyword_fallback(self):
        result = classify_error("the amount looks off", DocumentType.FUNCTIONAL_ACK)
        assert result.error_type == ErrorType.PRICE_MISMATCH

    def test_unknown(self):
        result = classify_error("something odd happened", DocumentType.INVOICE)
        assert result.error_type == UNKNOWN_ERROR
        assert result.error_code is None
        assert result.common_causes == ()

    def test_parenthesised_code(self):
        assert extract_error_code("rejected (AP-810776) today") == "AP-810776"

    def test_error_code_label(self):
        assert extract_error_code("Error code ERR-CAT-404.") == "ERR-CAT-404"


class TestActionAndId:
    """Tests for action classification and ticket ids."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("rejected and then accepted", ActionType.REJECTION),
            ("order was modified, later accepted", ActionType.MODIFICATION),
            ("approved by buyer", ActionType.ACCEPTANCE),
            ("no verbs here", ActionType.REJECTION),
        ],
    )
    def test_action_precedence(self, text, expected):
        assert classify_action(text) == expected

    def test_leading_number_is_ticket_id(self):
        assert extract_ticket_id("48213 Acme - Outbound 810") == "48213"

    def test_case_label(self):
        assert extract_ticket_id("Re: case #77120 invoice issue") == "77120"

    def test_no_id(self):
        assert extract_ticket_id("EDI 810 problem") is None


class TestOptionalFields:
    """Tests for enrichment fields lifted from the text."""

    def test_labelled_contact_details(self):
        text = (
            "Company ID: 5087\n"
            "Company name: Sunset Brands\n"
            "Customer name: John Geraci\n"
            "Phone (210) 226-1088, email john@sunsetbrands.com\n"
            "Connected via WebEDI. Control number: 000123456\n"
            "Issue: 810 rejected for duplicate invoice, 997 never received"
        )
        fields = extract_optional_fields(text)

        assert fields["company_id"] == "5087"
        assert fields["company_name"] == "Sunset Brands"
        assert fields["customer_name"] == "John Geraci"
        assert fields["phone_number"] == "(210) 226-1088"
        assert fields["email"] == "john@sunsetbrands.com"
        assert fields["integration_type"] == "WebEDI"
        assert fields["control_number"] == "000123456"
        assert fields["document_types"] == ["810", "997"]
        assert fields["issue_description"].startswith("810 rejected")

    def test_absent_fields_omitted(self, order_ticket):
        fields = extract_optional_fields(order_ticket)

        assert "email" not in fields
        assert "company_id" not in fields
        assert fields["document_types"] == ["850"]
