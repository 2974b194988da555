"""Tests for confidence scoring."""

from __future__ import annotations

import pytest

from ticketflow.core.constants import (
    AI_CONFIDENCE,
    UNKNOWN_BUYER,
    UNKNOWN_SUPPLIER,
    VIDEO_PENDING_CONFIDENCE,
)
from ticketflow.schemas.enums import DocumentType, RecordKind, StageName
from ticketflow.schemas.ticket import TicketRecord
from ticketflow.services.confidence import reported_confidence, score


def _record(**overrides) -> TicketRecord:
    fields = {
        "id": "5064",
        "document_type": DocumentType.INVOICE,
        "supplier": "Zero Egg Count",
        "buyer": "Chewy",
        "error_type": "DUPLICATE_INVOICE",
        "error_code": "AP-810776",
        "affected_pos": ["RS41745897"],
    }
    fields.update(overrides)
    return TicketRecord(**fields)


class TestScore:
    """Tests for the weighted completeness score."""

    def test_fully_resolved_scores_one(self):
        assert score(_record()) == 1.0

    def test_nothing_resolved_scores_zero(self):
        record = _record(
            supplier=UNKNOWN_SUPPLIER,
            buyer=UNKNOWN_BUYER,
            error_type=None,
            error_code=None,
            affected_pos=[],
        )
        assert score(record) == 0.0

    @pytest.mark.parametrize(
        "overrides, expected",
        [
            ({"supplier": UNKNOWN_SUPPLIER}, 0.8),
            ({"buyer": UNKNOWN_BUYER}, 0.8),
            ({"affected_pos": []}, 0.8),
            ({"error_type": "UNKNOWN_ERROR"}, 0.7),
            ({"error_code": None}, 0.9),
        ],
    )
    def test_each_facet_weight(self, overrides, expected):
        assert score(_record(**overrides)) == pytest.approx(expected)

    def test_no_error_counts_as_resolved(self):
        """A ticket reporting no failure is not missing its error type."""
        assert score(_record(error_type="NONE")) == 1.0

    def test_always_in_unit_interval(self, invoice_ticket):
        from ticketflow.services.deterministic import extract

        value = score(extract(invoice_ticket).unwrap())
        assert 0.0 <= value <= 1.0


class TestReportedConfidence:
    """Tests for the value shown alongside a record."""

    def test_ai_producer_uses_fixed_value(self):
        record = _record(supplier=UNKNOWN_SUPPLIER)
        assert reported_confidence(record, StageName.AI_PRIMARY) == AI_CONFIDENCE

    def test_deterministic_producer_uses_score(self):
        record = _record(error_code=None)
        assert reported_confidence(record, StageName.DETERMINISTIC) == pytest.approx(0.9)

    def test_video_pending_overrides_producer(self):
        record = _record(kind=RecordKind.VIDEO_PENDING)
        assert (
            reported_confidence(record, StageName.AI_PRIMARY)
            == VIDEO_PENDING_CONFIDENCE
        )
