"""
Confidence scoring for extracted records.

A weighted sum of independent completeness checks.  The weights
sum to 1.0, so a record with every facet resolved scores exactly
1.0 and an empty one scores 0.0.
"""

from __future__ import annotations

from ticketflow.core.constants import (
    AI_CONFIDENCE,
    UNKNOWN_BUYER,
    UNKNOWN_ERROR,
    UNKNOWN_SUPPLIER,
    VIDEO_PENDING_CONFIDENCE,
)
from ticketflow.schemas.enums import RecordKind, StageName
from ticketflow.schemas.ticket import TicketRecord

SUPPLIER_WEIGHT = 0.2
BUYER_WEIGHT = 0.2
IDENTIFIER_WEIGHT = 0.2
ERROR_TYPE_WEIGHT = 0.3
ERROR_CODE_WEIGHT = 0.1


def score(record: TicketRecord) -> float:
    """Score how completely *record* was understood.

    Args:
        record: The extracted ticket.

    Returns:
        A value in ``[0, 1]``.
    """
    total = 0.0
    if record.supplier and record.supplier != UNKNOWN_SUPPLIER:
        total += SUPPLIER_WEIGHT
    if record.buyer and record.buyer != UNKNOWN_BUYER:
        total += BUYER_WEIGHT
    if record.affected_pos:
        total += IDENTIFIER_WEIGHT
    if record.error_type and record.error_type != UNKNOWN_ERROR:
        total += ERROR_TYPE_WEIGHT
    if record.error_code:
        total += ERROR_CODE_WEIGHT
    # 0.2 + 0.2 + 0.2 + 0.3 + 0.1 drifts below 1.0 in binary floats
    return min(1.0, round(total, 4))


def reported_confidence(record: TicketRecord, producer: StageName | None) -> float:
    """Confidence to report alongside *record*.

    Records from a successful AI stage carry the engine's fixed
    confidence; video tickets awaiting completion a fixed low
    value; everything else the field-counting score.
    """
    if record.kind == RecordKind.VIDEO_PENDING:
        return VIDEO_PENDING_CONFIDENCE
    if producer == StageName.AI_PRIMARY:
        return AI_CONFIDENCE
    return score(record)
