"""Enumerations shared by records, graphs, and diagnostics."""

from __future__ import annotations

from enum import StrEnum


class DocumentType(StrEnum):
    """EDI X12 transaction codes the pipeline understands."""

    INVOICE = "810"
    PURCHASE_ORDER = "850"
    SHIP_NOTICE = "856"
    PO_ACKNOWLEDGMENT = "855"
    FUNCTIONAL_ACK = "997"


class ActionType(StrEnum):
    """What the trading partner did with the document."""

    REJECTION = "rejection"
    ACCEPTANCE = "acceptance"
    MODIFICATION = "modification"


class ErrorType(StrEnum):
    """Error classifications produced by the deterministic extractor.

    AI replies may carry other upper-snake tags; those are kept
    verbatim on the record, so ``TicketRecord.error_type`` is a
    plain string rather than this enum.
    """

    DUPLICATE_INVOICE = "DUPLICATE_INVOICE"
    PRICE_MISMATCH = "PRICE_MISMATCH"
    INVALID_PO = "INVALID_PO"
    INVALID_ITEM = "INVALID_ITEM"
    QUANTITY_EXCEEDED = "QUANTITY_EXCEEDED"
    INVALID_TRACKING = "INVALID_TRACKING"
    SHIPMENT_MISMATCH = "SHIPMENT_MISMATCH"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


class RecordKind(StrEnum):
    """Provenance of a record, independent of its error type."""

    STANDARD = "standard"
    VIDEO_PENDING = "video-pending"


class StageName(StrEnum):
    """Extraction stages reported in diagnostics."""

    DETERMINISTIC = "deterministic"
    AI_PRIMARY = "ai-primary"
    AI_SECONDARY = "ai-secondary"


class NodeStatus(StrEnum):
    """Lifecycle status of a workflow node."""

    START = "start"
    PROCESSING = "processing"
    ERROR = "error"
    COMPLETE = "complete"


class EdgeKind(StrEnum):
    """Visual classification of a workflow edge."""

    MAIN = "main"
    ERROR = "error"
    ALTERNATIVE = "alternative"


class Severity(StrEnum):
    """Severity of a catalogued error pattern."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
