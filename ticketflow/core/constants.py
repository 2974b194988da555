"""
Centralised constants used across the application.

Keeping magic strings in one place makes it easy to rename keys,
avoids silent typos, and keeps ``grep`` useful when debugging.
"""

from __future__ import annotations

# ── Extraction sentinels ────────────────────────────────────────────────────
# Written into a TicketRecord when a field could not be resolved.
# The confidence scorer compares against these exact values.

UNKNOWN_SUPPLIER: str = "Unknown Supplier"
"""Supplier placeholder when no party-name heuristic matched."""

UNKNOWN_BUYER: str = "Unknown Buyer"
"""Buyer placeholder when no party-name heuristic matched."""

UNKNOWN_ERROR: str = "UNKNOWN_ERROR"
"""Error-type placeholder when no classification matched."""

NO_ERROR: str = "NONE"
"""Error type for tickets that describe no failure at all."""


# ── Confidence constants ────────────────────────────────────────────────────

AI_CONFIDENCE: float = 0.95
"""Reported confidence for records produced by a successful AI stage."""

VIDEO_PENDING_CONFIDENCE: float = 0.3
"""Reported confidence for video tickets awaiting manual completion."""


# ── Identifier extraction ───────────────────────────────────────────────────

MIN_IDENTIFIER_LENGTH: int = 5
"""Shortest purchase-order / invoice token accepted."""

ERROR_DETAIL_EXCERPT_CHARS: int = 100
"""Number of raw-text characters copied onto the error node."""


# ── User-facing messages ────────────────────────────────────────────────────

EXTRACTION_FAILED_MESSAGE: str = (
    "Could not identify the EDI document in this ticket. "
    "Looked for a transaction code (810, 850, 855, 856 or 997, e.g. "
    "'EDI 810' or '856 ASN'), purchase-order or invoice identifiers, "
    "and supplier or trading-partner names. Add the document type "
    "and the affected PO or invoice numbers and try again."
)
"""Actionable message returned when no record could be produced."""
