"""
Pattern library: static error signatures and partner names.

Signatures are evaluated top-down per document type and the
first match wins, so table order *is* the priority order.
Everything here is read-only module data; nothing mutates it at
runtime, which lets concurrent extractions share it freely.

The module also carries the reference catalogue of common EDI
errors (causes, resolution steps, prevention tips) served by
``GET /patterns``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ticketflow.schemas.enums import DocumentType, ErrorType, Severity


@dataclass(frozen=True)
class ErrorSignature:
    """A pattern bound to an error classification."""

    pattern: re.Pattern[str]
    error_type: ErrorType
    common_causes: tuple[str, ...]
    resolution_steps: tuple[str, ...]

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def _sig(
    pattern: str,
    error_type: ErrorType,
    causes: tuple[str, ...],
    steps: tuple[str, ...],
) -> ErrorSignature:
    return ErrorSignature(
        pattern=re.compile(pattern, re.IGNORECASE),
        error_type=error_type,
        common_causes=causes,
        resolution_steps=steps,
    )


# ── Error signatures (priority order) ───────────────────────────────────────

ERROR_SIGNATURES: dict[DocumentType, tuple[ErrorSignature, ...]] = {
    DocumentType.INVOICE: (
        _sig(
            r"duplicate.*invoice",
            ErrorType.DUPLICATE_INVOICE,
            (
                "Invoice number already exists",
                "Resubmission of processed invoice",
            ),
            (
                "Verify invoice number uniqueness",
                "Check if invoice was already processed",
                "Generate new invoice number if needed",
            ),
        ),
        _sig(
            r"invoice.*already.*exists",
            ErrorType.DUPLICATE_INVOICE,
            ("Invoice number already exists in system",),
            (
                "Resubmit with unique invoice number",
                "Add suffix like -A or -1 to original number",
                "Create new invoice from scratch if needed",
            ),
        ),
        _sig(
            r"price.*mismatch|pricing.*error",
            ErrorType.PRICE_MISMATCH,
            ("PO price differs from invoice", "Tax calculation error"),
            (
                "Compare invoice price with PO",
                "Verify tax calculations",
                "Update pricing in source system",
            ),
        ),
        _sig(
            r"invalid.*po|purchase.*order.*not.*found",
            ErrorType.INVALID_PO,
            ("PO number incorrect", "PO not yet in system"),
            (
                "Verify PO number format",
                "Check if PO exists in buyer system",
                "Wait for PO synchronization if recent",
            ),
        ),
    ),
    DocumentType.PURCHASE_ORDER: (
        _sig(
            r"item.*not.*found|invalid.*item",
            ErrorType.INVALID_ITEM,
            ("Item code not in catalog", "Discontinued item"),
            (
                "Verify item code in catalog",
                "Check for alternate item codes",
                "Contact buyer for clarification",
            ),
        ),
        _sig(
            r"quantity.*exceeds|over.*limit",
            ErrorType.QUANTITY_EXCEEDED,
            (
                "Order exceeds available stock",
                "Maximum order limit reached",
            ),
            (
                "Check current inventory levels",
                "Verify order quantity limits",
                "Split order if necessary",
            ),
        ),
    ),
    DocumentType.SHIP_NOTICE: (
        _sig(
            r"tracking.*invalid|carrier.*not.*recognized",
            ErrorType.INVALID_TRACKING,
            ("Incorrect tracking format", "Unsupported carrier code"),
            (
                "Verify tracking number format",
                "Confirm carrier code mapping",
                "Update carrier information",
            ),
        ),
        _sig(
            r"shipment.*not.*match.*po",
            ErrorType.SHIPMENT_MISMATCH,
            ("Items shipped differ from PO", "Quantity mismatch"),
            (
                "Compare shipment details with PO",
                "Verify picking and packing",
                "Send corrected ASN if needed",
            ),
        ),
    ),
    DocumentType.PO_ACKNOWLEDGMENT: (),
    DocumentType.FUNCTIONAL_ACK: (),
}

#: Steps reported when no signature matched.
GENERIC_RESOLUTION_STEPS: tuple[str, ...] = (
    "Review error details",
    "Check document format",
    "Contact support if needed",
)


def signatures_for(document_type: DocumentType) -> tuple[ErrorSignature, ...]:
    """Return the signatures registered for *document_type*."""
    return ERROR_SIGNATURES.get(document_type, ())


# ── Trading partners ────────────────────────────────────────────────────────

KNOWN_TRADING_PARTNERS: tuple[str, ...] = (
    "walmart",
    "target",
    "amazon",
    "costco",
    "kroger",
    "chewy",
    "home depot",
    "lowes",
    "cvs",
    "walgreens",
    "best buy",
    "macys",
    "nordstrom",
    "kohls",
    "petco",
    "petsmart",
)

# Short names that must never be taken as the supplier: they are a
# known retailer's e-mail domain, which shows up in CC lines of
# tickets filed by that retailer's vendors.
PARTY_COLLISION_EXCEPTIONS: frozenset[str] = frozenset({"chewy", "chewy.com"})


# ── Display names ───────────────────────────────────────────────────────────

DOCUMENT_TYPE_NAMES: dict[DocumentType, str] = {
    DocumentType.INVOICE: "810 Invoice",
    DocumentType.PURCHASE_ORDER: "850 Purchase Order",
    DocumentType.SHIP_NOTICE: "856 Advance Ship Notice",
    DocumentType.PO_ACKNOWLEDGMENT: "855 PO Acknowledgment",
    DocumentType.FUNCTIONAL_ACK: "997 Functional Acknowledgment",
}

ERROR_TYPE_DESCRIPTIONS: dict[str, str] = {
    ErrorType.DUPLICATE_INVOICE: "Duplicate Invoice Detected",
    ErrorType.PRICE_MISMATCH: "Price Mismatch Error",
    ErrorType.INVALID_PO: "Invalid Purchase Order",
    ErrorType.INVALID_ITEM: "Invalid Item Code",
    ErrorType.QUANTITY_EXCEEDED: "Quantity Limit Exceeded",
    ErrorType.INVALID_TRACKING: "Invalid Tracking Information",
    ErrorType.SHIPMENT_MISMATCH: "Shipment Does Not Match PO",
    ErrorType.UNKNOWN_ERROR: "Unknown Error Type",
    ErrorType.NONE: "No Error",
}


def document_type_name(code: str) -> str:
    """Human-readable name for an EDI code; unknown codes pass through."""
    try:
        return DOCUMENT_TYPE_NAMES[DocumentType(code)]
    except ValueError:
        return code


def error_type_description(error_type: str) -> str:
    """Human-readable description of an error tag.

    Tags outside the known set are title-cased, so
    ``CUSTOM_TAG`` reads ``Custom Tag``.
    """
    return ERROR_TYPE_DESCRIPTIONS.get(
        error_type, error_type.replace("_", " ").title()
    )


# ── Reference catalogue ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class ErrorPatternEntry:
    """Catalogued EDI error with remediation guidance."""

    id: str
    error_type: str
    document_types: tuple[str, ...]
    common_causes: tuple[str, ...]
    resolution_steps: tuple[str, ...]
    prevention_tips: tuple[str, ...]
    estimated_time: str
    severity: Severity
    frequency: int
    error_code: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)


ERROR_PATTERN_CATALOG: tuple[ErrorPatternEntry, ...] = (
    ErrorPatternEntry(
        id="duplicate-invoice",
        error_type="Duplicate Invoice Number",
        error_code="ERR_810_DUP",
        document_types=("810",),
        common_causes=(
            "Invoice number already exists in buyer system",
            "Resubmission of previously sent invoice",
            "System error causing double submission",
            "Incorrect invoice numbering sequence",
        ),
        resolution_steps=(
            "Verify the invoice hasn't been previously submitted",
            "Check buyer's system for existing invoice with same number",
            "If legitimate duplicate, append suffix (e.g., -R1) to invoice number",
            "Review invoice numbering sequence for gaps or duplicates",
            "Contact buyer's EDI team if issue persists",
        ),
        prevention_tips=(
            "Implement unique invoice numbering system",
            "Maintain log of all submitted invoices",
            "Use automated sequence generation",
            "Regular reconciliation with buyer",
        ),
        estimated_time="15-30 minutes",
        severity=Severity.MEDIUM,
        frequency=25,
        tags=(ErrorType.DUPLICATE_INVOICE,),
    ),
    ErrorPatternEntry(
        id="missing-line-items",
        error_type="Missing Line Items",
        error_code="ERR_810_MLI",
        document_types=("810", "850"),
        common_causes=(
            "Line items from PO not included in invoice",
            "Cancelled items not properly indicated",
            "Partial shipment not reflected",
            "System mapping error",
        ),
        resolution_steps=(
            "Compare invoice line items with original PO",
            "Verify all shipped items are included",
            "Check for any cancelled or backordered items",
            "Ensure proper line item numbering sequence",
            "Resubmit with complete line item details",
        ),
        prevention_tips=(
            "Automated PO to invoice matching",
            "Pre-submission validation checks",
            "Regular system mapping reviews",
            "Clear partial shipment procedures",
        ),
        estimated_time="30-45 minutes",
        severity=Severity.HIGH,
        frequency=18,
    ),
    ErrorPatternEntry(
        id="invalid-dates",
        error_type="Invalid Date Format",
        error_code="ERR_GEN_DATE",
        document_types=("810", "850", "856"),
        common_causes=(
            "Incorrect date format (YYYYMMDD vs MM/DD/YYYY)",
            "Future ship dates",
            "Invoice date before ship date",
            "Timezone discrepancies",
        ),
        resolution_steps=(
            "Verify required date format for trading partner",
            "Check all dates are in correct format",
            "Ensure logical date sequence (PO → Ship → Invoice)",
            "Correct any timezone issues",
            "Resubmit with corrected dates",
        ),
        prevention_tips=(
            "Standardize date formats across systems",
            "Implement date validation rules",
            "Automated date logic checks",
            "Document partner-specific requirements",
        ),
        estimated_time="10-20 minutes",
        severity=Severity.LOW,
        frequency=30,
    ),
    ErrorPatternEntry(
        id="price-mismatch",
        error_type="Price Mismatch",
        error_code="ERR_810_PRICE",
        document_types=("810",),
        common_causes=(
            "Invoice price differs from PO price",
            "Unapproved price changes",
            "Unit of measure discrepancies",
            "Discount calculations errors",
        ),
        resolution_steps=(
            "Compare invoice prices with original PO",
            "Verify any approved price changes",
            "Check unit of measure consistency",
            "Review discount calculations",
            "Contact buyer for price approval if needed",
            "Resubmit with correct pricing",
        ),
        prevention_tips=(
            "Automated price matching with PO",
            "Price change approval workflow",
            "Regular price file updates",
            "Clear discount agreement documentation",
        ),
        estimated_time="20-40 minutes",
        severity=Severity.HIGH,
        frequency=22,
        tags=(ErrorType.PRICE_MISMATCH,),
    ),
    ErrorPatternEntry(
        id="invalid-product-id",
        error_type="Invalid Product Identifier",
        error_code="ERR_GEN_PROD",
        document_types=("810", "850", "856"),
        common_causes=(
            "Incorrect UPC/GTIN",
            "Buyer SKU mismatch",
            "Discontinued product codes",
            "New item not yet in buyer system",
        ),
        resolution_steps=(
            "Verify product codes against buyer catalog",
            "Check for recent product code changes",
            "Confirm new items are set up in buyer system",
            "Use correct identifier type (UPC vs SKU)",
            "Update and resubmit with correct codes",
        ),
        prevention_tips=(
            "Regular catalog synchronization",
            "New item setup verification",
            "Product master data management",
            "Automated code validation",
        ),
        estimated_time="15-30 minutes",
        severity=Severity.MEDIUM,
        frequency=20,
        tags=(ErrorType.INVALID_ITEM,),
    ),
    ErrorPatternEntry(
        id="missing-asn",
        error_type="Missing Advance Ship Notice",
        error_code="ERR_856_MISS",
        document_types=("856",),
        common_causes=(
            "ASN not sent before shipment arrival",
            "ASN sent to wrong destination",
            "System transmission failure",
            "Incorrect shipment identification",
        ),
        resolution_steps=(
            "Verify ASN was generated for shipment",
            "Check transmission logs for errors",
            "Confirm correct receiver ID",
            "Resend ASN immediately",
            "Notify buyer of delay",
        ),
        prevention_tips=(
            "Automated ASN generation at ship time",
            "Transmission confirmation monitoring",
            "Backup transmission methods",
            "Real-time alerting for failures",
        ),
        estimated_time="10-15 minutes",
        severity=Severity.CRITICAL,
        frequency=12,
    ),
    ErrorPatternEntry(
        id="invalid-ship-to",
        error_type="Invalid Ship-To Location",
        error_code="ERR_GEN_SHIP",
        document_types=("850", "856"),
        common_causes=(
            "Incorrect store/DC number",
            "Closed or inactive location",
            "Missing location in system",
            "Wrong location format",
        ),
        resolution_steps=(
            "Verify ship-to location against buyer directory",
            "Check for recent location changes",
            "Confirm location is active",
            "Use correct location identifier format",
            "Update and retransmit",
        ),
        prevention_tips=(
            "Regular location file updates",
            "Automated location validation",
            "Change notification process",
            "Location master maintenance",
        ),
        estimated_time="15-25 minutes",
        severity=Severity.MEDIUM,
        frequency=15,
    ),
    ErrorPatternEntry(
        id="po-acknowledgment",
        error_type="Missing PO Acknowledgment",
        error_code="ERR_855_MISS",
        document_types=("855",),
        common_causes=(
            "PO acknowledgment not sent timely",
            "System didn't generate 855",
            "Acknowledgment requirements unclear",
            "Transmission failure",
        ),
        resolution_steps=(
            "Check if 855 is required by trading partner",
            "Generate and send acknowledgment",
            "Include all required elements",
            "Confirm successful transmission",
            "Document acknowledgment sent",
        ),
        prevention_tips=(
            "Automated 855 generation rules",
            "Partner requirement documentation",
            "Acknowledgment deadline monitoring",
            "Exception reporting",
        ),
        estimated_time="10-20 minutes",
        severity=Severity.LOW,
        frequency=8,
    ),
)


def get_error_pattern(error_type: str) -> ErrorPatternEntry | None:
    """Find a catalogue entry by id, error tag, or display name.

    Display names match on case-insensitive containment, so
    ``"duplicate invoice"`` finds ``Duplicate Invoice Number``.
    """
    needle = error_type.strip().lower()
    if not needle:
        return None
    for entry in ERROR_PATTERN_CATALOG:
        if entry.id == needle or error_type.upper() in entry.tags:
            return entry
    for entry in ERROR_PATTERN_CATALOG:
        if needle in entry.error_type.lower():
            return entry
    return None


def get_errors_by_document_type(code: str) -> list[ErrorPatternEntry]:
    """Catalogue entries applicable to EDI *code*."""
    return [e for e in ERROR_PATTERN_CATALOG if code in e.document_types]


def get_errors_by_severity(severity: Severity) -> list[ErrorPatternEntry]:
    """Catalogue entries with the given *severity*."""
    return [e for e in ERROR_PATTERN_CATALOG if e.severity == severity]
