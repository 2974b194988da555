"""
Deterministic ticket extractor: the pattern-matching fallback.

Applies the pattern library plus a handful of heuristic field
extractors to raw ticket text.  Only the document-type step can
fail; every other step degrades to a sentinel value so that a
partially understood ticket still yields a record.

The function is pure over its input apart from the generated
ticket id and timestamp when the text carries no explicit id.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from ticketflow.core.constants import (
    MIN_IDENTIFIER_LENGTH,
    UNKNOWN_BUYER,
    UNKNOWN_SUPPLIER,
)
from ticketflow.schemas.enums import ActionType, DocumentType, ErrorType
from ticketflow.schemas.ticket import TicketRecord, normalise_identifiers
from ticketflow.services.exceptions import NoDocumentTypeError
from ticketflow.services.patterns import (
    GENERIC_RESOLUTION_STEPS,
    KNOWN_TRADING_PARTNERS,
    PARTY_COLLISION_EXCEPTIONS,
    signatures_for,
)
from ticketflow.services.result import Err, Ok

logger = logging.getLogger(__name__)

_CODES = "|".join(re.escape(d.value) for d in DocumentType)

# ── Document type ───────────────────────────────────────────

_DOC_TYPE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\b({_CODES})\b"),
    re.compile(rf"EDI\s*({_CODES})", re.IGNORECASE),
    re.compile(rf"document\s*type[:\s]*({_CODES})", re.IGNORECASE),
    re.compile(
        rf"({_CODES})\s*(?:invoice|order|asn|shipment|acknowledgment)",
        re.IGNORECASE,
    ),
)

# Keyword heuristics, tried in order when no code token is present.
_DOC_TYPE_KEYWORDS: tuple[tuple[tuple[re.Pattern[str], ...], DocumentType], ...] = (
    (
        (re.compile(r"functional\s+acknowledg", re.IGNORECASE),),
        DocumentType.FUNCTIONAL_ACK,
    ),
    (
        (re.compile(r"\b(?:PO|purchase\s+order|order)\s+acknowledg", re.IGNORECASE),),
        DocumentType.PO_ACKNOWLEDGMENT,
    ),
    (
        (
            re.compile(r"\binvoice", re.IGNORECASE),
            re.compile(r"reject", re.IGNORECASE),
        ),
        DocumentType.INVOICE,
    ),
    (
        (re.compile(r"purchase\s+order|\bPOs?\b", re.IGNORECASE),),
        DocumentType.PURCHASE_ORDER,
    ),
    (
        (re.compile(r"\bASN\b|tracking|shipment", re.IGNORECASE),),
        DocumentType.SHIP_NOTICE,
    ),
    (
        (re.compile(r"\binvoice", re.IGNORECASE),),
        DocumentType.INVOICE,
    ),
)

# ── Party names ─────────────────────────────────────────────

_NAME_END = r"(?=[ \t]*(?:[-–|;\n(<]|\.(?:\s|$)|$))"
_NAME_VALUE = r"([A-Za-z0-9][A-Za-z0-9&.,'() ]*?)"

_TITLE_LINE_RE = re.compile(
    r"^\s*\d+\s+([^-\n]+?)\s*-\s*(?:outbound|inbound)\s+\d+",
    re.IGNORECASE,
)
_SUPPLIER_LABEL_RE = re.compile(
    rf"\b(?:supplier|vendor|from)[ \t]*:[ \t]*{_NAME_VALUE}{_NAME_END}",
    re.IGNORECASE,
)
_BUYER_LABEL_RE = re.compile(
    rf"\b(?:buyer|trading[ \t]+partner)[ \t]*:[ \t]*{_NAME_VALUE}{_NAME_END}",
    re.IGNORECASE,
)
_REJECTED_BY_RE = re.compile(
    r"rejected\s+by\s+([A-Za-z0-9][A-Za-z0-9&.'\- ]*?)"
    r"(?=\s*(?:[(,;:\n]|[-–]\s|\.(?:\s|$)|$))",
    re.IGNORECASE,
)
_EMAIL_DOMAIN_RE = re.compile(
    r"[\w.+-]+@([\w-]+)\.(?:com|net|org|co|us|io|biz)\b",
    re.IGNORECASE,
)
_SINGLE_TOKEN_RE = re.compile(r"^[\w.-]+$")

# ── Identifiers ─────────────────────────────────────────────

_IDENT_TOKEN = r"[A-Z0-9][A-Z0-9-]*"
_IDENTIFIER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(?i:affected\s+)?(?i:PO|purchase\s+order|order|invoice)s?"
        r"\s*(?i:numbers?|nos?\.?)?\s*[#:]?\s*"
        rf"({_IDENT_TOKEN}(?:\s*,\s*(?:and\s+)?{_IDENT_TOKEN})*)"
    ),
    re.compile(r"\b(RS\d{8})\b"),
    re.compile(r"\b([A-Z]{2,3}\d{6,10})\b"),
)
_IDENT_SPLIT_RE = re.compile(r"[,\s]+")
_VALID_IDENT_RE = re.compile(r"^[A-Z0-9-]+$")

# ── Error code ──────────────────────────────────────────────

_PAREN_ERROR_CODE_RE = re.compile(r"\(([A-Z]{2}-\d{6})\)")
_ERROR_CODE_PATTERNS: tuple[re.Pattern[str], ...] = (
    _PAREN_ERROR_CODE_RE,
    re.compile(r"(?i:error\s*code)\s*[:#]?\s*([A-Z0-9][A-Z0-9_-]*\d[A-Z0-9_-]*)"),
    re.compile(r"(?i:error)\s*:\s*([A-Z0-9]+-[A-Z0-9-]*\d[A-Z0-9-]*)"),
)

_ERROR_KEYWORDS: tuple[tuple[re.Pattern[str], ErrorType], ...] = (
    (re.compile(r"duplicate|already exists", re.IGNORECASE), ErrorType.DUPLICATE_INVOICE),
    (re.compile(r"price|pricing|amount", re.IGNORECASE), ErrorType.PRICE_MISMATCH),
    (re.compile(r"item|product|sku", re.IGNORECASE), ErrorType.INVALID_ITEM),
    (re.compile(r"tracking|carrier|shipment", re.IGNORECASE), ErrorType.INVALID_TRACKING),
)

# ── Action ──────────────────────────────────────────────────

_ACTION_KEYWORDS: tuple[tuple[re.Pattern[str], ActionType], ...] = (
    (re.compile(r"reject|denied|failed", re.IGNORECASE), ActionType.REJECTION),
    (re.compile(r"modif|change|update", re.IGNORECASE), ActionType.MODIFICATION),
    (re.compile(r"accept|success|approved", re.IGNORECASE), ActionType.ACCEPTANCE),
)

# ── Ticket id ───────────────────────────────────────────────

_TICKET_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*(\d{4,6})\s+"),
    re.compile(r"\bticket\s*#?\s*:?\s*(\d{4,6})\b", re.IGNORECASE),
    re.compile(r"\bcase\s*#?\s*:?\s*(\d{4,6})\b", re.IGNORECASE),
)

# ── Optional enrichment fields ──────────────────────────────

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
_PHONE_RE = re.compile(r"\(?\b\d{3}\)?[\s.-]?\d{3}[\s.-]\d{4}\b")
_COMPANY_ID_RE = re.compile(
    r"(?:company\s*id(?:\s*number)?|webedi\s*id|web\s*tp\s*id)\s*[:#]?\s*(\d{3,})",
    re.IGNORECASE,
)
_CONTACT_NAME_RE = re.compile(
    r"(?:customer\s+name|contact(?:\s+name)?|caller(?:\s+on\s+record)?)"
    r"[ \t]*:[ \t]*([A-Za-z][A-Za-z .'-]*?)(?=[ \t]*(?:[\n,(]|$))",
    re.IGNORECASE,
)
_COMPANY_NAME_RE = re.compile(
    rf"company[ \t]+name[ \t]*:[ \t]*{_NAME_VALUE}{_NAME_END}",
    re.IGNORECASE,
)
_ISSUE_RE = re.compile(
    r"(?:issue|error\s*/\s*issue|problem|description)[ \t]*:[ \t]*([^\n]+)",
    re.IGNORECASE,
)
_INTEGRATION_RE = re.compile(r"\b((?i:webedi)|AS2|SFTP|FTP|VAN|API)\b")
_INTEGRATION_CANONICAL: dict[str, str] = {
    "webedi": "WebEDI",
    "as2": "AS2",
    "sftp": "SFTP",
    "ftp": "FTP",
    "van": "VAN",
    "api": "API",
}
_MESSAGE_ID_RE = re.compile(
    r"(?i:control\s*(?:number|no\.?|#)|message\s*id)s?\s*[:#]?\s*"
    r"([A-Z0-9][A-Z0-9-]{3,})"
)
_ALL_CODES_RE = re.compile(rf"\b({_CODES})\b")


@dataclass(frozen=True)
class ErrorClassification:
    """Outcome of the error-classification step."""

    error_type: str
    error_code: str | None
    resolution_steps: tuple[str, ...]
    common_causes: tuple[str, ...] = ()


# ── Step 1: document type ───────────────────────────────────


def detect_document_type(text: str) -> DocumentType | None:
    """Detect the EDI transaction code of the ticket.

    Explicit code tokens win; keyword co-occurrence is the
    secondary heuristic.  The bare-token pattern runs first, so
    any standalone code, a phone area code included, beats a
    later ``EDI 810``.

    Returns:
        The detected code, or ``None`` when there is no evidence.
    """
    for pattern in _DOC_TYPE_PATTERNS:
        match = pattern.search(text)
        if match:
            return DocumentType(match.group(1))

    for keyword_patterns, doc_type in _DOC_TYPE_KEYWORDS:
        if all(p.search(text) for p in keyword_patterns):
            logger.debug("Document type %s inferred from keywords", doc_type)
            return doc_type
    return None


# ── Step 2: party names ─────────────────────────────────────


def _title_case(words: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in words.split())


def _clean_name(raw: str) -> str:
    return raw.strip().rstrip(" .,;:'").strip()


def _is_collision(candidate: str, buyer: str) -> bool:
    lowered = candidate.lower()
    if lowered in PARTY_COLLISION_EXCEPTIONS:
        return True
    return buyer != UNKNOWN_BUYER and lowered == buyer.lower()


def extract_buyer(text: str) -> str:
    """Resolve the buyer / trading-partner name.

    Labelled fields and ``rejected by <name>`` first, then the
    static known-partner list (case-insensitive substring, first
    hit wins).
    """
    for pattern in (_BUYER_LABEL_RE, _REJECTED_BY_RE):
        match = pattern.search(text)
        if not match:
            continue
        extracted = re.sub(r"\.com$", "", _clean_name(match.group(1)), flags=re.I)
        if _SINGLE_TOKEN_RE.match(extracted):
            extracted = _title_case(extracted.split(".")[0].replace("-", " "))
        if extracted:
            return extracted

    lowered = text.lower()
    for partner in KNOWN_TRADING_PARTNERS:
        if partner in lowered:
            return _title_case(partner)
    return UNKNOWN_BUYER


def extract_supplier(text: str, buyer: str = UNKNOWN_BUYER) -> str:
    """Resolve the supplier name.

    Priority: labelled ``Supplier:``/``Vendor:``/``From:`` field,
    title-line heuristic, then an e-mail domain.  Candidates in
    the collision exception list or equal to *buyer* are skipped.
    """
    candidates: list[str] = []

    labelled = _SUPPLIER_LABEL_RE.search(text)
    if labelled:
        candidates.append(_clean_name(labelled.group(1)))

    title = _TITLE_LINE_RE.search(text)
    if title:
        candidates.append(_clean_name(title.group(1)))

    for candidate in candidates:
        if candidate and "@" not in candidate and not _is_collision(candidate, buyer):
            return candidate
        logger.debug("Skipping supplier candidate %r", candidate)

    for match in _EMAIL_DOMAIN_RE.finditer(text):
        domain = match.group(1)
        if _is_collision(domain, buyer):
            continue
        name = _title_case(re.sub(r"[-_.]", " ", domain))
        if name.lower() == buyer.lower():
            continue
        return name
    return UNKNOWN_SUPPLIER


# ── Step 3: identifiers ─────────────────────────────────────


def extract_identifiers(text: str) -> list[str]:
    """Collect purchase-order / invoice / reference numbers.

    Tokens are split on commas and whitespace, de-duplicated in
    first-seen order, and rejected when shorter than
    ``MIN_IDENTIFIER_LENGTH`` or free of digits.
    """
    tokens: list[str] = []
    for pattern in _IDENTIFIER_PATTERNS:
        for match in pattern.finditer(text):
            for token in _IDENT_SPLIT_RE.split(match.group(1)):
                token = token.strip().strip("-")
                if (
                    len(token) >= MIN_IDENTIFIER_LENGTH
                    and _VALID_IDENT_RE.match(token)
                    and any(ch.isdigit() for ch in token)
                ):
                    tokens.append(token)
    return normalise_identifiers(tokens)


# ── Step 4: error classification ────────────────────────────


def extract_error_code(text: str) -> str | None:
    """Pull a ``(XX-######)`` or ``error code: …`` value."""
    for pattern in _ERROR_CODE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def classify_error(text: str, document_type: DocumentType) -> ErrorClassification:
    """Classify the error described by *text*.

    Pattern-library signatures for *document_type* are tried in
    table order; the first match wins.  Without a match, coarse
    keyword classification applies, else ``UNKNOWN_ERROR``.
    """
    error_code = extract_error_code(text)

    for signature in signatures_for(document_type):
        if signature.matches(text):
            return ErrorClassification(
                error_type=signature.error_type,
                error_code=error_code,
                resolution_steps=signature.resolution_steps,
                common_causes=signature.common_causes,
            )

    error_type = ErrorType.UNKNOWN_ERROR
    for pattern, candidate in _ERROR_KEYWORDS:
        if pattern.search(text):
            error_type = candidate
            break

    return ErrorClassification(
        error_type=error_type,
        error_code=error_code,
        resolution_steps=GENERIC_RESOLUTION_STEPS,
    )


# ── Step 5: action ──────────────────────────────────────────


def classify_action(text: str) -> ActionType:
    """Keyword precedence reject > modify > accept; default reject."""
    for pattern, action in _ACTION_KEYWORDS:
        if pattern.search(text):
            return action
    return ActionType.REJECTION


# ── Step 6: ticket id ───────────────────────────────────────


def extract_ticket_id(text: str) -> str | None:
    """Return an explicit ticket id, if the text has one."""
    for pattern in _TICKET_ID_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def generate_ticket_id() -> str:
    """Synthesise an id from the current time plus a random suffix."""
    return f"ticket-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


# ── Optional fields ─────────────────────────────────────────


def _first_group(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if not match:
        return None
    value = _clean_name(match.group(1)) if match.groups() else match.group(0).strip()
    return value or None


def extract_optional_fields(text: str) -> dict[str, object]:
    """Lift enrichment fields the ticket text happens to carry.

    Only fields with textual evidence are returned, so the
    record keeps them absent otherwise.
    """
    fields: dict[str, object] = {}

    email = _EMAIL_RE.search(text)
    if email:
        fields["email"] = email.group(0)

    phone = _PHONE_RE.search(text)
    if phone:
        fields["phone_number"] = phone.group(0).strip()

    company_id = _first_group(_COMPANY_ID_RE, text)
    if company_id:
        fields["company_id"] = company_id

    company_name = _first_group(_COMPANY_NAME_RE, text)
    if company_name:
        fields["company_name"] = company_name

    contact = _first_group(_CONTACT_NAME_RE, text)
    if contact:
        fields["customer_name"] = contact

    issue = _ISSUE_RE.search(text)
    if issue and issue.group(1).strip():
        fields["issue_description"] = issue.group(1).strip()

    integration = _INTEGRATION_RE.search(text)
    if integration:
        fields["integration_type"] = _INTEGRATION_CANONICAL[integration.group(1).lower()]

    message_ids = normalise_identifiers(
        [m.group(1) for m in _MESSAGE_ID_RE.finditer(text)]
    )
    if message_ids:
        fields["message_ids"] = message_ids
        fields["control_number"] = message_ids[0]

    codes = normalise_identifiers([m.group(1) for m in _ALL_CODES_RE.finditer(text)])
    if codes:
        fields["document_types"] = codes

    return fields


# ── Public entry point ──────────────────────────────────────


def extract(text: str) -> Ok[TicketRecord] | Err[NoDocumentTypeError]:
    """Turn raw ticket text into a ``TicketRecord``.

    Args:
        text: Arbitrary ticket text.

    Returns:
        ``Ok(record)``, or ``Err(NoDocumentTypeError)`` when the
        text holds no evidence for any supported transaction code.
    """
    document_type = detect_document_type(text)
    if document_type is None:
        logger.info("Deterministic extraction found no document type")
        return Err(NoDocumentTypeError())

    buyer = extract_buyer(text)
    supplier = extract_supplier(text, buyer)
    identifiers = extract_identifiers(text)
    classification = classify_error(text, document_type)
    action = classify_action(text)
    ticket_id = extract_ticket_id(text) or generate_ticket_id()

    logger.debug(
        "Deterministic extraction: type=%s supplier=%r buyer=%r ids=%d error=%s",
        document_type,
        supplier,
        buyer,
        len(identifiers),
        classification.error_type,
    )

    record = TicketRecord(
        id=ticket_id,
        document_type=document_type,
        supplier=supplier,
        buyer=buyer,
        error_type=classification.error_type,
        error_code=classification.error_code,
        affected_pos=identifiers,
        action=action,
        timestamp=datetime.now(UTC),
        raw_text=text,
        resolution_steps=list(classification.resolution_steps),
        common_causes=list(classification.common_causes) or None,
        **extract_optional_fields(text),
    )
    return Ok(record)
