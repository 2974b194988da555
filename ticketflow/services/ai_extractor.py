"""
Stage 1: AI ticket parsing.

Sends the raw ticket text to the primary model with a fixed
analyst prompt, validates the JSON reply against
``AIExtractionPayload`` and converts it into a ``TicketRecord``.
Anything that does not validate is a malformed reply; this stage
never guesses a document type.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from ticketflow.core.constants import UNKNOWN_BUYER, UNKNOWN_ERROR, UNKNOWN_SUPPLIER
from ticketflow.schemas.enums import ActionType, DocumentType, StageName
from ticketflow.schemas.ticket import TicketRecord
from ticketflow.services.deterministic import extract_ticket_id, generate_ticket_id
from ticketflow.services.exceptions import StageError, StageMalformedReplyError
from ticketflow.services.llm_client import (
    Completion,
    StageCall,
    complete,
    parse_json_payload,
)
from ticketflow.services.result import Err, Ok
from ticketflow.services.structured_output import (
    build_response_format,
    supports_structured_output,
)

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """\
You are an experienced EDI (Electronic Data Interchange) support analyst.
Read the support ticket below and extract its business facts.

Return a single JSON object with these keys (use null when a value is not present):
- ticketTitle: title or subject line of the ticket
- customerName: full customer / contact name field
- callerOnRecord: person listed as the caller on record
- personOnPhone: person listed as on the phone
- companyName: the supplier company or business name
- companyId: company ID, WebEDI ID or account number (digits only)
- phoneNumber: contact phone number
- email: contact email address
- tradingPartner: the trading partner / buyer (e.g. Walmart, Target, Chewy)
- documentType: the EDI transaction code of the failing document
- documentTypes: array of every transaction code mentioned
- errorType: UPPER_SNAKE_CASE error classification (e.g. DUPLICATE_INVOICE, INVALID_ITEM, PRICE_MISMATCH)
- errorCode: specific error code if one is quoted (e.g. AP-810776)
- issueDescription: full description of the error
- messageIds: array of message IDs or control numbers
- integrationType: connection type (WebEDI, AS2, SFTP, FTP, API, VAN)
- affectedPOs: array of affected purchase order or invoice numbers
- errorDate: ISO-8601 date the error occurred
- action: one of "rejection", "acceptance", "modification"

Transaction codes:
- 810 = Invoice
- 850 = Purchase Order
- 856 = Advance Ship Notice (ASN)
- 855 = Purchase Order Acknowledgment
- 997 = Functional Acknowledgment

Ticket text:
"""


class AIExtractionPayload(BaseModel):
    """Documented shape of the Stage 1 reply.

    ``document_type`` is the only required key.  Unknown keys are
    ignored; known keys with unusable values are dropped to
    ``None`` where that is harmless.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    document_type: DocumentType
    ticket_id: str | None = None
    ticket_title: str | None = None
    customer_name: str | None = None
    caller_on_record: str | None = None
    person_on_phone: str | None = None
    company_name: str | None = None
    company_id: str | None = None
    phone_number: str | None = None
    email: str | None = None
    trading_partner: str | None = None
    document_types: list[str] | None = None
    error_type: str | None = None
    error_code: str | None = None
    issue_description: str | None = None
    message_ids: list[str] | None = None
    integration_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("integrationType", "integationType"),
    )
    affected_pos: list[str] | None = Field(default=None, alias="affectedPOs")
    error_date: str | None = None
    action: ActionType | None = None

    @field_validator("document_type", mode="before")
    @classmethod
    def _code_as_text(cls, v: Any) -> Any:
        return str(v).strip() if isinstance(v, (int, str)) else v

    @field_validator(
        "ticket_id", "company_id", "phone_number", "error_code", mode="before"
    )
    @classmethod
    def _scalar_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator(
        "document_types", "message_ids", "affected_pos", mode="before"
    )
    @classmethod
    def _list_of_text(cls, v: Any) -> Any:
        if v is None:
            return None
        if isinstance(v, (str, int)):
            v = [v]
        if not isinstance(v, (list, tuple)):
            raise ValueError("expected a list")
        return [str(item) for item in v if item is not None]

    @field_validator("action", mode="before")
    @classmethod
    def _known_action(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in {a.value for a in ActionType}:
            return v.strip().lower()
        return None


def _parse_error_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        logger.debug("Ignoring unparseable errorDate %r", value)
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def payload_to_record(payload: AIExtractionPayload, text: str) -> TicketRecord:
    """Convert a validated Stage 1 payload into a ``TicketRecord``.

    Args:
        payload: The validated reply.
        text: Raw ticket text, kept verbatim on the record.

    Returns:
        The record, with sentinels for unresolved parties.
    """
    message_ids = payload.message_ids or None
    return TicketRecord(
        id=payload.ticket_id or extract_ticket_id(text) or generate_ticket_id(),
        document_type=payload.document_type,
        supplier=payload.company_name or UNKNOWN_SUPPLIER,
        buyer=payload.trading_partner or UNKNOWN_BUYER,
        error_type=payload.error_type or UNKNOWN_ERROR,
        error_code=payload.error_code or None,
        affected_pos=payload.affected_pos or [],
        action=payload.action or ActionType.REJECTION,
        timestamp=datetime.now(UTC),
        raw_text=text,
        ticket_title=payload.ticket_title,
        customer_name=(
            payload.customer_name
            or payload.caller_on_record
            or payload.person_on_phone
        ),
        company_name=payload.company_name,
        company_id=payload.company_id,
        email=payload.email,
        phone_number=payload.phone_number,
        trading_partner=payload.trading_partner,
        integration_type=payload.integration_type,
        issue_description=payload.issue_description,
        message_ids=message_ids,
        control_number=message_ids[0] if message_ids else None,
        document_types=payload.document_types or None,
        error_date=_parse_error_date(payload.error_date),
    )


async def extract_with_ai(
    text: str,
    call: StageCall,
) -> tuple[Ok[TicketRecord] | Err[StageError], Completion | None]:
    """Run Stage 1 on *text*.

    Args:
        text: Raw ticket text.
        call: Stage parameters (model, timeout, credentials).

    Returns:
        The result plus the raw completion (``None`` when the
        model was never reached), so callers can report usage.
    """
    response_format = None
    if supports_structured_output(call.model):
        response_format = build_response_format(
            AIExtractionPayload, "ticket_extraction"
        )

    reply = await complete(
        EXTRACTION_PROMPT + text,
        call,
        response_format=response_format,
    )
    if not reply.is_ok():
        return reply, None

    completion = reply.value
    try:
        payload = AIExtractionPayload.model_validate(
            parse_json_payload(completion.content)
        )
        record = payload_to_record(payload, text)
    except (ValueError, ValidationError) as exc:
        logger.warning("Stage 1 reply did not validate: %s", exc)
        return (
            Err(StageMalformedReplyError(StageName.AI_PRIMARY, str(exc))),
            completion,
        )

    logger.info(
        "Stage 1 extracted %s ticket %s in %dms",
        record.document_type,
        record.id,
        completion.elapsed_ms,
    )
    return Ok(record), completion
