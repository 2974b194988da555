"""
Stage 2: support response generation.

Given a record produced by Stage 1, asks the secondary model for
a customer reply, internal notes, technical fixes and resolution
steps.  Only the record's business fields are sent; the raw
ticket text stays local.
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ticketflow.schemas.enums import StageName
from ticketflow.schemas.outcome import ResponseGeneration
from ticketflow.schemas.ticket import TicketRecord
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

#: Confidence reported for a successfully generated response set.
RESPONSE_CONFIDENCE: float = 0.9

RESPONSE_PROMPT = """\
You are a senior EDI support specialist. Using the parsed ticket below,
write the support material for this case.

Return a single JSON object with:
- customerResponse: a professional, empathetic reply to the customer that
  explains the issue and the next steps
- internalDocumentation: detailed notes for the support team with the
  technical context
- technicalSolutions: array of concrete technical fixes that can be applied
- resolutionSteps: array of ordered, step-by-step resolution instructions

Name the EDI document type, error codes and trading partner requirements
where relevant and use standard EDI terminology.

Parsed ticket:
"""

#: Record fields forwarded to the model.
_PROMPT_FIELDS: tuple[str, ...] = (
    "documentType",
    "supplier",
    "buyer",
    "errorType",
    "errorCode",
    "issueDescription",
    "tradingPartner",
    "integrationType",
    "affectedPOs",
    "companyName",
    "customerName",
    "ticketTitle",
)


class ResponsePayload(BaseModel):
    """Documented shape of the Stage 2 reply."""

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    customer_response: str = Field(..., min_length=1)
    internal_documentation: str = Field(..., min_length=1)
    technical_solutions: list[str] = Field(default_factory=list)
    resolution_steps: list[str] = Field(default_factory=list)


def build_prompt(record: TicketRecord) -> str:
    """Render the Stage 2 prompt for *record*."""
    payload = record.to_payload()
    ticket_data = {key: payload[key] for key in _PROMPT_FIELDS if key in payload}
    return RESPONSE_PROMPT + json.dumps(ticket_data, indent=2)


async def generate_responses(
    record: TicketRecord,
    call: StageCall,
) -> tuple[Ok[ResponseGeneration] | Err[StageError], Completion | None]:
    """Run Stage 2 for *record*.

    Args:
        record: A record produced by Stage 1.
        call: Stage parameters (model, timeout, credentials).

    Returns:
        The result plus the raw completion (``None`` when the
        model was never reached), for throughput diagnostics.
    """
    response_format = None
    if supports_structured_output(call.model):
        response_format = build_response_format(ResponsePayload, "ticket_responses")

    reply = await complete(build_prompt(record), call, response_format=response_format)
    if not reply.is_ok():
        return reply, None

    completion = reply.value
    try:
        payload = ResponsePayload.model_validate(parse_json_payload(completion.content))
    except (ValueError, ValidationError) as exc:
        logger.warning("Stage 2 reply did not validate: %s", exc)
        return (
            Err(StageMalformedReplyError(StageName.AI_SECONDARY, str(exc))),
            completion,
        )

    logger.info(
        "Stage 2 generated responses for %s (%s tok/s)",
        record.id,
        f"{completion.tokens_per_second:.0f}" if completion.tokens_per_second else "-",
    )
    return (
        Ok(
            ResponseGeneration(
                customer_response=payload.customer_response,
                internal_documentation=payload.internal_documentation,
                technical_solutions=payload.technical_solutions,
                resolution_steps=payload.resolution_steps,
                confidence=RESPONSE_CONFIDENCE,
            )
        ),
        completion,
    )
