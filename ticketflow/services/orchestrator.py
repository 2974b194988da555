"""
Extraction orchestrator: composes the stages into one outcome.

The strategies are an explicit ordered list (AI parsing, then the
deterministic extractor) combined with ``first_success``.  Every
attempt is recorded as a ``StageResult``; nothing is raised across
this boundary except cancellation.  Response generation runs only
after an AI-produced record, and its failure never invalidates
that record.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from ticketflow.core.constants import EXTRACTION_FAILED_MESSAGE
from ticketflow.core.metrics import (
    record_extraction,
    record_fallback,
    record_stage_attempt,
)
from ticketflow.schemas.enums import StageName
from ticketflow.schemas.outcome import (
    ExtractionOutcome,
    ResponseGeneration,
    StageResult,
)
from ticketflow.schemas.ticket import TicketRecord
from ticketflow.services import deterministic
from ticketflow.services.ai_extractor import extract_with_ai
from ticketflow.services.enrichment import CustomerDirectory, enrich_record
from ticketflow.services.exceptions import (
    StageError,
    StageUnavailableError,
    TicketFlowError,
)
from ticketflow.services.llm_client import Completion, StageCall
from ticketflow.services.providers import resolve_api_key
from ticketflow.services.response_generator import generate_responses
from ticketflow.services.result import Err, Ok, first_success
from ticketflow.services.tickets import with_derived_title

if TYPE_CHECKING:
    from ticketflow.core.config import Settings

logger = logging.getLogger(__name__)


# ── Configuration ───────────────────────────────────────────


@dataclass(frozen=True)
class OrchestratorConfig:
    """Per-run switches and stage parameters.

    A stage whose ``api_key`` is ``None`` counts as unconfigured
    and is reported as unavailable without being called.
    """

    stage1: StageCall
    stage2: StageCall
    ai_enabled: bool = False
    response_generation_enabled: bool = True
    enrichment_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> OrchestratorConfig:
        """Build the default configuration from application settings."""
        return cls(
            stage1=StageCall(
                stage=StageName.AI_PRIMARY,
                model=settings.STAGE1_MODEL,
                timeout=settings.STAGE1_TIMEOUT,
                temperature=settings.STAGE1_TEMPERATURE,
                max_tokens=settings.STAGE1_MAX_TOKENS,
                api_key=resolve_api_key(settings.STAGE1_MODEL, settings),
                max_retries=settings.AI_MAX_RETRIES,
            ),
            stage2=StageCall(
                stage=StageName.AI_SECONDARY,
                model=settings.STAGE2_MODEL,
                timeout=settings.STAGE2_TIMEOUT,
                temperature=settings.STAGE2_TEMPERATURE,
                max_tokens=settings.STAGE2_MAX_TOKENS,
                api_key=resolve_api_key(settings.STAGE2_MODEL, settings),
                max_retries=settings.AI_MAX_RETRIES,
            ),
            ai_enabled=settings.AI_ENABLED,
            response_generation_enabled=settings.RESPONSE_GENERATION_ENABLED,
            enrichment_enabled=settings.ENRICHMENT_ENABLED,
        )

    def with_overrides(
        self,
        *,
        ai_enabled: bool | None = None,
        response_generation_enabled: bool | None = None,
        enrichment_enabled: bool | None = None,
    ) -> OrchestratorConfig:
        """Return a copy with the given switches replaced (``None`` keeps)."""
        changes = {
            "ai_enabled": ai_enabled,
            "response_generation_enabled": response_generation_enabled,
            "enrichment_enabled": enrichment_enabled,
        }
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


# ── Orchestrator ────────────────────────────────────────────


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _error_text(error: Exception) -> str:
    if isinstance(error, StageError):
        return error.cause
    return str(error)


class ExtractionOrchestrator:
    """Runs one ticket through the stage pipeline.

    Holds no per-request state; the same instance may serve
    concurrent requests.
    """

    def __init__(
        self,
        config: OrchestratorConfig,
        directory: CustomerDirectory | None = None,
    ) -> None:
        self.config = config
        self.directory = directory

    # ── Stage attempts ──────────────────────────────────────

    def _record(self, stages: list[StageResult], result: StageResult) -> None:
        stages.append(result)
        record_stage_attempt(
            result.stage,
            success=result.success,
            duration_s=result.processing_time_ms / 1000,
        )
        if result.success:
            logger.info("%s succeeded in %dms", result.stage, result.processing_time_ms)
        else:
            logger.info("%s failed: %s", result.stage, result.error)

    def _stage_result(
        self,
        stage: StageName,
        result: Ok | Err,
        elapsed_ms: int,
        *,
        model: str | None = None,
        completion: Completion | None = None,
    ) -> StageResult:
        return StageResult(
            stage=stage,
            model=model,
            success=result.is_ok(),
            processing_time_ms=elapsed_ms,
            error=None if result.is_ok() else _error_text(result.error),
            tokens_per_second=completion.tokens_per_second if completion else None,
        )

    def _unavailable_reason(self, call: StageCall, enabled: bool) -> str | None:
        if not self.config.ai_enabled or not enabled:
            return "AI stage disabled"
        if call.api_key is None:
            return f"no API key configured for {call.model}"
        return None

    async def _ai_primary(
        self,
        text: str,
        stages: list[StageResult],
    ) -> Ok[TicketRecord] | Err[StageError]:
        call = self.config.stage1
        reason = self._unavailable_reason(call, enabled=True)
        if reason is not None:
            result: Ok[TicketRecord] | Err[StageError] = Err(
                StageUnavailableError(StageName.AI_PRIMARY, reason)
            )
            self._record(stages, self._stage_result(StageName.AI_PRIMARY, result, 0))
            return result

        start = time.monotonic()
        result, completion = await extract_with_ai(text, call)
        self._record(
            stages,
            self._stage_result(
                StageName.AI_PRIMARY,
                result,
                _elapsed_ms(start),
                model=call.model,
                completion=completion,
            ),
        )
        return result

    async def _deterministic(
        self,
        text: str,
        stages: list[StageResult],
    ) -> Ok[TicketRecord] | Err[TicketFlowError]:
        start = time.monotonic()
        result = deterministic.extract(text)
        self._record(
            stages,
            self._stage_result(StageName.DETERMINISTIC, result, _elapsed_ms(start)),
        )
        return result

    async def _ai_secondary(
        self,
        record: TicketRecord,
        stages: list[StageResult],
    ) -> ResponseGeneration | None:
        call = self.config.stage2
        reason = self._unavailable_reason(
            call, enabled=self.config.response_generation_enabled
        )
        if reason is not None:
            result: Ok[ResponseGeneration] | Err[StageError] = Err(
                StageUnavailableError(StageName.AI_SECONDARY, reason)
            )
            self._record(stages, self._stage_result(StageName.AI_SECONDARY, result, 0))
            return None

        start = time.monotonic()
        result, completion = await generate_responses(record, call)
        self._record(
            stages,
            self._stage_result(
                StageName.AI_SECONDARY,
                result,
                _elapsed_ms(start),
                model=call.model,
                completion=completion,
            ),
        )
        return result.value if result.is_ok() else None

    # ── Pipeline ────────────────────────────────────────────

    async def run(self, text: str) -> ExtractionOutcome:
        """Extract a record from *text*.

        Args:
            text: Raw ticket text.

        Returns:
            The outcome with per-stage diagnostics.  On failure the
            outcome has no record and carries an actionable message.
        """
        start = time.monotonic()
        stages: list[StageResult] = []

        strategies: list[Callable[[], Awaitable[Ok[TicketRecord] | Err[Exception]]]] = [
            lambda: self._ai_primary(text, stages),
            lambda: self._deterministic(text, stages),
        ]
        result = await first_success(strategies)

        if result is None or not result.is_ok():
            outcome = ExtractionOutcome(
                stages=stages,
                total_processing_time_ms=_elapsed_ms(start),
                message=EXTRACTION_FAILED_MESSAGE,
            )
            record_extraction(success=False)
            logger.info("No record could be extracted (%d stages tried)", len(stages))
            return outcome

        record = result.value
        producer = stages[-1].stage
        fallback_used = producer != StageName.AI_PRIMARY
        if fallback_used:
            record_fallback()

        if self.config.enrichment_enabled and self.directory is not None:
            record = enrich_record(record, self.directory)
        record = with_derived_title(record)

        response_generation = None
        if producer == StageName.AI_PRIMARY and self.config.response_generation_enabled:
            response_generation = await self._ai_secondary(record, stages)

        outcome = ExtractionOutcome(
            stages=stages,
            record=record,
            producer=producer,
            response_generation=response_generation,
            fallback_used=fallback_used,
            total_processing_time_ms=_elapsed_ms(start),
        )
        record_extraction(success=outcome.overall_success)
        logger.info(
            "Extracted %s ticket %s via %s in %dms",
            record.document_type,
            record.id,
            producer,
            outcome.total_processing_time_ms,
        )
        return outcome


async def orchestrate(
    text: str,
    config: OrchestratorConfig,
    directory: CustomerDirectory | None = None,
) -> ExtractionOutcome:
    """Convenience wrapper: run one extraction with *config*."""
    return await ExtractionOrchestrator(config, directory).run(text)


# ── Session handle ──────────────────────────────────────────


class ExtractionSession:
    """Serialises extractions for one interactive user.

    Submitting a new ticket cancels any extraction still in
    flight.  Only the latest submission may update
    ``last_outcome``; a superseded call raises
    ``asyncio.CancelledError`` in its caller instead.
    """

    def __init__(self, orchestrator: ExtractionOrchestrator) -> None:
        self._orchestrator = orchestrator
        self._task: asyncio.Task[ExtractionOutcome] | None = None
        self._generation = 0
        self._last_outcome: ExtractionOutcome | None = None

    @property
    def last_outcome(self) -> ExtractionOutcome | None:
        """Outcome of the most recent completed submission."""
        return self._last_outcome

    @property
    def busy(self) -> bool:
        """``True`` while an extraction is in flight."""
        return self._task is not None and not self._task.done()

    def cancel(self) -> bool:
        """Cancel the in-flight extraction, if any."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Cancelled in-flight extraction")
            return True
        return False

    async def submit(self, text: str) -> ExtractionOutcome:
        """Run an extraction, superseding any previous one.

        Raises:
            asyncio.CancelledError: If a later ``submit`` or
                ``cancel`` superseded this call.
        """
        self.cancel()
        self._generation += 1
        generation = self._generation
        task = asyncio.create_task(self._orchestrator.run(text))
        self._task = task
        try:
            outcome = await task
        finally:
            if self._task is task:
                self._task = None
        if generation == self._generation:
            self._last_outcome = outcome
        return outcome
