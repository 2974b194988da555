"""
Shared async client for the external text-generation stages.

Wraps ``litellm.acompletion`` with the per-stage timeout and a
``tenacity`` retry for transient transport failures, and turns
every failure into a ``StageError`` value instead of an
exception.  Also hosts the tolerant JSON reply parsing shared by
both stages.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any

import litellm
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
)

from ticketflow.schemas.enums import StageName
from ticketflow.services.exceptions import (
    StageError,
    StageMalformedReplyError,
    StageUnavailableError,
)
from ticketflow.services.result import Err, Ok

logger = logging.getLogger(__name__)

# Failures worth an immediate second attempt: the request never
# reached the model or the provider shed load.
_TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    litellm.exceptions.APIConnectionError,
    litellm.exceptions.RateLimitError,
    litellm.exceptions.ServiceUnavailableError,
    litellm.exceptions.InternalServerError,
)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class StageCall:
    """Parameters for one external stage invocation."""

    stage: StageName
    model: str
    timeout: float
    temperature: float
    max_tokens: int
    api_key: str | None = None
    max_retries: int = 1


@dataclass(frozen=True)
class Completion:
    """Text reply of a stage plus the usage needed for diagnostics."""

    content: str
    model: str
    elapsed_ms: int
    total_tokens: int | None = None

    @property
    def tokens_per_second(self) -> float | None:
        """Reported tokens divided by elapsed wall-clock time."""
        if not self.total_tokens or self.elapsed_ms <= 0:
            return None
        return self.total_tokens / self.elapsed_ms * 1000


# ── Reply parsing ───────────────────────────────────────────


def strip_fence(text: str) -> str:
    """Return the JSON candidate inside *text*.

    A fenced ```` ```json ```` block wins; otherwise the span from
    the first ``{`` to the last ``}``; otherwise the stripped text.
    """
    fenced = _FENCE_RE.search(text)
    if fenced:
        return fenced.group(1).strip()
    braces = _OBJECT_RE.search(text)
    if braces:
        return braces.group(0)
    return text.strip()


def parse_json_payload(text: str) -> dict[str, Any]:
    """Parse a stage reply into a JSON object.

    Raises:
        ValueError: If the reply holds no JSON object.
    """
    payload = json.loads(strip_fence(text))
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


# ── Completion ──────────────────────────────────────────────


def _reply_text(response: Any) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError):
        return ""
    return content or ""


def _total_tokens(response: Any) -> int | None:
    usage = getattr(response, "usage", None)
    total = getattr(usage, "total_tokens", None)
    return total if isinstance(total, int) else None


async def _acompletion_with_retry(
    call: StageCall,
    kwargs: dict[str, Any],
) -> Any:
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        stop=stop_after_attempt(call.max_retries + 1),
        wait=wait_none(),
        reraise=True,
    ):
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                logger.info(
                    "Retrying %s (attempt %d)",
                    call.stage,
                    attempt.retry_state.attempt_number,
                )
            return await litellm.acompletion(**kwargs)
    raise AssertionError("unreachable")  # pragma: no cover


async def complete(
    prompt: str,
    call: StageCall,
    *,
    response_format: dict[str, Any] | None = None,
) -> Ok[Completion] | Err[StageError]:
    """Send *prompt* to the stage's model and return its reply.

    The whole call, retries included, is bounded by
    ``call.timeout``.  Cancellation propagates to the caller.

    Args:
        prompt: The full user prompt.
        call: Stage parameters.
        response_format: Optional JSON-schema response format.

    Returns:
        ``Ok(Completion)``; ``Err(StageUnavailableError)`` on
        timeout or provider failure; ``Err(StageMalformedReplyError)``
        when the reply is empty.
    """
    kwargs: dict[str, Any] = {
        "model": call.model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": call.temperature,
        "max_tokens": call.max_tokens,
    }
    if call.api_key:
        kwargs["api_key"] = call.api_key
    if response_format is not None:
        kwargs["response_format"] = response_format

    start = time.monotonic()
    try:
        response = await asyncio.wait_for(
            _acompletion_with_retry(call, kwargs),
            timeout=call.timeout,
        )
    except TimeoutError:
        logger.warning("%s timed out after %.1fs", call.stage, call.timeout)
        return Err(
            StageUnavailableError(call.stage, f"timed out after {call.timeout:g}s")
        )
    except Exception as exc:
        logger.warning(
            "%s request to %s failed: %s",
            call.stage,
            call.model,
            exc,
        )
        return Err(StageUnavailableError(call.stage, f"{type(exc).__name__}: {exc}"))

    elapsed_ms = int((time.monotonic() - start) * 1000)
    content = _reply_text(response)
    if not content.strip():
        return Err(StageMalformedReplyError(call.stage, "empty reply"))

    return Ok(
        Completion(
            content=content,
            model=call.model,
            elapsed_ms=elapsed_ms,
            total_tokens=_total_tokens(response),
        )
    )
