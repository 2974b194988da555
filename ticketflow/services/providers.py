"""
LLM provider resolution helpers.

Centralises API-key selection and provider detection so that
the stage clients stay focused on prompt and reply handling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ticketflow.core.config import get_settings

if TYPE_CHECKING:
    from ticketflow.core.config import Settings


def provider_prefix(model_id: str) -> str:
    """Return the LiteLLM provider prefix of *model_id*.

    Args:
        model_id: Model ID string (e.g. ``gemini/gemini-2.5-pro``).

    Returns:
        The lower-cased segment before the first ``/``, or an
        empty string for bare model names.
    """
    head, sep, _ = model_id.partition("/")
    return head.lower() if sep else ""


def resolve_api_key(
    model_id: str,
    settings: Settings | None = None,
) -> str | None:
    """Pick the correct API key for *model_id* from settings.

    Args:
        model_id: Model ID string (e.g. ``groq/moonshotai/kimi-k2-instruct``).
        settings: Optional settings instance; defaults to the
            cached singleton.

    Returns:
        An API key string, or ``None`` if nothing is configured.
    """
    settings = settings or get_settings()
    prefix = provider_prefix(model_id)
    if prefix == "openrouter":
        return settings.OPENROUTER_API_KEY or None
    if prefix == "groq":
        return settings.GROQ_API_KEY or None
    if prefix == "gemini" or "gemini" in model_id.lower():
        return settings.GEMINI_API_KEY or None
    return settings.OPENROUTER_API_KEY or None
