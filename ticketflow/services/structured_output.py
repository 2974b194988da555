"""
Structured output helpers for LiteLLM ``response_format``.

Builds a JSON Schema from the pydantic model that describes a
stage's reply and detects whether a provider can be asked to
constrain its output to it.  Providers without schema support
still get the field list in the prompt, so the schema is an
optimisation rather than a requirement.
"""

from __future__ import annotations

import logging
from typing import Any

import litellm
from pydantic import BaseModel

logger = logging.getLogger(__name__)


def build_response_format(
    model: type[BaseModel],
    name: str,
) -> dict[str, Any]:
    """Build a ``response_format`` dict for ``litellm.acompletion()``.

    The schema is generated with camelCase aliases because that
    is the key style the stage prompts ask for.  It is non-strict
    so providers may add fields the validator later ignores.

    Args:
        model: Pydantic model describing the expected reply.
        name: Schema name reported to the provider.

    Returns:
        A dict suitable for the ``response_format`` kwarg::

            {
                "type": "json_schema",
                "json_schema": {
                    "name": "<name>",
                    "strict": False,
                    "schema": { ... }
                }
            }
    """
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "strict": False,
            "schema": model.model_json_schema(by_alias=True),
        },
    }


def supports_structured_output(model_id: str) -> bool:
    """Check whether *model_id* supports ``response_format``
    with JSON Schema.

    Uses ``litellm.supports_response_schema()`` for the check.
    Returns ``False`` when LiteLLM has no model info for the id,
    so that callers fall back to prompt-only output.

    Args:
        model_id: LLM model identifier (e.g. ``gemini/gemini-2.5-pro``).

    Returns:
        ``True`` if the provider advertises JSON Schema support.
    """
    try:
        return bool(
            litellm.supports_response_schema(
                model=model_id,
                custom_llm_provider=None,
            )
        )
    except Exception:
        logger.debug(
            "Could not determine response_schema support for %s; "
            "using prompt-only output",
            model_id,
            exc_info=True,
        )
        return False
