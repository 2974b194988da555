"""
Application configuration and settings.

Centralises all external configuration (env-vars / .env) and
version discovery.  FastAPI dependency injection lives in
``ticketflow.api.deps``.
"""

from __future__ import annotations

import importlib.metadata
import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# ── Package version (single source of truth from pyproject.toml) ────────


def get_version() -> str:
    """Return the installed package version.

    Falls back to ``"0.0.0-dev"`` when the package metadata
    is not available (e.g. during editable / source installs).

    Returns:
        Semantic version string.
    """
    try:
        return importlib.metadata.version("edi-ticketflow")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


# ── Settings ────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # General
    APP_NAME: str = "EDI Ticket Workflow"
    API_V1_STR: str = "/api/v1"
    ROOT_PATH: str = ""
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # ── Feature flags ───────────────────────────────────────────────
    AI_ENABLED: bool = False
    RESPONSE_GENERATION_ENABLED: bool = True
    ENRICHMENT_ENABLED: bool = True

    # API Keys (populated via .env)
    OPENROUTER_API_KEY: str = ""
    GEMINI_API_KEY: str = ""
    GROQ_API_KEY: str = ""

    # ── Stage 1: ticket parsing ─────────────────────────────────────
    STAGE1_MODEL: str = "gemini/gemini-2.5-pro"
    STAGE1_TIMEOUT: float = 60.0  # seconds
    STAGE1_TEMPERATURE: float = 0.1
    STAGE1_MAX_TOKENS: int = 2000

    # ── Stage 2: response generation ────────────────────────────────
    STAGE2_MODEL: str = "groq/moonshotai/kimi-k2-instruct"
    STAGE2_TIMEOUT: float = 45.0  # seconds
    STAGE2_TEMPERATURE: float = 0.3
    STAGE2_MAX_TOKENS: int = 4000

    # Immediate retries on transport failures (per stage call)
    AI_MAX_RETRIES: int = 1

    # ── Ticket store ────────────────────────────────────────────────
    RECENT_TICKETS_LIMIT: int = 20

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v: str | list[str]) -> list[str]:
        """Accept a JSON-encoded string or a list."""
        if isinstance(v, str):
            import json

            return json.loads(v)
        return v

    @property
    def stage1_configured(self) -> bool:
        """``True`` when Stage 1 has credentials for its model."""
        from ticketflow.services.providers import resolve_api_key

        return resolve_api_key(self.STAGE1_MODEL, self) is not None

    @property
    def stage2_configured(self) -> bool:
        """``True`` when Stage 2 has credentials for its model."""
        from ticketflow.services.providers import resolve_api_key

        return resolve_api_key(self.STAGE2_MODEL, self) is not None


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Using ``lru_cache`` ensures the .env file is read exactly
    once.  Override in tests via ``app.dependency_overrides``.
    """
    return Settings()
