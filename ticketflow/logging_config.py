"""
Centralized logging configuration.

Provides structured JSON logging for production and human-readable
output for local development. Call ``setup_logging`` early in the
application lifecycle (``ticketflow.main`` does so on import).
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

#: Request id of the HTTP request being served, set by the
#: ``X-Request-ID`` middleware in ``ticketflow.main``.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


def setup_logging(
    level: str = "INFO",
    *,
    json_format: bool = False,
) -> None:
    """
    Configure the root logger for the application.

    Both formats carry a ``request_id`` field populated from
    ``request_id_var`` while a request is being served.

    Args:
        level: Logging level name (e.g. ``"INFO"``, ``"DEBUG"``).
        json_format: If ``True``, emit structured JSON lines.
            Recommended for containerised / production environments.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if json_format:
        fmt = (
            '{"time":"%(asctime)s",'
            '"level":"%(levelname)s",'
            '"logger":"%(name)s",'
            '"request_id":"%(request_id)s",'
            '"message":"%(message)s"}'
        )
    else:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(_RequestIDFilter())

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid duplicate handlers on repeated calls
    root.handlers.clear()
    root.addHandler(handler)

    _silence_noisy_loggers(log_level)


class _RequestIDFilter(logging.Filter):
    """Inject ``request_id`` into every log record.

    Falls back to ``"-"`` outside a request (tests, CLI use).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


def _silence_noisy_loggers(app_level: int) -> None:
    """
    Reduce verbosity of third-party libraries.

    LiteLLM logs every request and cost lookup at INFO.

    Args:
        app_level: The application's configured log level.
    """
    noisy = [
        "urllib3",
        "httpcore",
        "httpx",
        "LiteLLM",
        "litellm",
    ]
    for name in noisy:
        logging.getLogger(name).setLevel(
            max(app_level, logging.WARNING),
        )
