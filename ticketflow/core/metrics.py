"""
Prometheus metrics for the extraction pipeline.

The service is a single process, so plain in-process
``prometheus_client`` counters are enough.  They live on a
dedicated ``CollectorRegistry`` so that importing the module
repeatedly (e.g. in tests) never collides with the default
registry.

Usage:
    Call ``record_stage_attempt()`` for every strategy the
    orchestrator runs and ``record_extraction()`` once per
    orchestration.  ``/metrics`` serves ``generate_metrics()``.
"""

from __future__ import annotations

import logging

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# ── Shared registry ─────────────────────────────────────────

REGISTRY = CollectorRegistry()

STAGE_ATTEMPTS = Counter(
    "ticketflow_stage_attempts_total",
    "Extraction stage attempts by outcome.",
    ["stage", "outcome"],
    registry=REGISTRY,
)
STAGE_DURATION = Histogram(
    "ticketflow_stage_duration_seconds",
    "Wall-clock duration of each extraction stage.",
    ["stage"],
    buckets=(0.005, 0.05, 0.25, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0),
    registry=REGISTRY,
)
FALLBACKS = Counter(
    "ticketflow_fallbacks_total",
    "Orchestrations that fell back past the primary AI stage.",
    registry=REGISTRY,
)
EXTRACTIONS = Counter(
    "ticketflow_extractions_total",
    "Completed orchestrations by outcome.",
    ["outcome"],
    registry=REGISTRY,
)


# ── Record helpers ──────────────────────────────────────────


def _outcome(success: bool) -> str:
    return "success" if success else "failure"


def record_stage_attempt(
    stage: str,
    *,
    success: bool,
    duration_s: float,
) -> None:
    """Record one stage attempt.

    Args:
        stage: Stage name (``ai-primary``, ``deterministic``, …).
        success: ``True`` if the stage produced a usable value.
        duration_s: Wall-clock duration in seconds.
    """
    try:
        STAGE_ATTEMPTS.labels(stage=stage, outcome=_outcome(success)).inc()
        STAGE_DURATION.labels(stage=stage).observe(max(duration_s, 0.0))
    except Exception:
        logger.warning("Failed to record stage metric", exc_info=True)


def record_fallback() -> None:
    """Increment the fallback counter."""
    try:
        FALLBACKS.inc()
    except Exception:
        logger.warning("Failed to record fallback metric", exc_info=True)


def record_extraction(*, success: bool) -> None:
    """Record the overall result of one orchestration."""
    try:
        EXTRACTIONS.labels(outcome=_outcome(success)).inc()
    except Exception:
        logger.warning("Failed to record extraction metric", exc_info=True)


def generate_metrics() -> bytes:
    """Render Prometheus exposition format for pipeline metrics.

    Returns:
        UTF-8 bytes ready to be served on ``/metrics``.
    """
    return generate_latest(REGISTRY)
