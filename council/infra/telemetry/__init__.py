"""
Telemetry Layer
===============

Provides:
  - Structured logging with pipeline/step context
  - Prometheus metrics for cascade attempts, cache and pipeline steps

Usage:
    from council.infra.telemetry import get_logger, get_metrics

    logger = get_logger(__name__)
    logger.info("provider_succeeded", provider="groq-llama-70b")
    get_metrics().record_cascade("served")
"""

from council.infra.telemetry.logger import (
    StructuredLogger,
    clear_log_context,
    get_logger,
    set_log_context,
    setup_logging,
)
from council.infra.telemetry.metrics import MetricsCollector, get_metrics

__all__ = [
    "MetricsCollector",
    "StructuredLogger",
    "clear_log_context",
    "get_logger",
    "get_metrics",
    "set_log_context",
    "setup_logging",
]
