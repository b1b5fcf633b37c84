"""
Prometheus Metrics Collector
============================

Centralized metrics for the cascade and the pipeline.

Metric Naming Convention:
  - council_{component}_{metric}_{unit}
  - e.g., council_cascade_attempt_latency_seconds
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Any

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest


class PercentileTracker:
    """Thread-safe rolling window percentile calculator."""

    __slots__ = ("_lock", "_values")

    def __init__(self, window_size: int = 1000):
        self._values: deque[float] = deque(maxlen=window_size)
        self._lock = threading.Lock()

    def record(self, value: float) -> None:
        with self._lock:
            self._values.append(value)

    def percentile(self, p: float) -> float:
        """Get percentile value (0-100)."""
        with self._lock:
            if not self._values:
                return 0.0
            ordered = sorted(self._values)
        idx = int(len(ordered) * p / 100)
        return ordered[min(idx, len(ordered) - 1)]

    @property
    def count(self) -> int:
        return len(self._values)


class MetricsCollector:
    """
    Cascade and pipeline metrics.

    Prometheus primitives are registered once per process (see
    ``get_metrics``); per-provider latency percentiles are also kept in
    memory for the summary endpoint.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latency_trackers: dict[str, PercentileTracker] = {}

        # ── Cascade ──
        self.provider_attempts = Counter(
            "council_cascade_provider_attempts_total",
            "Provider attempts by outcome",
            labelnames=["provider", "tier", "outcome"],
        )
        self.attempt_latency = Histogram(
            "council_cascade_attempt_latency_seconds",
            "Latency of a single provider attempt",
            labelnames=["provider"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 18.0, 30.0),
        )
        self.cascade_results = Counter(
            "council_cascade_requests_total",
            "Cascade invocations by result",
            labelnames=["result"],  # served, cache_hit, exhausted, no_provider
        )

        # ── Cache ──
        self.cache_lookups = Counter(
            "council_cache_lookups_total",
            "Result cache lookups",
            labelnames=["result"],  # hit, miss
        )

        # ── Pipeline ──
        self.pipeline_steps = Counter(
            "council_pipeline_steps_total",
            "Pipeline steps by final status",
            labelnames=["role", "status"],
        )
        self.pipeline_runs = Counter(
            "council_pipeline_runs_total",
            "Pipeline runs by final status",
            labelnames=["status"],
        )

    # ── Recording Methods ──────────────────────────────────────────

    def record_attempt(self, *, provider: str, tier: str, outcome: str, latency_s: float) -> None:
        self._get_latency_tracker(provider).record(latency_s)
        self.provider_attempts.labels(provider=provider, tier=tier, outcome=outcome).inc()
        self.attempt_latency.labels(provider=provider).observe(latency_s)

    def record_cascade(self, result: str) -> None:
        self.cascade_results.labels(result=result).inc()

    def record_cache_lookup(self, result: str) -> None:
        self.cache_lookups.labels(result=result).inc()

    def record_step(self, *, role: str, status: str) -> None:
        self.pipeline_steps.labels(role=role, status=status).inc()

    def record_pipeline(self, status: str) -> None:
        self.pipeline_runs.labels(status=status).inc()

    # ── Percentile Access ──────────────────────────────────────────

    def _get_latency_tracker(self, provider: str) -> PercentileTracker:
        if provider not in self._latency_trackers:
            with self._lock:
                if provider not in self._latency_trackers:
                    self._latency_trackers[provider] = PercentileTracker()
        return self._latency_trackers[provider]

    def get_summary(self) -> dict[str, Any]:
        """Per-provider attempt latency percentiles."""
        return {
            provider: {
                "p50": tracker.percentile(50),
                "p95": tracker.percentile(95),
                "count": tracker.count,
            }
            for provider, tracker in self._latency_trackers.items()
        }

    def export_prometheus(self) -> bytes:
        """Export metrics in Prometheus text format."""
        return generate_latest(REGISTRY)


# ── Singleton ──────────────────────────────────────────────────────

_metrics: MetricsCollector | None = None
_metrics_lock = threading.Lock()


def get_metrics() -> MetricsCollector:
    """Process-wide collector; Prometheus forbids registering a name twice."""
    global _metrics
    if _metrics is not None:
        return _metrics
    with _metrics_lock:
        if _metrics is None:
            _metrics = MetricsCollector()
    return _metrics
