"""Reporter metrics: the metric model and built-in collectors."""

from __future__ import annotations

import json
import logging
import threading
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

SPANS_REPORTED = "reporter.spans.reported"
SPANS_SENT = "reporter.spans.sent"
SPANS_DROPPED = "reporter.spans.dropped"
FLUSHES = "reporter.flushes"


class MetricPoint(BaseModel):
    """A single metric measurement at a point in time.

    Parameters:
        name: The metric name (e.g. ``"reporter.spans.sent"``).
        value: The numeric measurement value.
        timestamp: When the measurement was taken.
        tags: Arbitrary key-value labels for filtering and grouping.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    value: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    tags: dict[str, str] = Field(default_factory=dict)


class InMemoryMetricsCollector:
    """Stores metric points in memory for testing and debugging.

    Safe to share between the reporter's flush thread and the threads that
    record spans.
    """

    __slots__ = ("_lock", "_metrics")

    def __init__(self) -> None:
        self._metrics: list[MetricPoint] = []
        self._lock = threading.Lock()

    def record(self, metric: MetricPoint) -> None:
        """Record a single metric measurement.

        Parameters:
            metric: The metric point to store.
        """
        with self._lock:
            self._metrics.append(metric)

    def flush(self) -> None:
        """No-op for the in-memory collector.

        Metrics remain available via ``get_metrics()`` after flushing.
        """

    def get_metrics(self, name: str | None = None) -> list[MetricPoint]:
        """Return stored metrics, optionally filtered by name.

        Parameters:
            name: If provided, only return metrics with this name.

        Returns:
            A list of matching ``MetricPoint`` objects.
        """
        with self._lock:
            if name is None:
                return list(self._metrics)
            return [m for m in self._metrics if m.name == name]

    def total(self, name: str) -> float:
        """Sum the values recorded under ``name`` (counters)."""
        return sum(m.value for m in self.get_metrics(name))

    def get_summary(self, name: str) -> dict[str, Any]:
        """Compute min, max, avg and count for a named metric.

        Returns an empty dict if no metrics match the given name.
        """
        values = [m.value for m in self.get_metrics(name)]
        if not values:
            return {}
        return {
            "min": min(values),
            "max": max(values),
            "avg": sum(values) / len(values),
            "count": len(values),
        }

    def clear(self) -> None:
        """Remove all stored metrics."""
        with self._lock:
            self._metrics.clear()


class LoggingMetricsCollector:
    """Logs metric points via the standard ``logging`` module.

    Each recorded metric is emitted as a structured JSON log message.
    ``flush()`` is a no-op because metrics are emitted immediately.
    """

    __slots__ = ("_log_level",)

    def __init__(self, log_level: int = logging.DEBUG) -> None:
        self._log_level = log_level

    def record(self, metric: MetricPoint) -> None:
        data = {
            "name": metric.name,
            "value": metric.value,
            "timestamp": metric.timestamp.isoformat(),
            "tags": metric.tags,
        }
        logger.log(self._log_level, json.dumps(data, default=str))

    def flush(self) -> None:
        """No-op; metrics are logged immediately on ``record()``."""
