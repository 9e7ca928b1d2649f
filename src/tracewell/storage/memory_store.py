"""In-memory span store.

The default backend of ``IngestionService``.  Durable backends plug in by
implementing the ``SpanStore`` protocol.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from tracewell.models.span import Span

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _StoredSpan:
    span: Span
    visible_at: int


class InMemorySpanStore:
    """Dict-backed span store keyed by ``(trace_id, span_id)``.

    Traces are kept in first-persisted order and spans within a trace in
    arrival order; replacing a span keeps its original position.
    Implements the ``SpanStore`` protocol.
    """

    __slots__ = ("_lock", "_traces")

    def __init__(self) -> None:
        self._traces: dict[str, dict[str, _StoredSpan]] = {}
        self._lock = threading.Lock()

    def put(self, span: Span, visible_at: int) -> bool:
        with self._lock:
            spans = self._traces.setdefault(span.trace_id, {})
            existing = spans.get(span.span_id)
            if existing is None:
                spans[span.span_id] = _StoredSpan(span, visible_at)
                return True
            if existing.span == span:
                return False
            logger.debug(
                "Span %s of trace %s re-ingested with different content; replacing",
                span.span_id,
                span.trace_id,
            )
            spans[span.span_id] = _StoredSpan(span, existing.visible_at)
            return False

    def get_trace_spans(self, trace_id: str, now: int) -> list[Span]:
        with self._lock:
            spans = self._traces.get(trace_id)
            if not spans:
                return []
            return [s.span for s in spans.values() if s.visible_at <= now]

    def list_trace_ids(self) -> list[str]:
        with self._lock:
            return list(self._traces.keys())

    def span_count(self) -> int:
        with self._lock:
            return sum(len(spans) for spans in self._traces.values())

    def clear(self) -> None:
        with self._lock:
            self._traces.clear()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(traces={len(self._traces)})"
