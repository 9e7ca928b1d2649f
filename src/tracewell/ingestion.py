"""Server-side span ingestion."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError

from tracewell._time import millis_to_micros, now_micros
from tracewell.exceptions import TransportError
from tracewell.models.span import Span
from tracewell.models.wire import span_from_dict
from tracewell.protocols.storage import SpanStore
from tracewell.storage.memory_store import InMemorySpanStore

logger = logging.getLogger(__name__)


class IngestionService:
    """Persists incoming span batches and controls when they become visible.

    Spans are keyed by ``(trace_id, span_id)`` and merged into existing
    traces.  Ingestion is idempotent: re-ingesting an identical span is a
    no-op, and a span re-ingested with different content replaces the
    stored copy (last write wins).  No ordering is assumed between batches.

    A span becomes visible to queries ``visibility_delay_ms`` after it was
    ingested, modelling the processing lag of a real collector; callers
    must not assume synchronous visibility.

    Parameters:
        store: The span store.  Defaults to a fresh ``InMemorySpanStore``.
        visibility_delay_ms: Lag between ingestion and query visibility.
        clock: Returns the current time in microseconds.  Injectable for
            tests.
    """

    __slots__ = ("_clock", "_store", "_visibility_delay")

    def __init__(
        self,
        store: SpanStore | None = None,
        visibility_delay_ms: int = 0,
        clock: Callable[[], int] = now_micros,
    ) -> None:
        if visibility_delay_ms < 0:
            msg = f"visibility_delay_ms must be non-negative, got {visibility_delay_ms}"
            raise ValueError(msg)
        self._store: SpanStore = store if store is not None else InMemorySpanStore()
        self._visibility_delay = millis_to_micros(visibility_delay_ms)
        self._clock = clock

    @property
    def store(self) -> SpanStore:
        return self._store

    @property
    def clock(self) -> Callable[[], int]:
        return self._clock

    def ingest(self, spans: Iterable[Span]) -> int:
        """Persist a batch of spans.

        Parameters:
            spans: The batch.  May mix traces and repeat spans already
                stored.

        Returns:
            The number of spans that were not stored before.
        """
        visible_at = self._clock() + self._visibility_delay
        added = 0
        total = 0
        for span in spans:
            total += 1
            if self._store.put(span, visible_at):
                added += 1
        logger.debug("Ingested batch of %d span(s), %d new", total, added)
        return added

    def ingest_payload(self, payload: dict[str, Any]) -> int:
        """Persist a Jaeger JSON batch as posted by ``HttpSender``.

        Parameters:
            payload: ``{"data": [{"process": {...}, "spans": [...]}]}``.

        Returns:
            The number of spans that were not stored before.

        Raises:
            TransportError: If the payload is malformed.  Nothing from a
                malformed payload is persisted.
        """
        spans: list[Span] = []
        try:
            for entry in payload.get("data") or []:
                service = entry.get("process", {}).get("serviceName", "")
                spans.extend(span_from_dict(raw, service) for raw in entry.get("spans") or [])
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as exc:
            msg = f"Malformed span batch: {exc}"
            raise TransportError(msg) from exc
        return self.ingest(spans)

    def __repr__(self) -> str:
        return f"IngestionService(store={self._store!r})"
