"""Storage protocol definitions.

Span stores implement these protocols using structural subtyping (PEP 544).
Users can provide any object that matches the interface -- no inheritance
required.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tracewell.models.span import Span


@runtime_checkable
class SpanStore(Protocol):
    """Persists spans keyed by ``(trace_id, span_id)``."""

    def put(self, span: Span, visible_at: int) -> bool:
        """Persist a span.

        Parameters:
            span: The span to store.  A span with the same
                ``(trace_id, span_id)`` as an existing one replaces it
                (last write wins); an identical one is a no-op.
            visible_at: Microsecond timestamp from which the span may be
                returned by reads.

        Returns:
            ``True`` if the span was not stored before, ``False`` if it
            replaced or duplicated an existing span.
        """
        ...

    def get_trace_spans(self, trace_id: str, now: int) -> list[Span]:
        """Return the visible spans of one trace in arrival order.

        Parameters:
            trace_id: The trace to read.
            now: Current time in microseconds; spans not yet visible at
                this instant are excluded.

        Returns:
            The spans, or an empty list when the trace is unknown.
        """
        ...

    def list_trace_ids(self) -> list[str]:
        """Return every stored trace ID in first-persisted order."""
        ...

    def clear(self) -> None:
        """Remove all spans.

        Side Effects:
            The store is left empty.  This operation is irreversible.
        """
        ...
