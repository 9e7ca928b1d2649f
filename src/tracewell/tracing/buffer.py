"""Thread-safe span buffer owned by the remote reporter."""

from __future__ import annotations

import threading

from tracewell.models.span import Span


class SpanBuffer:
    """Accumulates finished spans until the reporter drains them.

    Appends from any number of threads are serialised by a lock.
    ``drain()`` swaps the current batch for an empty one under the same
    lock, so a batch is never observed half-written and the caller can
    transmit the drained batch without holding the lock.

    Parameters:
        capacity: Number of spans after which the buffer reports itself
            full.  Appends past capacity still succeed; the reporter is
            expected to drain promptly.
    """

    __slots__ = ("_capacity", "_lock", "_spans")

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            msg = f"capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._spans: list[Span] = []
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, span: Span) -> bool:
        """Add a span to the current batch.

        Returns:
            ``True`` if the batch has reached capacity.
        """
        with self._lock:
            self._spans.append(span)
            return len(self._spans) >= self._capacity

    def drain(self) -> list[Span]:
        """Atomically take the current batch and start a new, empty one."""
        with self._lock:
            batch, self._spans = self._spans, []
        return batch

    def __len__(self) -> int:
        with self._lock:
            return len(self._spans)

    def __repr__(self) -> str:
        return f"SpanBuffer(size={len(self)}, capacity={self._capacity})"
