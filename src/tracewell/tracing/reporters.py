"""Span reporters.

``RemoteReporter`` is the production path: it buffers spans and hands
batches to a ``Sender`` from a background thread.  The others are for
tests, debugging and fan-out.
"""

from __future__ import annotations

import logging
import threading
import time

from tracewell._callbacks import fire_all
from tracewell.models.span import Span
from tracewell.protocols.observability import MetricsCollector
from tracewell.protocols.tracing import Reporter, Sender
from tracewell.tracing.buffer import SpanBuffer
from tracewell.tracing.metrics import (
    FLUSHES,
    SPANS_DROPPED,
    SPANS_REPORTED,
    SPANS_SENT,
    MetricPoint,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CompositeReporter",
    "InMemoryReporter",
    "LoggingReporter",
    "RemoteReporter",
]


class RemoteReporter:
    """Buffers spans and periodically hands them to a sender.

    ``report()`` only appends to a ``SpanBuffer``; it never performs I/O
    and never raises.  A dedicated daemon thread flushes the buffer every
    ``flush_interval_ms`` and as soon as the buffer reaches
    ``max_queue_size``.  If the sender fails, the batch is logged and
    dropped: delivery is best-effort with no retry.

    Implements the ``Reporter`` protocol.

    Parameters:
        sender: Transport receiving drained batches.
        flush_interval_ms: Period of the background flush.
        max_queue_size: Buffer size that triggers an early flush.
        metrics: Optional collector for sent/dropped counters.
        close_timeout_ms: Upper bound on the final flush performed by
            ``close()``; spans still unsent when it expires are dropped.
    """

    __slots__ = (
        "_buffer",
        "_close_timeout_ms",
        "_closed",
        "_flush_interval_ms",
        "_metrics",
        "_send_lock",
        "_sender",
        "_state_lock",
        "_thread",
        "_wakeup",
    )

    def __init__(
        self,
        sender: Sender,
        flush_interval_ms: int = 1000,
        max_queue_size: int = 100,
        metrics: MetricsCollector | None = None,
        close_timeout_ms: int = 5000,
    ) -> None:
        if flush_interval_ms <= 0:
            msg = f"flush_interval_ms must be positive, got {flush_interval_ms}"
            raise ValueError(msg)
        self._sender = sender
        self._flush_interval_ms = flush_interval_ms
        self._close_timeout_ms = close_timeout_ms
        self._metrics = metrics
        self._buffer = SpanBuffer(max_queue_size)
        self._send_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._wakeup = threading.Event()
        self._closed = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="tracewell-reporter-flush", daemon=True,
        )
        self._thread.start()

    @property
    def flush_interval_ms(self) -> int:
        return self._flush_interval_ms

    @property
    def sender(self) -> Sender:
        return self._sender

    @property
    def pending(self) -> int:
        """Number of spans waiting for the next flush."""
        return len(self._buffer)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def report(self, span: Span) -> None:
        """Append a span to the current batch.

        Parameters:
            span: The finished span.  Dropped with a warning if the
                reporter is closed.
        """
        with self._state_lock:
            if self._closed.is_set():
                logger.warning("Reporter closed; dropping span %s", span.span_id)
                self._count(SPANS_DROPPED, 1)
                return
            self._count(SPANS_REPORTED, 1)
            full = self._buffer.append(span)
        if full:
            self._wakeup.set()

    def flush(self) -> int:
        """Send the current batch now.

        A no-op on an empty buffer.  Sender failures are logged and the
        batch is dropped.

        Returns:
            The number of spans the sender accepted.
        """
        batch = self._buffer.drain()
        if not batch:
            return 0
        with self._send_lock:
            try:
                sent = self._sender.send(batch)
            except Exception:
                logger.exception("Failed to send batch of %d span(s); dropping", len(batch))
                self._count(SPANS_DROPPED, len(batch))
                return 0
        self._count(FLUSHES, 1)
        self._count(SPANS_SENT, sent)
        if sent < len(batch):
            self._count(SPANS_DROPPED, len(batch) - sent)
        logger.debug("Flushed %d/%d span(s)", sent, len(batch))
        return sent

    def close(self) -> None:
        """Stop the flush thread and perform one final, bounded flush.

        Idempotent.  Waiting for an in-flight flush and the final flush
        together take at most ``close_timeout_ms``; spans still unsent
        when it expires are dropped.
        """
        with self._state_lock:
            if self._closed.is_set():
                return
            self._closed.set()
        self._wakeup.set()
        deadline = time.monotonic() + self._close_timeout_ms / 1000
        self._thread.join(deadline - time.monotonic())

        final = threading.Thread(target=self.flush, name="tracewell-reporter-close", daemon=True)
        final.start()
        final.join(max(0.0, deadline - time.monotonic()))
        if final.is_alive():
            logger.warning(
                "Final flush did not complete within %d ms; remaining spans dropped",
                self._close_timeout_ms,
            )
            return
        close = getattr(self._sender, "close", None)
        if callable(close):
            close()
        logger.debug("RemoteReporter closed")

    def _run(self) -> None:
        interval = self._flush_interval_ms / 1000
        while not self._closed.is_set():
            self._wakeup.wait(interval)
            self._wakeup.clear()
            if self._closed.is_set():
                break
            self.flush()

    def _count(self, name: str, value: int) -> None:
        if self._metrics is not None and value:
            self._metrics.record(MetricPoint(name=name, value=value))

    def __enter__(self) -> RemoteReporter:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"RemoteReporter(sender={self._sender!r}, "
            f"flush_interval_ms={self._flush_interval_ms}, pending={self.pending})"
        )


class InMemoryReporter:
    """Keeps reported spans in memory for testing and debugging.

    Implements the ``Reporter`` protocol.
    """

    __slots__ = ("_lock", "_spans")

    def __init__(self) -> None:
        self._spans: list[Span] = []
        self._lock = threading.Lock()

    def report(self, span: Span) -> None:
        with self._lock:
            self._spans.append(span)

    def get_spans(self) -> list[Span]:
        """Return a copy of all reported spans."""
        with self._lock:
            return list(self._spans)

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()

    def close(self) -> None:
        """No-op; spans stay available after close."""

    def __repr__(self) -> str:
        return f"InMemoryReporter(spans={len(self._spans)})"


class LoggingReporter:
    """Logs every reported span as a JSON object.

    Implements the ``Reporter`` protocol.
    """

    __slots__ = ("_log_level",)

    def __init__(self, log_level: int = logging.INFO) -> None:
        self._log_level = log_level

    def report(self, span: Span) -> None:
        logger.log(self._log_level, span.model_dump_json())

    def close(self) -> None:
        """No-op."""


class CompositeReporter:
    """Forwards every span to several reporters.

    A failing reporter is logged and skipped; the others still receive the
    span.

    Implements the ``Reporter`` protocol.
    """

    __slots__ = ("_reporters",)

    def __init__(self, *reporters: Reporter) -> None:
        self._reporters = list(reporters)

    def report(self, span: Span) -> None:
        fire_all(self._reporters, "report", span, logger=logger)

    def close(self) -> None:
        fire_all(self._reporters, "close", logger=logger)

    def __repr__(self) -> str:
        return f"CompositeReporter({', '.join(repr(r) for r in self._reporters)})"
