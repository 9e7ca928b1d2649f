"""Span-creation API.

The ``Tracer`` assigns trace and span IDs, asks its ``Sampler`` whether a
new trace is recorded and hands finished spans to its ``Reporter``.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

from tracewell._time import generate_id, now_micros
from tracewell.models.span import ReferenceType, Span, SpanLog, SpanReference, Tag, TagValue
from tracewell.protocols.tracing import Reporter, Sampler
from tracewell.tracing.sampler import ProbabilisticSampler

logger = logging.getLogger(__name__)

__all__ = ["ActiveSpan", "Tracer"]


class ActiveSpan:
    """A span that is still being recorded.

    Owned by the call stack that started it.  Tags and logs may be added
    until ``finish()`` turns it into an immutable ``Span``; later mutations
    are ignored with a warning.

    Can be used as a context manager; an exception escaping the block tags
    the span with ``error=True`` and logs the exception type and message.
    """

    __slots__ = (
        "_finished",
        "_logs",
        "_operation_name",
        "_parent_span_id",
        "_sampled",
        "_span_id",
        "_start_time",
        "_tags",
        "_trace_id",
        "_tracer",
    )

    def __init__(
        self,
        tracer: Tracer,
        trace_id: str,
        span_id: str,
        parent_span_id: str | None,
        operation_name: str,
        start_time: int,
        sampled: bool,
        tags: dict[str, TagValue] | None = None,
    ) -> None:
        self._tracer = tracer
        self._trace_id = trace_id
        self._span_id = span_id
        self._parent_span_id = parent_span_id
        self._operation_name = operation_name
        self._start_time = start_time
        self._sampled = sampled
        self._tags: dict[str, TagValue] = dict(tags or {})
        self._logs: list[SpanLog] = []
        self._finished: Span | None = None

    @property
    def trace_id(self) -> str:
        return self._trace_id

    @property
    def span_id(self) -> str:
        return self._span_id

    @property
    def parent_span_id(self) -> str | None:
        return self._parent_span_id

    @property
    def sampled(self) -> bool:
        return self._sampled

    @property
    def is_finished(self) -> bool:
        return self._finished is not None

    def set_operation_name(self, name: str) -> ActiveSpan:
        if self._check_mutable("set_operation_name"):
            self._operation_name = name
        return self

    def set_tag(self, key: str, value: TagValue) -> ActiveSpan:
        """Set a tag, replacing any earlier value for ``key``."""
        if self._check_mutable("set_tag"):
            self._tags[key] = value
        return self

    def log(self, timestamp: int | None = None, **fields: TagValue) -> ActiveSpan:
        """Attach a structured log record.

        Parameters:
            timestamp: Microseconds since the epoch; defaults to now.
            **fields: The record's key/value fields.
        """
        if self._check_mutable("log"):
            self._logs.append(
                SpanLog(
                    timestamp=timestamp if timestamp is not None else now_micros(),
                    fields=[Tag(key=k, value=v) for k, v in fields.items()],
                )
            )
        return self

    def finish(self, finish_time: int | None = None) -> Span:
        """Freeze the span and report it if its trace is sampled.

        Idempotent: a second call returns the span produced by the first.

        Parameters:
            finish_time: Microseconds since the epoch; defaults to now.

        Returns:
            The immutable ``Span``.
        """
        if self._finished is not None:
            return self._finished
        end = finish_time if finish_time is not None else now_micros()
        references = []
        if self._parent_span_id is not None:
            references.append(
                SpanReference(
                    ref_type=ReferenceType.CHILD_OF,
                    trace_id=self._trace_id,
                    span_id=self._parent_span_id,
                )
            )
        span = Span(
            trace_id=self._trace_id,
            span_id=self._span_id,
            parent_span_id=self._parent_span_id,
            operation_name=self._operation_name,
            service_name=self._tracer.service_name,
            start_time=self._start_time,
            duration=max(0, end - self._start_time),
            tags=[Tag(key=k, value=v) for k, v in self._tags.items()],
            logs=list(self._logs),
            references=references,
            flags=1 if self._sampled else 0,
        )
        self._finished = span
        if self._sampled:
            self._tracer._report(span)
        return span

    def _check_mutable(self, action: str) -> bool:
        if self._finished is None:
            return True
        logger.warning("Ignoring %s on finished span %s", action, self._span_id)
        return False

    def __enter__(self) -> ActiveSpan:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.set_tag("error", True)
            self.log(event="error", **{"error.kind": exc_type.__name__, "message": str(exc)})
        self.finish()

    def __repr__(self) -> str:
        return (
            f"ActiveSpan(operation={self._operation_name!r}, trace_id={self._trace_id}, "
            f"span_id={self._span_id}, finished={self.is_finished})"
        )


class Tracer:
    """Creates spans for one service and routes finished ones to a reporter.

    Parameters:
        service_name: Name recorded on every span.
        reporter: Receives finished, sampled spans.
        sampler: Decides per trace whether spans are recorded.  Defaults to
            ``ProbabilisticSampler(1.0)`` (record everything).
        tags: Tracer-level tags added to every span.
    """

    __slots__ = ("_closed", "_reporter", "_sampler", "_service_name", "_tags")

    def __init__(
        self,
        service_name: str,
        reporter: Reporter,
        sampler: Sampler | None = None,
        tags: dict[str, TagValue] | None = None,
    ) -> None:
        if not service_name:
            msg = "service_name must be a non-empty string"
            raise ValueError(msg)
        self._service_name = service_name
        self._reporter = reporter
        self._sampler = sampler or ProbabilisticSampler(1.0)
        self._tags: dict[str, TagValue] = dict(tags or {})
        self._closed = False

    @property
    def service_name(self) -> str:
        return self._service_name

    @property
    def reporter(self) -> Reporter:
        return self._reporter

    @property
    def sampler(self) -> Sampler:
        return self._sampler

    def start_span(
        self,
        operation_name: str,
        child_of: ActiveSpan | Span | None = None,
        tags: dict[str, TagValue] | None = None,
        start_time: int | None = None,
    ) -> ActiveSpan:
        """Start recording a span.

        Parameters:
            operation_name: Name of the operation.
            child_of: Parent span.  Children inherit the parent's trace ID
                and sampling decision; without a parent a new trace starts.
            tags: Initial tags.
            start_time: Microseconds since the epoch; defaults to now.

        Returns:
            The new ``ActiveSpan``.
        """
        initial: dict[str, Any] = dict(self._tags)
        if child_of is None:
            trace_id = generate_id()
            parent_span_id = None
            sampled = self._sampler.is_sampled(trace_id)
            if sampled:
                initial.update(self._sampler.tags)
        else:
            trace_id = child_of.trace_id
            parent_span_id = child_of.span_id
            sampled = child_of.sampled if isinstance(child_of, ActiveSpan) else child_of.is_sampled
        if tags:
            initial.update(tags)

        span = ActiveSpan(
            tracer=self,
            trace_id=trace_id,
            span_id=generate_id(),
            parent_span_id=parent_span_id,
            operation_name=operation_name,
            start_time=start_time if start_time is not None else now_micros(),
            sampled=sampled,
            tags=initial,
        )
        logger.debug("Started span %s (%s) in trace %s", span.span_id, operation_name, trace_id)
        return span

    def _report(self, span: Span) -> None:
        if self._closed:
            logger.warning("Tracer closed; dropping span %s", span.span_id)
            return
        try:
            self._reporter.report(span)
        except Exception:
            logger.warning("Reporter failed for span %s", span.span_id, exc_info=True)

    def close(self) -> None:
        """Close the reporter, flushing pending spans.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._reporter.close()
        logger.debug("Tracer for %s closed", self._service_name)

    def __enter__(self) -> Tracer:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Tracer(service_name={self._service_name!r}, "
            f"sampler={self._sampler!r}, reporter={self._reporter!r})"
        )
