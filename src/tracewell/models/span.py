"""Span and trace models.

Timestamps and durations are integers in microseconds since the Unix epoch.
"""

from __future__ import annotations

import numbers
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

TagValue = bool | int | float | str


def values_equal(expected: Any, received: Any) -> bool:
    """Compare two tag values by the dynamic type of ``expected``.

    Numbers compare by numeric value regardless of representation
    (``1 == 1.0 == "1"``), booleans compare by boolean value only, and
    anything else falls back to string equality.  Booleans never equal
    numbers.
    """
    if isinstance(expected, bool):
        return isinstance(received, bool) and received is expected
    if isinstance(expected, numbers.Number):
        if isinstance(received, bool):
            return False
        if isinstance(received, numbers.Number):
            return float(received) == float(expected)  # type: ignore[arg-type]
        if isinstance(received, str):
            try:
                return float(received) == float(expected)  # type: ignore[arg-type]
            except ValueError:
                return False
        return False
    return isinstance(received, str) and received == str(expected)


class ReferenceType(StrEnum):
    """How a span relates to the span it references."""

    CHILD_OF = "CHILD_OF"
    FOLLOWS_FROM = "FOLLOWS_FROM"


class Tag(BaseModel):
    """A typed key/value pair attached to a span or a log record."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: TagValue

    @property
    def type(self) -> str:
        """The Jaeger type name of the value."""
        if isinstance(self.value, bool):
            return "bool"
        if isinstance(self.value, int):
            return "int64"
        if isinstance(self.value, float):
            return "float64"
        return "string"

    def matches(self, key: str, value: Any) -> bool:
        """Return ``True`` if this tag has ``key`` and a value equal to ``value``."""
        return self.key == key and values_equal(value, self.value)


class SpanLog(BaseModel):
    """A timestamped structured log record attached to a span."""

    model_config = ConfigDict(frozen=True)

    timestamp: int
    fields: list[Tag] = Field(default_factory=list)


class SpanReference(BaseModel):
    """A causal link from one span to another."""

    model_config = ConfigDict(frozen=True)

    ref_type: ReferenceType = ReferenceType.CHILD_OF
    trace_id: str
    span_id: str


class Span(BaseModel):
    """A single finished, timed operation belonging to a trace.

    Spans are produced by :meth:`ActiveSpan.finish` and are immutable from
    that point on: they are safe to share between the reporter thread, the
    sender and the store.
    """

    model_config = ConfigDict(frozen=True)

    trace_id: str = Field(min_length=1)
    span_id: str = Field(min_length=1)
    parent_span_id: str | None = None
    operation_name: str
    service_name: str
    start_time: int = Field(ge=0)
    duration: int = Field(default=0, ge=0)
    tags: list[Tag] = Field(default_factory=list)
    logs: list[SpanLog] = Field(default_factory=list)
    references: list[SpanReference] = Field(default_factory=list)
    flags: int = 1

    @property
    def end_time(self) -> int:
        """Start time plus duration, in microseconds."""
        return self.start_time + self.duration

    @property
    def is_sampled(self) -> bool:
        return bool(self.flags & 1)

    def get_tag(self, key: str) -> Tag | None:
        """Return the first tag with ``key``, or ``None``."""
        for tag in self.tags:
            if tag.key == key:
                return tag
        return None

    def has_tag(self, key: str, value: Any) -> bool:
        """Return ``True`` if any tag has ``key`` with a value equal to ``value``."""
        return any(tag.matches(key, value) for tag in self.tags)


class Trace(BaseModel):
    """The spans sharing one trace ID, in arrival order.

    A trace is never finalised; it is a query-time aggregation over the
    spans persisted so far.
    """

    model_config = ConfigDict(frozen=True)

    trace_id: str = Field(min_length=1)
    spans: list[Span] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_single_trace_id(self) -> Trace:
        for span in self.spans:
            if span.trace_id != self.trace_id:
                msg = (
                    f"Span {span.span_id} has trace_id {span.trace_id}, "
                    f"expected {self.trace_id}"
                )
                raise ValueError(msg)
        return self

    def __len__(self) -> int:
        return len(self.spans)

    @property
    def services(self) -> list[str]:
        """Distinct service names, in first-seen order."""
        return list(dict.fromkeys(span.service_name for span in self.spans))

    @property
    def operation_names(self) -> list[str]:
        """Distinct operation names, in first-seen order."""
        return list(dict.fromkeys(span.operation_name for span in self.spans))

    @property
    def root_span(self) -> Span | None:
        """The first span with no parent, or ``None`` if none has arrived yet."""
        for span in self.spans:
            if span.parent_span_id is None:
                return span
        return None

    @property
    def start_time(self) -> int | None:
        """Earliest span start time, or ``None`` for an empty trace."""
        if not self.spans:
            return None
        return min(span.start_time for span in self.spans)

    def get_span(self, span_id: str) -> Span | None:
        for span in self.spans:
            if span.span_id == span_id:
                return span
        return None
