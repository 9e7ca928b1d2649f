"""Criteria validation and matching shared by query backends.

:class:`QueryService` delegates its filtering to the functions in this
module so that alternative ``SpanStore``-backed services apply exactly the
same rules.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from tracewell.exceptions import InvalidQueryError

if TYPE_CHECKING:
    from tracewell.models.query import Criteria
    from tracewell.models.span import Span


def validate_criteria(criteria: Criteria) -> None:
    """Reject criteria no backend can answer.

    Raises:
        InvalidQueryError: If the service is missing, the time range or
            duration range is inverted, or the limit is not positive.
    """
    if not criteria.service:
        msg = "Criteria must name a service"
        raise InvalidQueryError(msg)
    if criteria.start is not None and criteria.end is not None and criteria.start > criteria.end:
        msg = f"start ({criteria.start}) is after end ({criteria.end})"
        raise InvalidQueryError(msg)
    if criteria.limit is not None and criteria.limit <= 0:
        msg = f"limit must be positive, got {criteria.limit}"
        raise InvalidQueryError(msg)
    if (
        criteria.min_duration is not None
        and criteria.max_duration is not None
        and criteria.min_duration > criteria.max_duration
    ):
        msg = (
            f"min_duration ({criteria.min_duration}) is greater than "
            f"max_duration ({criteria.max_duration})"
        )
        raise InvalidQueryError(msg)


def in_time_range(start_time: int, start: int | None, end: int | None) -> bool:
    """Check ``start_time`` against the half-open range ``[start, end)``."""
    if start is not None and start_time < start:
        return False
    return not (end is not None and start_time >= end)


def span_matches(span: Span, criteria: Criteria) -> bool:
    """Check whether a single span passes the per-span filters.

    Service, time range, operation and duration bounds must all hold on the
    same span.  Tag filters are trace-level and checked separately.
    """
    if span.service_name != criteria.service:
        return False
    if not in_time_range(span.start_time, criteria.start, criteria.end):
        return False
    if criteria.operation is not None and span.operation_name != criteria.operation:
        return False
    if criteria.min_duration is not None and span.duration < criteria.min_duration:
        return False
    return not (criteria.max_duration is not None and span.duration > criteria.max_duration)


def trace_matches(spans: Sequence[Span], criteria: Criteria) -> bool:
    """Check whether a trace's spans satisfy the criteria.

    A trace matches when at least one span passes :func:`span_matches` and,
    for every tag filter, at least one span (any span of the trace) carries
    an equal tag.
    """
    if not any(span_matches(span, criteria) for span in spans):
        return False
    return all(
        any(span.has_tag(key, value) for span in spans)
        for key, value in criteria.tags.items()
    )
