"""Data models for spans, traces and search criteria."""

from .query import Criteria
from .span import ReferenceType, Span, SpanLog, SpanReference, Tag, TagValue, Trace, values_equal

__all__ = [
    "Criteria",
    "ReferenceType",
    "Span",
    "SpanLog",
    "SpanReference",
    "Tag",
    "TagValue",
    "Trace",
    "values_equal",
]
