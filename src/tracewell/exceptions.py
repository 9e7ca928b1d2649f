"""Custom exceptions for tracewell."""

from __future__ import annotations

__all__ = [
    "InvalidQueryError",
    "QueryError",
    "TracewellError",
    "TransportError",
    "UnavailableError",
]


class TracewellError(Exception):
    """Base exception for all tracewell errors."""


class TransportError(TracewellError):
    """Raised by a sender when a batch could not be delivered.

    Reporters catch this, log it and drop the batch.  It never reaches the
    code that records spans.
    """

    def __init__(self, message: str, dropped: int = 0) -> None:
        super().__init__(message)
        self.dropped = dropped


class QueryError(TracewellError):
    """Base class for errors surfaced by the query path."""


class InvalidQueryError(QueryError):
    """Raised when search criteria are rejected (e.g. missing service name)."""


class UnavailableError(QueryError):
    """Raised when the query backend cannot be reached.

    Transient; callers may retry.
    """
