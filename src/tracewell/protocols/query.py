"""Query-side protocols."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tracewell.models.query import Criteria
    from tracewell.models.span import Trace


@runtime_checkable
class QueryClient(Protocol):
    """Answers trace searches.

    Implemented in-process by ``QueryService`` and over HTTP by
    ``HttpQueryClient``.
    """

    def search(self, criteria: Criteria) -> list[Trace]:
        """Return the traces matching ``criteria``.

        Raises:
            InvalidQueryError: If the criteria are rejected.
            UnavailableError: If the backend cannot be reached.
        """
        ...

    def get_trace(self, trace_id: str) -> Trace | None:
        """Return one trace by ID, or ``None`` if it is not (yet) visible."""
        ...


@runtime_checkable
class AsyncQueryClient(Protocol):
    """Async counterpart of :class:`QueryClient`."""

    async def asearch(self, criteria: Criteria) -> list[Trace]:
        ...

    async def aget_trace(self, trace_id: str) -> Trace | None:
        ...
