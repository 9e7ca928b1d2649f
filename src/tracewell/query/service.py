"""In-process query service over a span store."""

from __future__ import annotations

import logging

from tracewell.ingestion import IngestionService
from tracewell.models.query import Criteria
from tracewell.models.span import Trace
from tracewell.query._matching import trace_matches, validate_criteria

logger = logging.getLogger(__name__)


class QueryService:
    """Answers trace searches against the spans an ``IngestionService`` persisted.

    Only spans past their visibility time are considered, so a span
    ingested at ``t0`` shows up once ``t0 + visibility_delay`` has passed.
    Results follow persistence order of each trace's first span; callers
    must not depend on it.

    Implements the ``QueryClient`` protocol.

    Parameters:
        ingestion: The ingestion service whose store and clock are read.
    """

    __slots__ = ("_ingestion",)

    def __init__(self, ingestion: IngestionService) -> None:
        self._ingestion = ingestion

    def search(self, criteria: Criteria) -> list[Trace]:
        """Return every visible trace matching ``criteria``.

        Parameters:
            criteria: The search predicate.  ``service`` is required.

        Returns:
            Matching traces, each with all of its visible spans.  An unknown
            service yields an empty list.

        Raises:
            InvalidQueryError: If the criteria are rejected.
        """
        validate_criteria(criteria)
        store = self._ingestion.store
        now = self._ingestion.clock()
        results: list[Trace] = []
        for trace_id in store.list_trace_ids():
            spans = store.get_trace_spans(trace_id, now)
            if spans and trace_matches(spans, criteria):
                results.append(Trace(trace_id=trace_id, spans=spans))
                if criteria.limit is not None and len(results) >= criteria.limit:
                    break
        logger.debug("Search for service %s matched %d trace(s)", criteria.service, len(results))
        return results

    def get_trace(self, trace_id: str) -> Trace | None:
        """Return one trace by ID, or ``None`` if no span of it is visible yet."""
        spans = self._ingestion.store.get_trace_spans(trace_id, self._ingestion.clock())
        if not spans:
            return None
        return Trace(trace_id=trace_id, spans=spans)

    def services(self) -> list[str]:
        """Distinct service names with at least one visible span."""
        seen: dict[str, None] = {}
        for trace in self._visible_traces():
            seen.update(dict.fromkeys(trace.services))
        return sorted(seen)

    def operations(self, service: str) -> list[str]:
        """Distinct operation names recorded by ``service``."""
        seen: dict[str, None] = {}
        for trace in self._visible_traces():
            for span in trace.spans:
                if span.service_name == service:
                    seen[span.operation_name] = None
        return sorted(seen)

    def _visible_traces(self) -> list[Trace]:
        store = self._ingestion.store
        now = self._ingestion.clock()
        traces = []
        for trace_id in store.list_trace_ids():
            spans = store.get_trace_spans(trace_id, now)
            if spans:
                traces.append(Trace(trace_id=trace_id, spans=spans))
        return traces

    def __repr__(self) -> str:
        return f"QueryService(ingestion={self._ingestion!r})"
