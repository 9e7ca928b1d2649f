"""Tests for QueryService search semantics."""

from __future__ import annotations

import pytest

from tracewell.exceptions import InvalidQueryError
from tracewell.ingestion import IngestionService
from tracewell.models.query import Criteria
from tracewell.protocols.query import QueryClient
from tracewell.query.service import QueryService
from tests.conftest import BASE_TIME, FakeClock, make_span


class TestMatching:
    """Which traces a Criteria selects."""

    def test_protocol_compliance(self, query_service: QueryService) -> None:
        assert isinstance(query_service, QueryClient)

    def test_service_and_operation(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest(
            [
                make_span(trace_id="t1", operation_name="op1"),
                make_span(trace_id="t2", operation_name="op2"),
                make_span(trace_id="t3", service_name="other", operation_name="op1"),
            ]
        )

        traces = query_service.search(Criteria(service="svc", operation="op1"))
        assert [t.trace_id for t in traces] == ["t1"]
        assert len(query_service.search(Criteria(service="svc"))) == 2

    def test_matched_trace_includes_all_spans(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest(
            [
                make_span(span_id="1", operation_name="op1"),
                make_span(span_id="2", parent_span_id="1", service_name="db", operation_name="q"),
            ]
        )
        (trace,) = query_service.search(Criteria(service="svc", operation="op1"))
        assert len(trace) == 2
        assert trace.services == ["svc", "db"]

    def test_operation_must_match_same_span_as_service(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest(
            [
                make_span(span_id="1", service_name="svc", operation_name="root"),
                make_span(span_id="2", service_name="db", operation_name="op1"),
            ]
        )
        assert query_service.search(Criteria(service="svc", operation="op1")) == []

    def test_unknown_service_is_empty(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest([make_span()])
        assert query_service.search(Criteria(service="nope")) == []

    def test_time_range_is_half_open(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest(
            [
                make_span(trace_id="early", start_time=BASE_TIME - 1),
                make_span(trace_id="start", start_time=BASE_TIME),
                make_span(trace_id="end", start_time=BASE_TIME + 100),
            ]
        )
        traces = query_service.search(
            Criteria(service="svc", start=BASE_TIME, end=BASE_TIME + 100)
        )
        assert [t.trace_id for t in traces] == ["start"]

    def test_open_ended_range(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest([make_span(start_time=BASE_TIME + 10**9)])
        assert len(query_service.search(Criteria(service="svc", start=BASE_TIME))) == 1

    def test_tags_match_typed_values(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest(
            [
                make_span(
                    trace_id="t1",
                    tags={"http.status_code": 200, "error": False, "peer": "db1"},
                )
            ]
        )

        def found(**tags: object) -> bool:
            return bool(query_service.search(Criteria(service="svc", tags=tags)))

        assert found(**{"http.status_code": 200})
        assert found(**{"http.status_code": 200.0})
        assert found(error=False)
        assert found(peer="db1", error=False)
        assert not found(**{"http.status_code": 500})
        assert not found(error=True)
        assert not found(error=0)
        assert not found(missing="x")

    def test_tag_may_be_on_any_span(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest(
            [
                make_span(span_id="1", operation_name="op1"),
                make_span(span_id="2", service_name="db", tags={"db.type": "sql"}),
            ]
        )
        criteria = Criteria(service="svc", operation="op1", tags={"db.type": "sql"})
        assert len(query_service.search(criteria)) == 1

    def test_duration_bounds(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest(
            [
                make_span(trace_id="fast", duration=10),
                make_span(trace_id="slow", duration=5_000),
            ]
        )
        slow = query_service.search(Criteria(service="svc", min_duration=1_000))
        fast = query_service.search(Criteria(service="svc", max_duration=10))
        assert [t.trace_id for t in slow] == ["slow"]
        assert [t.trace_id for t in fast] == ["fast"]

    def test_limit(self, ingestion: IngestionService, query_service: QueryService) -> None:
        ingestion.ingest([make_span(trace_id=f"t{i}") for i in range(5)])
        assert len(query_service.search(Criteria(service="svc", limit=2))) == 2


class TestInvalidCriteria:
    @pytest.mark.parametrize(
        "criteria",
        [
            Criteria(),
            Criteria(service=""),
            Criteria(service="svc", start=200, end=100),
            Criteria(service="svc", limit=0),
            Criteria(service="svc", min_duration=10, max_duration=5),
        ],
    )
    def test_rejected(self, query_service: QueryService, criteria: Criteria) -> None:
        with pytest.raises(InvalidQueryError):
            query_service.search(criteria)


class TestVisibility:
    def test_search_respects_visibility_delay(self, clock: FakeClock) -> None:
        ingestion = IngestionService(visibility_delay_ms=100, clock=clock)
        service = QueryService(ingestion)
        ingestion.ingest([make_span()])

        assert service.search(Criteria(service="svc")) == []
        assert service.get_trace("00000000000000a1") is None
        clock.advance_ms(100)
        assert len(service.search(Criteria(service="svc"))) == 1

    def test_spans_merge_across_batches(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest([make_span(span_id="2", parent_span_id="1")])
        ingestion.ingest([make_span(span_id="1")])

        trace = query_service.get_trace("00000000000000a1")
        assert trace is not None
        assert {s.span_id for s in trace.spans} == {"1", "2"}
        assert trace.root_span is not None
        assert trace.root_span.span_id == "1"


class TestCatalogue:
    def test_services_and_operations(
        self, ingestion: IngestionService, query_service: QueryService
    ) -> None:
        ingestion.ingest(
            [
                make_span(trace_id="t1", service_name="b", operation_name="y"),
                make_span(trace_id="t2", service_name="a", operation_name="x"),
                make_span(trace_id="t3", service_name="b", operation_name="x"),
            ]
        )
        assert query_service.services() == ["a", "b"]
        assert query_service.operations("b") == ["x", "y"]
        assert query_service.operations("missing") == []

    def test_get_unknown_trace(self, query_service: QueryService) -> None:
        assert query_service.get_trace("nope") is None
