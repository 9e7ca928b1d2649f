"""Tests for the Jaeger query-API JSON mapping."""

from __future__ import annotations

import pytest

from tracewell.models.span import ReferenceType, SpanLog, SpanReference, Tag, Trace
from tracewell.models.wire import (
    span_to_dict,
    trace_from_dict,
    trace_to_dict,
    traces_from_response,
    traces_to_response,
)
from tests.conftest import make_span


def _sample_trace() -> Trace:
    root = make_span(trace_id="t1", span_id="s1", service_name="frontend", tags={"n": 1})
    child = make_span(
        trace_id="t1",
        span_id="s2",
        parent_span_id="s1",
        service_name="backend",
        operation_name="db",
        tags={"error": True, "ratio": 0.5, "component": "sql"},
    ).model_copy(
        update={
            "references": [SpanReference(trace_id="t1", span_id="s1")],
            "logs": [SpanLog(timestamp=5, fields=[Tag(key="event", value="retry")])],
        }
    )
    return Trace(trace_id="t1", spans=[root, child])


class TestTraceMapping:
    """Converting traces to and from the query API's JSON."""

    def test_processes_one_per_service(self) -> None:
        data = trace_to_dict(_sample_trace())
        services = {p["serviceName"] for p in data["processes"].values()}
        assert services == {"frontend", "backend"}
        assert data["spans"][0]["processID"] != data["spans"][1]["processID"]

    def test_round_trip_preserves_spans(self) -> None:
        trace = _sample_trace()
        parsed = trace_from_dict(trace_to_dict(trace))
        assert parsed == trace

    def test_tag_types_rendered(self) -> None:
        child = _sample_trace().spans[1]
        tags = {t["key"]: t for t in span_to_dict(child)["tags"]}
        assert tags["error"]["type"] == "bool"
        assert tags["ratio"]["type"] == "float64"
        assert tags["component"]["type"] == "string"

    def test_parent_from_child_of_reference(self) -> None:
        data = {
            "traceID": "t1",
            "processes": {"p1": {"serviceName": "svc"}},
            "spans": [
                {
                    "traceID": "t1",
                    "spanID": "s2",
                    "operationName": "op",
                    "startTime": 10,
                    "duration": 3,
                    "processID": "p1",
                    "references": [
                        {"refType": "FOLLOWS_FROM", "traceID": "t1", "spanID": "s0"},
                        {"refType": "CHILD_OF", "traceID": "t1", "spanID": "s1"},
                    ],
                }
            ],
        }
        span = trace_from_dict(data).spans[0]
        assert span.parent_span_id == "s1"
        assert span.references[0].ref_type is ReferenceType.FOLLOWS_FROM
        assert span.service_name == "svc"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ({"key": "k", "type": "int64", "value": "9007199254740993"}, 9007199254740993),
            ({"key": "k", "type": "float64", "value": "1.5"}, 1.5),
            ({"key": "k", "type": "bool", "value": "true"}, True),
            ({"key": "k", "type": "string", "value": 12}, "12"),
        ],
    )
    def test_stringified_values_restored(self, raw: dict, expected: object) -> None:
        data = {
            "traceID": "t1",
            "processes": {"p1": {"serviceName": "svc"}},
            "spans": [
                {
                    "traceID": "t1",
                    "spanID": "s1",
                    "operationName": "op",
                    "startTime": 0,
                    "processID": "p1",
                    "tags": [raw],
                }
            ],
        }
        tag = trace_from_dict(data).spans[0].tags[0]
        assert tag.value == expected
        assert type(tag.value) is type(expected)


class TestResponseEnvelope:
    """The ``{"data": [...]}`` wrapper."""

    def test_wrap_and_unwrap(self) -> None:
        payload = traces_to_response([_sample_trace()])
        assert payload["total"] == 1
        assert traces_from_response(payload)[0].trace_id == "t1"

    def test_null_data_is_empty(self) -> None:
        assert traces_from_response({"data": None}) == []
