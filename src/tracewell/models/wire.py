"""Jaeger query-API JSON mapping.

Converts between tracewell models and the JSON documents served by
``GET /api/traces`` and ``GET /api/traces/{trace_id}``::

    {"data": [{"traceID": "...", "spans": [...], "processes": {...}}]}

Only the JSON query surface is handled here; the agent's UDP/Thrift
encoding is out of scope.
"""

from __future__ import annotations

from typing import Any

from tracewell.models.span import ReferenceType, Span, SpanLog, SpanReference, Tag, Trace

__all__ = [
    "span_from_dict",
    "span_to_dict",
    "trace_from_dict",
    "trace_to_dict",
    "traces_from_response",
    "traces_to_response",
]


def _tag_to_dict(tag: Tag) -> dict[str, Any]:
    return {"key": tag.key, "type": tag.type, "value": tag.value}


def _tag_from_dict(data: dict[str, Any]) -> Tag:
    value = data.get("value")
    tag_type = data.get("type", "string")
    # The query API renders int64 values as strings when they overflow JS numbers
    if tag_type == "int64" and isinstance(value, str):
        value = int(value)
    elif tag_type == "float64" and isinstance(value, str):
        value = float(value)
    elif tag_type == "bool" and isinstance(value, str):
        value = value.lower() == "true"
    elif tag_type in ("string", "binary") and not isinstance(value, str):
        value = str(value)
    return Tag(key=data["key"], value=value)


def span_to_dict(span: Span, process_id: str = "p1") -> dict[str, Any]:
    """Convert a span to its Jaeger JSON form.

    Parameters:
        span: The span to convert.
        process_id: Key of the span's process in the trace's ``processes`` map.

    Returns:
        A JSON-serialisable dictionary.
    """
    return {
        "traceID": span.trace_id,
        "spanID": span.span_id,
        "operationName": span.operation_name,
        "references": [
            {"refType": ref.ref_type.value, "traceID": ref.trace_id, "spanID": ref.span_id}
            for ref in span.references
        ],
        "flags": span.flags,
        "startTime": span.start_time,
        "duration": span.duration,
        "tags": [_tag_to_dict(tag) for tag in span.tags],
        "logs": [
            {"timestamp": log.timestamp, "fields": [_tag_to_dict(f) for f in log.fields]}
            for log in span.logs
        ],
        "processID": process_id,
    }


def span_from_dict(data: dict[str, Any], service_name: str) -> Span:
    """Build a span from its Jaeger JSON form.

    Parameters:
        data: A single element of a trace's ``spans`` array.
        service_name: The service resolved from the trace's process map.

    Returns:
        The parsed ``Span``.  The parent is taken from the first
        ``CHILD_OF`` reference.
    """
    references = [
        SpanReference(
            ref_type=ReferenceType(ref.get("refType", "CHILD_OF")),
            trace_id=ref["traceID"],
            span_id=ref["spanID"],
        )
        for ref in data.get("references") or []
    ]
    parent = next(
        (ref.span_id for ref in references if ref.ref_type is ReferenceType.CHILD_OF),
        None,
    )
    return Span(
        trace_id=data["traceID"],
        span_id=data["spanID"],
        parent_span_id=parent,
        operation_name=data["operationName"],
        service_name=service_name,
        start_time=int(data["startTime"]),
        duration=int(data.get("duration", 0)),
        tags=[_tag_from_dict(t) for t in data.get("tags") or []],
        logs=[
            SpanLog(
                timestamp=int(log["timestamp"]),
                fields=[_tag_from_dict(f) for f in log.get("fields") or []],
            )
            for log in data.get("logs") or []
        ],
        references=references,
        flags=int(data.get("flags", 1)),
    )


def trace_to_dict(trace: Trace) -> dict[str, Any]:
    """Convert a trace to its Jaeger JSON form, one process per service."""
    process_ids: dict[str, str] = {}
    for service in trace.services:
        process_ids[service] = f"p{len(process_ids) + 1}"
    return {
        "traceID": trace.trace_id,
        "spans": [span_to_dict(s, process_ids[s.service_name]) for s in trace.spans],
        "processes": {
            pid: {"serviceName": service, "tags": []} for service, pid in process_ids.items()
        },
        "warnings": None,
    }


def trace_from_dict(data: dict[str, Any]) -> Trace:
    """Build a trace from its Jaeger JSON form."""
    processes = data.get("processes") or {}
    spans: list[Span] = []
    for raw in data.get("spans") or []:
        process = processes.get(raw.get("processID"), {})
        spans.append(span_from_dict(raw, process.get("serviceName", "")))
    return Trace(trace_id=data["traceID"], spans=spans)


def traces_to_response(traces: list[Trace]) -> dict[str, Any]:
    """Wrap traces in the query API's response envelope."""
    return {
        "data": [trace_to_dict(t) for t in traces],
        "total": len(traces),
        "limit": 0,
        "offset": 0,
        "errors": None,
    }


def traces_from_response(payload: dict[str, Any]) -> list[Trace]:
    """Unwrap the traces from a query API response envelope."""
    return [trace_from_dict(item) for item in payload.get("data") or []]
