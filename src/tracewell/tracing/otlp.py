"""OTLP sender.

Exports tracewell spans to an OpenTelemetry collector (Jaeger accepts
OTLP/HTTP on port 4318).  Spans keep their trace and span IDs, so a trace
recorded here can be fetched from the backend by the same ``trace_id``.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import Event, ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import SpanContext, TraceFlags

from tracewell.exceptions import TransportError
from tracewell.models.span import Span

logger = logging.getLogger(__name__)

__all__ = ["OTLPSender"]

_NANOS_PER_MICRO = 1_000
_SCOPE = InstrumentationScope("tracewell")


def otel_id(value: str, bits: int) -> int:
    """Map a tracewell ID onto an OpenTelemetry integer ID.

    Hex IDs (what ``Tracer`` generates) keep their value.  Anything else is
    hashed so that equal IDs still map to equal integers.
    """
    try:
        number = int(value, 16)
    except ValueError:
        number = 0
    if 0 < number < 1 << bits:
        return number
    digest = hashlib.sha256(value.encode()).digest()
    return int.from_bytes(digest[: bits // 8], "big") or 1


def _convert_span(span: Span) -> dict[str, Any]:
    """Convert a tracewell span to the data an OTel ``ReadableSpan`` needs.

    Parameters:
        span: The span to convert.

    Returns:
        A dictionary with ``name``, ``trace_id``, ``span_id``,
        ``parent_span_id``, ``start_time_ns``, ``end_time_ns``,
        ``attributes`` and ``events``.
    """
    attributes: dict[str, Any] = {tag.key: tag.value for tag in span.tags}
    attributes["tracewell.trace_id"] = span.trace_id
    attributes["tracewell.span_id"] = span.span_id
    if span.parent_span_id is not None:
        attributes["tracewell.parent_span_id"] = span.parent_span_id
    attributes["service.name"] = span.service_name
    return {
        "name": span.operation_name,
        "trace_id": otel_id(span.trace_id, 128),
        "span_id": otel_id(span.span_id, 64),
        "parent_span_id": (
            otel_id(span.parent_span_id, 64) if span.parent_span_id is not None else None
        ),
        "start_time_ns": span.start_time * _NANOS_PER_MICRO,
        "end_time_ns": span.end_time * _NANOS_PER_MICRO,
        "attributes": attributes,
        "events": [
            (
                log.timestamp * _NANOS_PER_MICRO,
                {field.key: field.value for field in log.fields},
            )
            for log in span.logs
        ],
    }


class OTLPSender:
    """Send spans to an OpenTelemetry collector via OTLP/HTTP.

    Each batch is exported in one request.  An export the collector does
    not accept raises ``TransportError`` so the reporter counts the batch
    as dropped.

    Implements the ``Sender`` protocol.

    Parameters:
        endpoint: OTLP collector root URL.  Default ``"http://localhost:4318"``.
        headers: Optional headers dict for authentication.
        timeout: Upper bound in seconds on one export, retries included.
        exporter: Pre-built span exporter; replaces the OTLP/HTTP one.
    """

    __slots__ = ("_endpoint", "_exporter", "_resources")

    def __init__(
        self,
        endpoint: str = "http://localhost:4318",
        headers: dict[str, str] | None = None,
        timeout: float = 5.0,
        exporter: SpanExporter | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._exporter = exporter or OTLPSpanExporter(
            endpoint=f"{self._endpoint}/v1/traces",
            headers=headers or {},
            timeout=timeout,
        )
        self._resources: dict[str, Resource] = {}

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _resource(self, service_name: str) -> Resource:
        resource = self._resources.get(service_name)
        if resource is None:
            resource = Resource.create({"service.name": service_name})
            self._resources[service_name] = resource
        return resource

    def _readable(self, span: Span) -> ReadableSpan:
        converted = _convert_span(span)
        flags = TraceFlags(TraceFlags.SAMPLED if span.is_sampled else TraceFlags.DEFAULT)
        parent = None
        if converted["parent_span_id"] is not None:
            parent = SpanContext(
                converted["trace_id"], converted["parent_span_id"], is_remote=True,
                trace_flags=flags,
            )
        return ReadableSpan(
            name=converted["name"],
            context=SpanContext(
                converted["trace_id"], converted["span_id"], is_remote=False, trace_flags=flags
            ),
            parent=parent,
            resource=self._resource(span.service_name),
            attributes=converted["attributes"],
            events=[
                Event("log", attributes=fields, timestamp=ts)
                for ts, fields in converted["events"]
            ],
            start_time=converted["start_time_ns"],
            end_time=converted["end_time_ns"],
            instrumentation_scope=_SCOPE,
        )

    def send(self, spans: list[Span]) -> int:
        """Export one batch.

        Returns:
            The number of spans exported.

        Raises:
            TransportError: If the exporter fails or reports failure.
        """
        if not spans:
            return 0
        batch = [self._readable(span) for span in spans]
        try:
            result = self._exporter.export(batch)
        except Exception as exc:
            msg = f"OTLP export of {len(spans)} span(s) to {self._endpoint} failed: {exc}"
            raise TransportError(msg, dropped=len(spans)) from exc
        if result is not SpanExportResult.SUCCESS:
            msg = f"OTLP export of {len(spans)} span(s) to {self._endpoint} was rejected"
            raise TransportError(msg, dropped=len(spans))
        logger.debug("Exported %d span(s) via OTLP", len(spans))
        return len(spans)

    def close(self) -> None:
        """Shut down the exporter."""
        self._exporter.shutdown()

    def __repr__(self) -> str:
        return f"OTLPSender(endpoint={self._endpoint!r})"
