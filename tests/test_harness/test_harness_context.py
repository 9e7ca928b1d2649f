"""Tests for HarnessContext and the tag/span assertion helpers."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from tracewell._time import now_micros
from tracewell.config import HarnessConfig
from tracewell.harness import HarnessContext, assert_tag, get_span, get_tag
from tracewell.ingestion import IngestionService
from tracewell.models.span import Tag
from tracewell.query.client import HttpQueryClient
from tracewell.query.service import QueryService
from tracewell.tracing.reporters import RemoteReporter
from tracewell.tracing.otlp import OTLPSender
from tracewell.tracing.senders import InMemorySender, LocalSender
from tests.conftest import make_span

SERVICE = "harness-svc"


@pytest.fixture
def config() -> HarnessConfig:
    return HarnessConfig(service_name=SERVICE, flush_interval_ms=100)


@pytest.fixture
def backend() -> tuple[IngestionService, QueryService]:
    ingestion = IngestionService()
    return ingestion, QueryService(ingestion)


@pytest.fixture
def ctx(
    config: HarnessConfig, backend: tuple[IngestionService, QueryService]
) -> Iterator[HarnessContext]:
    ingestion, service = backend
    context = HarnessContext(config, sender=LocalSender(ingestion), query_client=service)
    yield context
    context.close()


class TestLazyResources:
    def test_tracer_uses_remote_reporter(self, ctx: HarnessContext) -> None:
        tracer = ctx.tracer
        assert tracer is ctx.tracer
        assert tracer.service_name == SERVICE
        assert isinstance(tracer.reporter, RemoteReporter)
        assert tracer.reporter.flush_interval_ms == 100

    def test_defaults_to_http_transports(self, config: HarnessConfig) -> None:
        with HarnessContext(config) as context:
            assert isinstance(context.query_client, HttpQueryClient)
            assert context.query_client.base_url == "http://localhost:16686"
            assert isinstance(context.tracer.reporter, RemoteReporter)

    def test_default_sender_exports_otlp(self, config: HarnessConfig) -> None:
        with HarnessContext(config) as context:
            sender = context.tracer.reporter.sender
            assert isinstance(sender, OTLPSender)
            assert sender.endpoint == "http://localhost:4318"


class TestCriteria:
    def test_mark_test_start_is_in_the_past(self, ctx: HarnessContext) -> None:
        assert ctx.test_start_time is None
        before = now_micros()
        start = ctx.mark_test_start()
        assert before - 1_000 <= start <= now_micros() - 1_000
        assert ctx.test_start_time == start

    def test_criteria_defaults(self, ctx: HarnessContext) -> None:
        start = ctx.mark_test_start()
        criteria = ctx.criteria(operation="op1")
        assert criteria.service == SERVICE
        assert criteria.start == start
        assert criteria.end is None
        assert criteria.operation == "op1"

    def test_criteria_overrides(self, ctx: HarnessContext) -> None:
        criteria = ctx.criteria(service="other", start=5, end=10)
        assert (criteria.service, criteria.start, criteria.end) == ("other", 5, 10)


class TestEndToEnd:
    """Spans flow tracer -> reporter -> sender -> ingestion -> query."""

    def test_single_span_visible_after_flush(self, ctx: HarnessContext) -> None:
        ctx.mark_test_start()
        with ctx.tracer.start_span("op1") as span:
            span.set_tag("http.status_code", 200)

        traces = ctx.get_traces(min_count=1, max_wait_ms=5_000, poll_interval_ms=20)

        assert len(traces) == 1
        spans = traces[0].spans
        assert len(spans) == 1
        assert spans[0].operation_name == "op1"
        assert spans[0].service_name == SERVICE
        assert_tag(spans[0].tags, "http.status_code", 200)

    def test_parent_and_child_in_separate_batches(self, ctx: HarnessContext) -> None:
        ctx.mark_test_start()
        parent = ctx.tracer.start_span("parent")
        ctx.tracer.start_span("child", child_of=parent).finish()
        ctx.flush()
        parent.finish()
        ctx.flush()

        traces = ctx.get_traces(
            min_count=1, operation="parent", max_wait_ms=1_000, poll_interval_ms=20
        )

        assert len(traces) == 1
        assert sorted(traces[0].operation_names) == ["child", "parent"]

    def test_spans_before_test_start_excluded(self, ctx: HarnessContext) -> None:
        ctx.tracer.start_span("old", start_time=1).finish()
        ctx.flush()
        ctx.mark_test_start()

        traces = ctx.get_traces(min_count=1, max_wait_ms=50, poll_interval_ms=10)
        assert traces == []

    @pytest.mark.asyncio
    async def test_async_polling(self, ctx: HarnessContext) -> None:
        ctx.mark_test_start()
        ctx.tracer.start_span("op1").finish()
        await ctx.wait_for_flush()

        traces = await ctx.aget_traces(min_count=1, max_wait_ms=5_000, poll_interval_ms=20)
        assert len(traces) == 1

    def test_close_flushes_pending_spans(self, config: HarnessConfig) -> None:
        sender = InMemorySender()
        slow = config.model_copy(update={"flush_interval_ms": 60_000})
        context = HarnessContext(slow, sender=sender)
        context.tracer.start_span("op1").finish()
        context.close()
        assert [s.operation_name for s in sender.get_spans()] == ["op1"]


class TestAssertionHelpers:
    TAGS = [
        Tag(key="http.status_code", value=200),
        Tag(key="error", value=False),
        Tag(key="ratio", value=0.5),
        Tag(key="peer", value="db1"),
    ]

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("http.status_code", 200),
            ("http.status_code", 200.0),
            ("error", False),
            ("ratio", 0.5),
            ("peer", "db1"),
        ],
    )
    def test_assert_tag_passes(self, key: str, value: object) -> None:
        assert_tag(self.TAGS, key, value)

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("http.status_code", 500),
            ("error", True),
            ("error", 0),
            ("peer", "db2"),
            ("missing", "x"),
        ],
    )
    def test_assert_tag_fails(self, key: str, value: object) -> None:
        with pytest.raises(AssertionError, match=f"No tag '{key}'"):
            assert_tag(self.TAGS, key, value)

    def test_get_tag(self) -> None:
        tag = get_tag(self.TAGS, "peer")
        assert tag is not None
        assert tag.value == "db1"
        assert get_tag(self.TAGS, "missing") is None

    def test_get_span(self) -> None:
        spans = [
            make_span(span_id="1", operation_name="a"),
            make_span(span_id="2", operation_name="b"),
        ]
        found = get_span(spans, "b")
        assert found is not None
        assert found.span_id == "2"
        assert get_span(spans, "c") is None
