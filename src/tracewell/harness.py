"""Test-harness context and assertion helpers.

``HarnessContext`` owns the tracer and query client for one test session.
Fixtures create it, hand it to tests, and close it at teardown; nothing is
held in module-level state.

Usage::

    config = HarnessConfig.from_env()
    with HarnessContext(config) as ctx:
        ctx.mark_test_start()
        with ctx.tracer.start_span("op1") as span:
            span.set_tag("http.status_code", 200)
        traces = ctx.get_traces(min_count=1)
        assert_tag(traces[0].spans[0].tags, "http.status_code", 200)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from tracewell._time import MICROS_PER_MILLI, now_micros
from tracewell.config import HarnessConfig
from tracewell.models.query import Criteria
from tracewell.models.span import Span, Tag, Trace, values_equal
from tracewell.polling import (
    DEFAULT_MAX_WAIT_MS,
    DEFAULT_POLL_INTERVAL_MS,
    wait_for_flush,
    wait_for_traces,
    wait_for_traces_sync,
)
from tracewell.protocols.query import AsyncQueryClient, QueryClient
from tracewell.protocols.tracing import Sampler, Sender
from tracewell.query.client import HttpQueryClient
from tracewell.tracing.otlp import OTLPSender
from tracewell.tracing.reporters import RemoteReporter
from tracewell.tracing.sampler import ProbabilisticSampler
from tracewell.tracing.tracer import Tracer

logger = logging.getLogger(__name__)

__all__ = ["HarnessContext", "assert_tag", "get_span", "get_tag"]

MAX_QUEUE_SIZE = 100


class HarnessContext:
    """Owns the tracer and query client used by a test session.

    Both are created lazily on first access and reused afterwards.

    Parameters:
        config: Connection and timing settings.
        sender: Transport for the tracer's reporter.  Defaults to an
            ``OTLPSender`` exporting to ``config.otlp_endpoint``.
        query_client: Query backend.  Defaults to an ``HttpQueryClient``
            on ``config.query_url``.
        sampler: Defaults to ``ProbabilisticSampler(1.0)`` so every span
            is recorded.
    """

    __slots__ = (
        "_config",
        "_owns_query_client",
        "_query_client",
        "_sampler",
        "_sender",
        "_test_start_time",
        "_tracer",
    )

    def __init__(
        self,
        config: HarnessConfig,
        sender: Sender | None = None,
        query_client: QueryClient | AsyncQueryClient | None = None,
        sampler: Sampler | None = None,
    ) -> None:
        self._config = config
        self._sender = sender
        self._sampler = sampler or ProbabilisticSampler(1.0)
        self._query_client = query_client
        self._owns_query_client = query_client is None
        self._tracer: Tracer | None = None
        self._test_start_time: int | None = None

    @property
    def config(self) -> HarnessConfig:
        return self._config

    @property
    def tracer(self) -> Tracer:
        """The session tracer, reporting through a ``RemoteReporter``."""
        if self._tracer is None:
            sender = self._sender or OTLPSender(self._config.otlp_endpoint)
            reporter = RemoteReporter(
                sender,
                flush_interval_ms=self._config.flush_interval_ms,
                max_queue_size=MAX_QUEUE_SIZE,
            )
            self._tracer = Tracer(self._config.service_name, reporter, self._sampler)
            logger.debug("Tracer details [%s]", self._config)
        return self._tracer

    @property
    def query_client(self) -> QueryClient | AsyncQueryClient:
        if self._query_client is None:
            self._query_client = HttpQueryClient(self._config.query_url)
        return self._query_client

    @property
    def test_start_time(self) -> int | None:
        """Microsecond timestamp recorded by the last :meth:`mark_test_start`."""
        return self._test_start_time

    def mark_test_start(self) -> int:
        """Record the start of a test, one millisecond in the past.

        Returns:
            The recorded start time in microseconds.
        """
        self._test_start_time = now_micros() - MICROS_PER_MILLI
        return self._test_start_time

    def criteria(
        self,
        service: str | None = None,
        start: int | None = None,
        end: int | None = None,
        **kwargs: Any,
    ) -> Criteria:
        """Build search criteria defaulting to this session's service and start time.

        Parameters:
            service: Defaults to ``config.service_name``.
            start: Microseconds; defaults to :attr:`test_start_time`.
            end: Optional exclusive upper bound in microseconds.
            **kwargs: Any other ``Criteria`` field.
        """
        return Criteria(
            service=service or self._config.service_name,
            start=start if start is not None else self._test_start_time,
            end=end,
            **kwargs,
        )

    def flush(self) -> int:
        """Force the tracer's reporter to send what it has buffered."""
        reporter = self.tracer.reporter
        if isinstance(reporter, RemoteReporter):
            return reporter.flush()
        return 0

    async def wait_for_flush(self) -> None:
        await wait_for_flush(self._config.flush_interval_ms)

    async def aget_traces(
        self,
        min_count: int = 1,
        operation: str | None = None,
        start: int | None = None,
        end: int | None = None,
        max_wait_ms: int = DEFAULT_MAX_WAIT_MS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> list[Trace]:
        """Poll until at least ``min_count`` traces of this session are visible."""
        return await wait_for_traces(
            self.query_client,
            self.criteria(start=start, end=end, operation=operation),
            min_count=min_count,
            max_wait_ms=max_wait_ms,
            poll_interval_ms=poll_interval_ms,
        )

    def get_traces(
        self,
        min_count: int = 1,
        operation: str | None = None,
        start: int | None = None,
        end: int | None = None,
        max_wait_ms: int = DEFAULT_MAX_WAIT_MS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> list[Trace]:
        """Blocking form of :meth:`aget_traces`."""
        return wait_for_traces_sync(
            self.query_client,
            self.criteria(start=start, end=end, operation=operation),
            min_count=min_count,
            max_wait_ms=max_wait_ms,
            poll_interval_ms=poll_interval_ms,
        )

    def close(self) -> None:
        """Close the tracer (final flush) and any query client this context created."""
        if self._tracer is not None:
            self._tracer.close()
        if self._owns_query_client and isinstance(self._query_client, HttpQueryClient):
            self._query_client.close()

    def __enter__(self) -> HarnessContext:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def get_tag(tags: Iterable[Tag], key: str) -> Tag | None:
    """Return the first tag with ``key``, or ``None``."""
    for tag in tags:
        if tag.key == key:
            return tag
    return None


def get_span(spans: Iterable[Span], operation_name: str) -> Span | None:
    """Return the first span named ``operation_name``, or ``None``."""
    for span in spans:
        if span.operation_name == operation_name:
            return span
    return None


def assert_tag(tags: Iterable[Tag], key: str, value: Any) -> None:
    """Assert that some tag has ``key`` and a value equal to ``value``.

    Values compare by the dynamic type of ``value``: numbers by numeric
    value, booleans by boolean value, anything else as strings.

    Raises:
        AssertionError: If no tag matches.
    """
    tags = list(tags)
    for tag in tags:
        if tag.key == key and values_equal(value, tag.value):
            return
    received = [t.value for t in tags if t.key == key]
    msg = f"No tag {key!r} equal to {value!r}; found {received!r}"
    raise AssertionError(msg)
