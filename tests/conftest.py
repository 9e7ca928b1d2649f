"""Shared fixtures for tracewell tests."""

from __future__ import annotations

import time
from collections.abc import Callable

import pytest

from tracewell.config import ENV_VARS
from tracewell.ingestion import IngestionService
from tracewell.models.span import Span, Tag, TagValue
from tracewell.query.service import QueryService
from tracewell.storage.memory_store import InMemorySpanStore

BASE_TIME = 1_700_000_000_000_000


class FakeClock:
    """A manually advanced microsecond clock for visibility-delay tests."""

    def __init__(self, start: int = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance_ms(self, millis: int) -> None:
        self.now += millis * 1_000


def make_span(
    *,
    trace_id: str = "00000000000000a1",
    span_id: str = "00000000000000b1",
    parent_span_id: str | None = None,
    operation_name: str = "op1",
    service_name: str = "svc",
    start_time: int = BASE_TIME,
    duration: int = 1_000,
    tags: dict[str, TagValue] | None = None,
) -> Span:
    """Build a finished Span with sensible test defaults."""
    return Span(
        trace_id=trace_id,
        span_id=span_id,
        parent_span_id=parent_span_id,
        operation_name=operation_name,
        service_name=service_name,
        start_time=start_time,
        duration=duration,
        tags=[Tag(key=k, value=v) for k, v in (tags or {}).items()],
    )


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Spin until ``predicate`` holds or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture(autouse=True)
def _isolate_harness_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep JAEGER_* variables from the real environment out of every test."""
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    """Return a FakeClock starting at BASE_TIME."""
    return FakeClock()


@pytest.fixture
def store() -> InMemorySpanStore:
    """Return a fresh InMemorySpanStore."""
    return InMemorySpanStore()


@pytest.fixture
def ingestion(store: InMemorySpanStore, clock: FakeClock) -> IngestionService:
    """Return an IngestionService with no visibility delay on a fake clock."""
    return IngestionService(store=store, clock=clock)


@pytest.fixture
def query_service(ingestion: IngestionService) -> QueryService:
    """Return a QueryService reading the ``ingestion`` fixture's store."""
    return QueryService(ingestion)
