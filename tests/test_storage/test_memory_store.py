"""Tests for InMemorySpanStore."""

from __future__ import annotations

import threading

from tracewell.protocols.storage import SpanStore
from tracewell.storage.memory_store import InMemorySpanStore
from tests.conftest import BASE_TIME, make_span

NUM_THREADS = 10
SPANS_PER_THREAD = 50


class TestPut:
    def test_protocol_compliance(self) -> None:
        assert isinstance(InMemorySpanStore(), SpanStore)

    def test_new_span_returns_true(self, store: InMemorySpanStore) -> None:
        assert store.put(make_span(), visible_at=0) is True
        assert store.span_count() == 1

    def test_identical_span_is_noop(self, store: InMemorySpanStore) -> None:
        store.put(make_span(), visible_at=0)
        assert store.put(make_span(), visible_at=0) is False
        assert store.span_count() == 1

    def test_different_content_replaces_in_place(self, store: InMemorySpanStore) -> None:
        store.put(make_span(span_id="1", operation_name="old"), visible_at=0)
        store.put(make_span(span_id="2"), visible_at=0)
        assert store.put(make_span(span_id="1", operation_name="new"), visible_at=0) is False

        spans = store.get_trace_spans("00000000000000a1", now=0)
        assert [(s.span_id, s.operation_name) for s in spans] == [("1", "new"), ("2", "op1")]

    def test_replacement_keeps_original_visibility(self, store: InMemorySpanStore) -> None:
        store.put(make_span(operation_name="old"), visible_at=10)
        store.put(make_span(operation_name="new"), visible_at=1_000)

        spans = store.get_trace_spans("00000000000000a1", now=10)
        assert [s.operation_name for s in spans] == ["new"]


class TestReads:
    def test_visibility_filter(self, store: InMemorySpanStore) -> None:
        store.put(make_span(span_id="1"), visible_at=BASE_TIME)
        store.put(make_span(span_id="2"), visible_at=BASE_TIME + 500)

        assert [s.span_id for s in store.get_trace_spans("00000000000000a1", BASE_TIME)] == ["1"]
        assert len(store.get_trace_spans("00000000000000a1", BASE_TIME + 500)) == 2

    def test_unknown_trace_is_empty(self, store: InMemorySpanStore) -> None:
        assert store.get_trace_spans("nope", BASE_TIME) == []

    def test_trace_ids_in_persistence_order(self, store: InMemorySpanStore) -> None:
        store.put(make_span(trace_id="t2"), visible_at=0)
        store.put(make_span(trace_id="t1"), visible_at=0)
        store.put(make_span(trace_id="t2", span_id="x"), visible_at=0)
        assert store.list_trace_ids() == ["t2", "t1"]

    def test_clear(self, store: InMemorySpanStore) -> None:
        store.put(make_span(), visible_at=0)
        store.clear()
        assert store.list_trace_ids() == []
        assert store.span_count() == 0


class TestThreadSafety:
    """Concurrent puts into the same trace lose nothing."""

    def test_concurrent_put(self) -> None:
        store = InMemorySpanStore()
        barrier = threading.Barrier(NUM_THREADS)
        errors: list[Exception] = []

        def worker(tid: int) -> None:
            try:
                barrier.wait()
                for i in range(SPANS_PER_THREAD):
                    store.put(make_span(span_id=f"{tid}-{i}"), visible_at=0)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(t,)) for t in range(NUM_THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert store.span_count() == NUM_THREADS * SPANS_PER_THREAD
        assert store.list_trace_ids() == ["00000000000000a1"]
