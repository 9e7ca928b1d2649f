"""Built-in span senders.

Every sender implements the ``Sender`` protocol: ``send(spans)`` returns
the number of spans delivered or raises ``TransportError``.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from tracewell.exceptions import TransportError
from tracewell.models.span import Span
from tracewell.models.wire import span_to_dict

if TYPE_CHECKING:
    from tracewell.ingestion import IngestionService

logger = logging.getLogger(__name__)

__all__ = [
    "FileSender",
    "HttpSender",
    "InMemorySender",
    "LocalSender",
    "LoggingSender",
]


class LocalSender:
    """Delivers batches straight into an in-process ``IngestionService``.

    Useful for tests and single-process deployments where the collector and
    the instrumented code share an interpreter.
    """

    __slots__ = ("_service",)

    def __init__(self, service: IngestionService) -> None:
        self._service = service

    def send(self, spans: list[Span]) -> int:
        self._service.ingest(spans)
        return len(spans)

    def close(self) -> None:
        """No-op; the ingestion service outlives its senders."""

    def __repr__(self) -> str:
        return f"LocalSender({self._service!r})"


class InMemorySender:
    """Records every batch it receives.

    Provides ``get_batches()``, ``get_spans()`` and ``clear()`` helpers.
    """

    __slots__ = ("_batches", "_lock")

    def __init__(self) -> None:
        self._batches: list[list[Span]] = []
        self._lock = threading.Lock()

    def send(self, spans: list[Span]) -> int:
        with self._lock:
            self._batches.append(list(spans))
        return len(spans)

    def get_batches(self) -> list[list[Span]]:
        with self._lock:
            return [list(b) for b in self._batches]

    def get_spans(self) -> list[Span]:
        """Return every received span, flattened, in arrival order."""
        with self._lock:
            return [s for batch in self._batches for s in batch]

    def clear(self) -> None:
        with self._lock:
            self._batches.clear()

    def close(self) -> None:
        """No-op."""


class LoggingSender:
    """Emits each span as structured JSON through the logging system.

    Useful for development and debugging.
    """

    __slots__ = ("_log_level",)

    def __init__(self, log_level: int = logging.INFO) -> None:
        self._log_level = log_level

    def send(self, spans: list[Span]) -> int:
        for span in spans:
            logger.log(self._log_level, json.dumps(span_to_dict(span), default=str))
        return len(spans)

    def close(self) -> None:
        """No-op."""


class FileSender:
    """Appends spans as JSON Lines to a file on disk.

    Each call to ``send()`` appends one Jaeger-format JSON object per span.

    Parameters:
        path: The file path to write to.  Parent directories must exist.
    """

    __slots__ = ("_lock", "_path")

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def send(self, spans: list[Span]) -> int:
        try:
            with self._lock, self._path.open("a") as fh:
                for span in spans:
                    data = span_to_dict(span)
                    data["serviceName"] = span.service_name
                    fh.write(json.dumps(data, default=str))
                    fh.write("\n")
        except OSError as exc:
            msg = f"Could not write {len(spans)} span(s) to {self._path}: {exc}"
            raise TransportError(msg, dropped=len(spans)) from exc
        return len(spans)

    def close(self) -> None:
        """No-op; the file is opened per batch."""


class HttpSender:
    """POSTs batches as Jaeger JSON to a collector over HTTP.

    Spans are grouped by service into one ``{"process", "spans"}`` entry
    each.  Any HTTP or network failure is raised as ``TransportError``.

    Parameters:
        endpoint: Collector URL, e.g. ``"http://localhost:14268/api/traces"``.
        timeout: Request timeout in seconds.
        headers: Optional extra request headers.
        client: Optional pre-built ``httpx.Client`` (used in tests to inject
            a mock transport).  The sender closes it on ``close()``.
    """

    __slots__ = ("_client", "_endpoint")

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._client = client or httpx.Client(timeout=timeout, headers=headers or {})

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def send(self, spans: list[Span]) -> int:
        if not spans:
            return 0
        try:
            response = self._client.post(self._endpoint, json=_batch_payload(spans))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            msg = f"Failed to send {len(spans)} span(s) to {self._endpoint}: {exc}"
            raise TransportError(msg, dropped=len(spans)) from exc
        logger.debug("Sent %d span(s) to %s", len(spans), self._endpoint)
        return len(spans)

    def close(self) -> None:
        self._client.close()

    def __repr__(self) -> str:
        return f"HttpSender(endpoint={self._endpoint!r})"


def _batch_payload(spans: list[Span]) -> dict[str, Any]:
    """Group spans by service into the collector's JSON batch envelope."""
    by_service: dict[str, list[dict[str, Any]]] = {}
    for span in spans:
        by_service.setdefault(span.service_name, []).append(span_to_dict(span))
    return {
        "data": [
            {"process": {"serviceName": service, "tags": []}, "spans": items}
            for service, items in by_service.items()
        ]
    }
