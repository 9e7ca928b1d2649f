"""HTTP clients for a Jaeger-style query service.

Consumes ``GET /api/traces`` and ``GET /api/traces/{trace_id}`` and maps
transport and HTTP failures onto tracewell's query error taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tracewell.exceptions import InvalidQueryError, QueryError, UnavailableError
from tracewell.models.query import Criteria
from tracewell.models.span import Trace
from tracewell.models.wire import traces_from_response

logger = logging.getLogger(__name__)

__all__ = ["AsyncHttpQueryClient", "HttpQueryClient"]

_TRACES_PATH = "/api/traces"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    errors = body.get("errors") if isinstance(body, dict) else None
    if errors:
        return "; ".join(str(e.get("msg", e)) if isinstance(e, dict) else str(e) for e in errors)
    return response.text or response.reason_phrase


def _check_response(response: httpx.Response) -> Any:
    """Map an HTTP response to its JSON body or a typed query error."""
    status = response.status_code
    if status == 400:
        raise InvalidQueryError(_error_message(response))
    if status >= 500:
        msg = f"Query service returned {status}: {_error_message(response)}"
        raise UnavailableError(msg)
    if status >= 400:
        msg = f"Query service returned {status}: {_error_message(response)}"
        raise QueryError(msg)
    try:
        return response.json()
    except ValueError as exc:
        msg = f"Query service returned invalid JSON: {exc}"
        raise QueryError(msg) from exc


def _require_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        msg = f"Query service returned {type(payload).__name__}, expected a JSON object"
        raise QueryError(msg)
    return payload


def _parse_traces(payload: Any) -> list[Trace]:
    """Decode a traces envelope, reporting any shape mismatch as ``QueryError``."""
    try:
        return traces_from_response(_require_object(payload))
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        msg = f"Query service returned malformed traces: {exc!r}"
        raise QueryError(msg) from exc


class HttpQueryClient:
    """Synchronous client for the query HTTP surface.

    Implements the ``QueryClient`` protocol.

    Parameters:
        base_url: Query service root, e.g. ``"http://localhost:16686"``.
        timeout: Request timeout in seconds.
        client: Optional pre-built ``httpx.Client`` (used in tests to inject
            a mock transport).  Requests use absolute URLs, so the client's
            own ``base_url`` is left untouched.
    """

    __slots__ = ("_base_url", "_client")

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    def search(self, criteria: Criteria) -> list[Trace]:
        """Search traces.

        Raises:
            InvalidQueryError: If the criteria lack a service or the server
                rejects them.
            UnavailableError: If the server cannot be reached or fails.
        """
        if not criteria.service:
            msg = "Criteria must name a service"
            raise InvalidQueryError(msg)
        payload = _check_response(self._get(_TRACES_PATH, params=criteria.to_params()))
        traces = _parse_traces(payload)
        logger.debug("Search for service %s returned %d trace(s)", criteria.service, len(traces))
        return traces

    def get_trace(self, trace_id: str) -> Trace | None:
        response = self._get(f"{_TRACES_PATH}/{trace_id}")
        if response.status_code == 404:
            return None
        traces = _parse_traces(_check_response(response))
        return traces[0] if traces else None

    def services(self) -> list[str]:
        payload = _require_object(_check_response(self._get("/api/services")))
        return list(payload.get("data") or [])

    def operations(self, service: str) -> list[str]:
        payload = _require_object(
            _check_response(self._get(f"/api/services/{service}/operations"))
        )
        return list(payload.get("data") or [])

    def _get(self, path: str, params: list[tuple[str, str]] | None = None) -> httpx.Response:
        try:
            return self._client.get(f"{self._base_url}{path}", params=params)
        except httpx.TransportError as exc:
            msg = f"Query service at {self._base_url} is unreachable: {exc}"
            raise UnavailableError(msg) from exc

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpQueryClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"HttpQueryClient(base_url={self._base_url!r})"


class AsyncHttpQueryClient:
    """Async client for the query HTTP surface.

    Implements the ``AsyncQueryClient`` protocol.

    Parameters:
        base_url: Query service root, e.g. ``"http://localhost:16686"``.
        timeout: Request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient``.
    """

    __slots__ = ("_base_url", "_client")

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def asearch(self, criteria: Criteria) -> list[Trace]:
        if not criteria.service:
            msg = "Criteria must name a service"
            raise InvalidQueryError(msg)
        response = await self._get(_TRACES_PATH, params=criteria.to_params())
        return _parse_traces(_check_response(response))

    async def aget_trace(self, trace_id: str) -> Trace | None:
        response = await self._get(f"{_TRACES_PATH}/{trace_id}")
        if response.status_code == 404:
            return None
        traces = _parse_traces(_check_response(response))
        return traces[0] if traces else None

    async def _get(
        self, path: str, params: list[tuple[str, str]] | None = None
    ) -> httpx.Response:
        try:
            return await self._client.get(f"{self._base_url}{path}", params=params)
        except httpx.TransportError as exc:
            msg = f"Query service at {self._base_url} is unreachable: {exc}"
            raise UnavailableError(msg) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpQueryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"AsyncHttpQueryClient(base_url={self._base_url!r})"
