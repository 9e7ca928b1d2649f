"""Poll-until-visible helpers.

Spans become queryable only after the reporter's flush interval plus the
backend's processing lag.  These helpers wait out that window instead of
asserting on the first, possibly empty, response.
"""

from __future__ import annotations

import asyncio
import logging

from tracewell.models.query import Criteria
from tracewell.models.span import Trace
from tracewell.protocols.query import AsyncQueryClient, QueryClient

logger = logging.getLogger(__name__)

__all__ = ["wait_for_flush", "wait_for_traces", "wait_for_traces_sync"]

DEFAULT_MAX_WAIT_MS = 30_000
DEFAULT_POLL_INTERVAL_MS = 1_000


async def _search(client: QueryClient | AsyncQueryClient, criteria: Criteria) -> list[Trace]:
    if isinstance(client, AsyncQueryClient):
        return await client.asearch(criteria)
    return await asyncio.to_thread(client.search, criteria)


async def wait_for_traces(
    client: QueryClient | AsyncQueryClient,
    criteria: Criteria,
    min_count: int = 1,
    max_wait_ms: int = DEFAULT_MAX_WAIT_MS,
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
) -> list[Trace]:
    """Poll a query backend until enough traces are visible.

    The first search runs immediately; later ones every
    ``poll_interval_ms`` until the result holds at least ``min_count``
    traces or ``max_wait_ms`` has elapsed.  Running out of time is not an
    error: the last result is returned and the caller inspects its length.
    Cancelling the awaiting task stops polling.

    Parameters:
        client: A sync ``QueryClient`` (run in a worker thread) or an
            ``AsyncQueryClient``.
        criteria: The search predicate.
        min_count: Number of traces to wait for.
        max_wait_ms: Upper bound on the total wait.
        poll_interval_ms: Delay between searches.

    Returns:
        The last search result.

    Raises:
        InvalidQueryError: If the criteria are rejected.
        UnavailableError: If the backend cannot be reached.
    """
    if poll_interval_ms <= 0:
        msg = f"poll_interval_ms must be positive, got {poll_interval_ms}"
        raise ValueError(msg)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max(0, max_wait_ms) / 1000
    attempts = 0
    while True:
        traces = await _search(client, criteria)
        attempts += 1
        if len(traces) >= min_count:
            logger.debug(
                "Found %d trace(s) for %s after %d attempt(s)",
                len(traces), criteria.service, attempts,
            )
            return traces
        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.debug(
                "Gave up waiting for %d trace(s) for %s after %d attempt(s); found %d",
                min_count, criteria.service, attempts, len(traces),
            )
            return traces
        await asyncio.sleep(min(poll_interval_ms / 1000, remaining))


def wait_for_traces_sync(
    client: QueryClient | AsyncQueryClient,
    criteria: Criteria,
    min_count: int = 1,
    max_wait_ms: int = DEFAULT_MAX_WAIT_MS,
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
) -> list[Trace]:
    """Blocking wrapper around :func:`wait_for_traces`.

    Must not be called from a running event loop.
    """
    return asyncio.run(
        wait_for_traces(
            client,
            criteria,
            min_count=min_count,
            max_wait_ms=max_wait_ms,
            poll_interval_ms=poll_interval_ms,
        )
    )


async def wait_for_flush(flush_interval_ms: int, epsilon_ms: int = 10) -> None:
    """Sleep long enough for one reporter flush to have happened."""
    delay_ms = flush_interval_ms + epsilon_ms
    logger.debug("Waiting %d ms for flush", delay_ms)
    await asyncio.sleep(delay_ms / 1000)
