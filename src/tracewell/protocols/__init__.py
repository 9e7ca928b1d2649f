"""Protocol definitions for tracewell's pluggable architecture."""

from .observability import MetricsCollector
from .query import AsyncQueryClient, QueryClient
from .storage import SpanStore
from .tracing import Reporter, Sampler, Sender

__all__ = [
    "AsyncQueryClient",
    "MetricsCollector",
    "QueryClient",
    "Reporter",
    "Sampler",
    "Sender",
    "SpanStore",
]
