"""tracewell: trace ingestion, query and integration-test harness.

Recording:
    Tracer, ActiveSpan, ProbabilisticSampler, ConstSampler,
    RemoteReporter, InMemoryReporter, LoggingReporter, CompositeReporter,
    SpanBuffer

Senders:
    HttpSender, LocalSender, InMemorySender, FileSender, LoggingSender,
    OTLPSender

Ingestion & Query:
    IngestionService, QueryService, HttpQueryClient, AsyncHttpQueryClient,
    InMemorySpanStore

Harness:
    HarnessConfig, HarnessContext, wait_for_traces, wait_for_traces_sync,
    wait_for_flush, assert_tag, get_tag, get_span

Models:
    Span, Trace, Tag, SpanLog, SpanReference, ReferenceType, Criteria

Metrics:
    MetricPoint, InMemoryMetricsCollector, LoggingMetricsCollector

Protocols (extension points):
    Sampler, Reporter, Sender, SpanStore, QueryClient, AsyncQueryClient,
    MetricsCollector

Exceptions:
    TracewellError, TransportError, QueryError, InvalidQueryError,
    UnavailableError
"""

from importlib.metadata import PackageNotFoundError, version

from tracewell.config import HarnessConfig
from tracewell.exceptions import (
    InvalidQueryError,
    QueryError,
    TracewellError,
    TransportError,
    UnavailableError,
)
from tracewell.harness import HarnessContext, assert_tag, get_span, get_tag
from tracewell.ingestion import IngestionService
from tracewell.models import (
    Criteria,
    ReferenceType,
    Span,
    SpanLog,
    SpanReference,
    Tag,
    Trace,
)
from tracewell.polling import wait_for_flush, wait_for_traces, wait_for_traces_sync
from tracewell.protocols import (
    AsyncQueryClient,
    MetricsCollector,
    QueryClient,
    Reporter,
    Sampler,
    Sender,
    SpanStore,
)
from tracewell.query import AsyncHttpQueryClient, HttpQueryClient, QueryService
from tracewell.storage import InMemorySpanStore
from tracewell.tracing import (
    ActiveSpan,
    CompositeReporter,
    ConstSampler,
    FileSender,
    HttpSender,
    InMemoryMetricsCollector,
    InMemoryReporter,
    InMemorySender,
    LocalSender,
    LoggingMetricsCollector,
    LoggingReporter,
    LoggingSender,
    MetricPoint,
    OTLPSender,
    ProbabilisticSampler,
    RemoteReporter,
    SpanBuffer,
    Tracer,
)

try:
    __version__ = version("tracewell")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "ActiveSpan",
    "AsyncHttpQueryClient",
    "AsyncQueryClient",
    "CompositeReporter",
    "ConstSampler",
    "Criteria",
    "FileSender",
    "HarnessConfig",
    "HarnessContext",
    "HttpQueryClient",
    "HttpSender",
    "InMemoryMetricsCollector",
    "InMemoryReporter",
    "InMemorySender",
    "InMemorySpanStore",
    "IngestionService",
    "InvalidQueryError",
    "LocalSender",
    "LoggingMetricsCollector",
    "LoggingReporter",
    "LoggingSender",
    "MetricPoint",
    "MetricsCollector",
    "OTLPSender",
    "ProbabilisticSampler",
    "QueryClient",
    "QueryError",
    "QueryService",
    "ReferenceType",
    "RemoteReporter",
    "Reporter",
    "Sampler",
    "Sender",
    "Span",
    "SpanBuffer",
    "SpanLog",
    "SpanReference",
    "SpanStore",
    "Tag",
    "Trace",
    "Tracer",
    "TracewellError",
    "TransportError",
    "UnavailableError",
    "__version__",
    "assert_tag",
    "get_span",
    "get_tag",
    "wait_for_flush",
    "wait_for_traces",
    "wait_for_traces_sync",
]
