"""Span recording: tracer, samplers, reporters, senders and metrics."""

from .buffer import SpanBuffer
from .metrics import InMemoryMetricsCollector, LoggingMetricsCollector, MetricPoint
from .otlp import OTLPSender
from .reporters import CompositeReporter, InMemoryReporter, LoggingReporter, RemoteReporter
from .sampler import ConstSampler, ProbabilisticSampler
from .senders import FileSender, HttpSender, InMemorySender, LocalSender, LoggingSender
from .tracer import ActiveSpan, Tracer

__all__ = [
    "ActiveSpan",
    "CompositeReporter",
    "ConstSampler",
    "FileSender",
    "HttpSender",
    "InMemoryMetricsCollector",
    "InMemoryReporter",
    "InMemorySender",
    "LocalSender",
    "LoggingMetricsCollector",
    "LoggingReporter",
    "LoggingSender",
    "MetricPoint",
    "OTLPSender",
    "ProbabilisticSampler",
    "RemoteReporter",
    "SpanBuffer",
    "Tracer",
]
