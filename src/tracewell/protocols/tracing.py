"""Protocols for the span-recording path: samplers, reporters and senders."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tracewell.models.span import Span


@runtime_checkable
class Sampler(Protocol):
    """Decides whether the spans of a trace are recorded.

    The decision must be a pure function of the trace ID so that every span
    of one trace gets the same answer.
    """

    @property
    def tags(self) -> dict[str, Any]:
        """Tags describing the sampler, attached to root spans."""
        ...

    def is_sampled(self, trace_id: str) -> bool:
        """Return ``True`` if the trace identified by ``trace_id`` is recorded.

        Parameters:
            trace_id: The 64-bit trace ID as a hex string.
        """
        ...


@runtime_checkable
class Reporter(Protocol):
    """Receives finished spans from a tracer.

    ``report`` is called on the instrumented application's thread and must
    neither block on I/O nor raise.
    """

    def report(self, span: Span) -> None:
        """Accept one finished span.

        Parameters:
            span: The finished, immutable span.
        """
        ...

    def close(self) -> None:
        """Flush anything pending and release resources."""
        ...


@runtime_checkable
class Sender(Protocol):
    """Transmits a batch of spans to a collector.

    Transport-agnostic: HTTP, files, OTLP or an in-process ingestion
    service are all valid backends.  Ownership of the batch passes to the
    sender; the reporter never touches it again.
    """

    def send(self, spans: list[Span]) -> int:
        """Deliver a batch.

        Parameters:
            spans: The batch to transmit.

        Returns:
            The number of spans delivered.

        Raises:
            TransportError: If the batch could not be delivered.
        """
        ...

    def close(self) -> None:
        """Release transport resources."""
        ...
