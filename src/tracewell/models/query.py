"""Search criteria for the query path."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tracewell._time import seconds_to_micros
from tracewell.models.span import TagValue


class Criteria(BaseModel):
    """A predicate selecting traces.

    ``start`` and ``end`` bound span start times in microseconds since the
    epoch as a half-open interval ``[start, end)``; ``end=None`` leaves the
    range open.  ``service`` is required by every query backend but is
    optional on the model so that a missing service surfaces as an
    ``InvalidQueryError`` from the backend rather than a construction error.
    """

    model_config = ConfigDict(frozen=True)

    service: str | None = None
    operation: str | None = None
    start: int | None = Field(default=None, ge=0)
    end: int | None = Field(default=None, ge=0)
    tags: dict[str, TagValue] = Field(default_factory=dict)
    limit: int | None = None
    min_duration: int | None = Field(default=None, ge=0)
    max_duration: int | None = Field(default=None, ge=0)

    @classmethod
    def since(
        cls,
        service: str | None,
        start_seconds: float,
        end_seconds: float | None = None,
        **kwargs: Any,
    ) -> Criteria:
        """Build criteria from seconds-based timestamps.

        Parameters:
            service: The service name to search.
            start_seconds: Inclusive lower bound, in seconds since the epoch.
            end_seconds: Optional exclusive upper bound, in seconds.
            **kwargs: Any other ``Criteria`` field.

        Returns:
            A ``Criteria`` with ``start``/``end`` converted to microseconds.
        """
        end = seconds_to_micros(end_seconds) if end_seconds is not None else None
        return cls(service=service, start=seconds_to_micros(start_seconds), end=end, **kwargs)

    def with_tags(self, **tags: TagValue) -> Criteria:
        """Return a copy with ``tags`` merged into the tag filters."""
        return self.model_copy(update={"tags": {**self.tags, **tags}})

    def to_params(self) -> list[tuple[str, str]]:
        """Render the criteria as Jaeger query-API URL parameters."""
        params: list[tuple[str, str]] = []
        if self.service is not None:
            params.append(("service", self.service))
        if self.operation is not None:
            params.append(("operation", self.operation))
        if self.start is not None:
            params.append(("start", str(self.start)))
        if self.end is not None:
            params.append(("end", str(self.end)))
        if self.limit is not None:
            params.append(("limit", str(self.limit)))
        if self.min_duration is not None:
            params.append(("minDuration", f"{self.min_duration}us"))
        if self.max_duration is not None:
            params.append(("maxDuration", f"{self.max_duration}us"))
        for key, value in self.tags.items():
            rendered = str(value).lower() if isinstance(value, bool) else str(value)
            params.append(("tag", f"{key}:{rendered}"))
        return params
