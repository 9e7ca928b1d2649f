"""Built-in samplers."""

from __future__ import annotations

from typing import Any

__all__ = ["ConstSampler", "ProbabilisticSampler"]

_MAX_ID = 1 << 63
_LOWER_63_BITS = _MAX_ID - 1


class ConstSampler:
    """Makes the same decision for every trace.

    Implements the ``Sampler`` protocol.
    """

    __slots__ = ("_decision",)

    def __init__(self, decision: bool = True) -> None:
        self._decision = decision

    @property
    def tags(self) -> dict[str, Any]:
        return {"sampler.type": "const", "sampler.param": self._decision}

    def is_sampled(self, trace_id: str) -> bool:
        return self._decision

    def __repr__(self) -> str:
        return f"ConstSampler(decision={self._decision})"


class ProbabilisticSampler:
    """Samples a fixed fraction of traces, deterministically per trace ID.

    A trace is sampled iff the low 63 bits of its ID fall below
    ``probability * 2**63``.  Trace IDs are uniformly random, so this
    samples the requested fraction while every span of a trace gets the
    same answer.  ``probability=1.0`` samples everything.

    Implements the ``Sampler`` protocol.

    Parameters:
        probability: Fraction of traces to sample, in ``[0.0, 1.0]``.

    Raises:
        ValueError: If ``probability`` is outside ``[0.0, 1.0]``.
    """

    __slots__ = ("_boundary", "_probability")

    def __init__(self, probability: float = 1.0) -> None:
        if not 0.0 <= probability <= 1.0:
            msg = f"Sampling probability must be between 0.0 and 1.0, got {probability}"
            raise ValueError(msg)
        self._probability = probability
        self._boundary = int(probability * _MAX_ID)

    @property
    def probability(self) -> float:
        return self._probability

    @property
    def tags(self) -> dict[str, Any]:
        return {"sampler.type": "probabilistic", "sampler.param": self._probability}

    def is_sampled(self, trace_id: str) -> bool:
        if self._probability >= 1.0:
            return True
        return (int(trace_id, 16) & _LOWER_63_BITS) < self._boundary

    def __repr__(self) -> str:
        return f"ProbabilisticSampler(probability={self._probability})"
