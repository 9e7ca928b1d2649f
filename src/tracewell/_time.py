"""Timestamp and identifier helpers shared across tracewell.

All wire and model timestamps are microseconds since the Unix epoch.
"""

from __future__ import annotations

import random
import time

MICROS_PER_SECOND = 1_000_000
MICROS_PER_MILLI = 1_000

_rng = random.SystemRandom()


def now_micros() -> int:
    """Return the current wall-clock time in microseconds since the epoch."""
    return time.time_ns() // 1_000


def seconds_to_micros(seconds: float) -> int:
    """Convert a seconds-based timestamp to microseconds."""
    return int(seconds * MICROS_PER_SECOND)


def millis_to_micros(millis: float) -> int:
    """Convert a milliseconds-based timestamp to microseconds."""
    return int(millis * MICROS_PER_MILLI)


def generate_id() -> str:
    """Return a random non-zero 64-bit identifier as 16 lowercase hex chars."""
    return f"{_rng.getrandbits(64) or 1:016x}"
