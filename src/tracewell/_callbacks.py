"""Shared fan-out utility used by composite reporters and senders."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any


def fire_all(
    targets: Sequence[Any],
    method: str,
    *args: Any,
    logger: logging.Logger | None = None,
    log_level: int = logging.WARNING,
    **kwargs: Any,
) -> int:
    """Call a method on every target, swallowing exceptions.

    Parameters:
        targets: Objects to notify, in order.
        method: Name of the method to call on each target.
        *args: Positional arguments forwarded to the method.
        logger: Optional logger for recording failures.
        log_level: Log level for failure messages (default ``WARNING``).
        **kwargs: Keyword arguments forwarded to the method.

    Returns:
        The number of targets whose call raised.
    """
    failures = 0
    for target in targets:
        fn = getattr(target, method, None)
        if fn is None or not callable(fn):
            continue
        try:
            fn(*args, **kwargs)
        except Exception:
            failures += 1
            if logger:
                logger.log(log_level, "%r.%s failed", target, method, exc_info=True)
    return failures
