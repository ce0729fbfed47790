"""Microsecond time stamps and busy waiting."""

from __future__ import annotations

import time
import warnings

__all__ = ["get_system_time", "get_time_second", "absolute_wait"]


def get_system_time() -> int:
    """Current wall-clock time in microseconds."""
    return time.time_ns() // 1000


def get_time_second() -> float:
    """Current wall-clock time in seconds."""
    return get_system_time() * 0.000001


def absolute_wait(start_time: int, wait_time: int) -> None:
    """Block until ``wait_time`` microseconds have passed since ``start_time``.

    Warns if that moment has already passed.
    """
    elapsed = get_system_time() - start_time
    if elapsed > wait_time:
        warnings.warn(
            f"The waitTime={wait_time} of function absoluteWait is not enough! "
            f"The program has already cost {elapsed}us.",
            RuntimeWarning,
            stacklevel=2,
        )
    while get_system_time() - start_time < wait_time:
        time.sleep(50e-6)