"""Helpers for converting and formatting time measurements."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Union


def system_time_from_monotonic(instant: float) -> datetime:
    """Wall-clock UTC time corresponding to a ``time.monotonic()`` reading.

    Instants later than now map to the current time.
    """
    now_wall = time.time()
    elapsed = max(0.0, time.monotonic() - instant)
    return datetime.fromtimestamp(now_wall - elapsed, tz=timezone.utc)


def format_elapsed_time(elapsed: Union[timedelta, float]) -> str:
    """Render a duration as e.g. ``"2s : 15ms"`` or ``"40µs"``.

    Microseconds are shown only when there is no millisecond part.
    """
    if not isinstance(elapsed, timedelta):
        elapsed = timedelta(seconds=elapsed)
    if elapsed < timedelta(0):
        raise ValueError("elapsed time cannot be negative")

    total_us = elapsed // timedelta(microseconds=1)
    seconds, sub_us = divmod(total_us, 1_000_000)
    millis, micros = divmod(sub_us, 1_000)

    parts = []
    if seconds > 0:
        parts.append(f"{seconds}s")
    if millis > 0:
        parts.append(f"{millis}ms")
    if micros > 0 and millis == 0:
        parts.append(f"{micros}µs")
    if not parts:
        parts.append("0µs")
    return " : ".join(parts)