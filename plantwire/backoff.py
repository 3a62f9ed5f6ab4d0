"""Reconnect backoff: defaults, jitter and cancellable sleeping."""

from __future__ import annotations

import threading
import time

from .errors import ErrorKind, OpError

JITTER_RATIO = 0.2

_NANOS = 1_000_000_000


def jitter_backoff(delay: float, random: float) -> float:
    """Spread delay by up to JITTER_RATIO either way.

    random is clamped to [0, 1]; 0 gives the shortest delay, 0.5 the
    delay itself and 1 the longest. Delays are in seconds and resolved to
    whole nanoseconds, as a wire timer would.
    """
    if delay <= 0 or JITTER_RATIO <= 0:
        return delay
    random = min(max(random, 0.0), 1.0)
    factor = 1 + ((random * 2 - 1) * JITTER_RATIO)
    nanos = int(round(delay * _NANOS))
    jittered = int(nanos * factor)
    if jittered < 0:
        return 0.0
    return jittered / _NANOS


def normalize_backoff(value: float, default: float) -> float:
    """Return value, or default when value is not positive."""
    return default if value <= 0 else value


def sleep_backoff(cancel: threading.Event | None, delay: float) -> None:
    """Sleep for delay seconds; raise a cancellation error if cancel is set first."""
    if delay <= 0:
        return
    if cancel is None:
        time.sleep(delay)
        return
    if cancel.wait(delay):
        raise OpError(ErrorKind.CANCELED, "subscription.sleep_backoff", "backoff canceled")