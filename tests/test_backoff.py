import threading
import time

import pytest

from plantwire.backoff import jitter_backoff, normalize_backoff, sleep_backoff
from plantwire.errors import ErrorKind, OpError, is_kind


def test_jitter_bounds():
    base = 0.1
    assert jitter_backoff(base, 0) == pytest.approx(0.08)
    assert jitter_backoff(base, 0.5) == pytest.approx(base)
    assert jitter_backoff(base, 1) == pytest.approx(0.12)


def test_jitter_clamps_random():
    base = 0.1
    assert jitter_backoff(base, -3) == jitter_backoff(base, 0)
    assert jitter_backoff(base, 7) == jitter_backoff(base, 1)


def test_jitter_passes_non_positive_delay():
    assert jitter_backoff(0, 0.9) == 0
    assert jitter_backoff(-1.0, 0.1) == -1.0


@pytest.mark.parametrize("random", [0.0, 0.1, 0.33, 0.5, 0.77, 1.0])
def test_jitter_stays_within_ratio(random):
    base = 2.0
    got = jitter_backoff(base, random)
    assert base * 0.8 - 1e-9 <= got <= base * 1.2 + 1e-9


def test_normalize_backoff():
    assert normalize_backoff(0, 0.2) == 0.2
    assert normalize_backoff(-5, 30.0) == 30.0
    assert normalize_backoff(1.5, 0.2) == 1.5


def test_sleep_backoff_raises_when_canceled():
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(OpError) as info:
        sleep_backoff(cancel, 10)
    assert is_kind(info.value, ErrorKind.CANCELED)


def test_sleep_backoff_waits_for_delay():
    cancel = threading.Event()
    start = time.monotonic()
    result = sleep_backoff(cancel, 0.02)
    elapsed = time.monotonic() - start
    assert result is None
    assert elapsed >= 0.015


def test_sleep_backoff_without_cancel_waits():
    start = time.monotonic()
    result = sleep_backoff(None, 0.02)
    elapsed = time.monotonic() - start
    assert result is None
    assert elapsed >= 0.015


def test_sleep_backoff_cancel_interrupts_wait():
    cancel = threading.Event()
    threading.Timer(0.02, cancel.set).start()
    start = time.monotonic()
    with pytest.raises(OpError):
        sleep_backoff(cancel, 5)
    assert time.monotonic() - start < 2