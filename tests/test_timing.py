import time

import pytest

from quadctrl.timing import absolute_wait, get_system_time, get_time_second


def test_system_time_is_microseconds():
    t = get_system_time()
    assert isinstance(t, int)
    assert abs(t / 1e6 - time.time()) < 1.0


def test_time_second_consistent():
    s = get_time_second()
    assert abs(s - time.time()) < 1.0
    assert get_system_time() >= int(s * 1e6) - 1000


def test_absolute_wait_waits():
    start = get_system_time()
    absolute_wait(start, 3000)
    assert get_system_time() - start >= 3000


def test_absolute_wait_warns_when_late():
    start = get_system_time() - 100_000
    with pytest.warns(RuntimeWarning):
        absolute_wait(start, 10)
    assert get_system_time() - start >= 10