"""
Unit tests for the fixed-window Throttle.
"""

import pytest

from gamescout.cache import MemoryCache
from gamescout.throttle import Throttle


def make_throttle(clock, capacity=5, window=10):
	# Window starts exactly at the fake clock's current time
	return Throttle(MemoryCache(timer=clock), capacity=capacity, window_seconds=window, clock=clock)


def test_admits_up_to_capacity_then_rejects(clock):
	throttle = make_throttle(clock)
	results = [throttle.admit("throttle:1.2.3.4") for _ in range(6)]
	assert results == [True] * 5 + [False]


def test_rejected_requests_do_not_consume_budget(clock):
	throttle = make_throttle(clock, capacity=2)
	throttle.admit("c")
	throttle.admit("c")
	assert not throttle.admit("c")
	assert throttle.current_window("c").count == 2


def test_next_window_starts_fresh(clock):
	throttle = make_throttle(clock, capacity=1)
	assert throttle.admit("c")
	assert not throttle.admit("c")
	clock.now += 10
	assert throttle.admit("c")


def test_clients_are_counted_separately(clock):
	throttle = make_throttle(clock, capacity=1)
	assert throttle.admit("throttle:a")
	assert throttle.admit("throttle:b")
	assert not throttle.admit("throttle:a")


def test_burst_across_window_boundary_is_allowed(clock):
	throttle = make_throttle(clock, capacity=5)
	clock.now += 9
	assert all(throttle.admit("c") for _ in range(5))
	clock.now += 1
	assert all(throttle.admit("c") for _ in range(5))


def test_window_key_includes_client_and_index(clock):
	throttle = make_throttle(clock, window=10)
	window = throttle.current_window("throttle:x")
	assert window.window_index == int(clock.now) // 10
	assert window.key == f"throttle:x:{window.window_index}"
	assert window.count == 0


@pytest.mark.parametrize("capacity,window", [(0, 10), (5, 0)])
def test_rejects_invalid_configuration(clock, capacity, window):
	with pytest.raises(ValueError):
		Throttle(MemoryCache(), capacity=capacity, window_seconds=window, clock=clock)
