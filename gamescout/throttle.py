"""
Request throttling module.
Fixed-window counter per client: at most `capacity` requests every `window_seconds`.
Counts reset cleanly at window boundaries (no sliding window), so a client can burst
up to twice the capacity across a boundary. That inexactness is accepted.
"""

import time
from typing import Callable, Optional

from loguru import logger

from .cache import Cache
from .models import ThrottleWindow


class Throttle:
	"""Admission control backed by the shared cache."""

	def __init__(
		self,
		cache: Cache,
		capacity: int = 5,
		window_seconds: int = 10,
		clock: Optional[Callable[[], float]] = None,
	):
		if capacity < 1 or window_seconds < 1:
			raise ValueError("capacity and window_seconds must be positive")
		self.cache = cache
		self.capacity = capacity
		self.window_seconds = window_seconds
		self._clock = clock or time.time

	def current_window(self, client_key: str) -> ThrottleWindow:
		"""Read the counter for the window the clock is currently in (0 if absent)."""
		index = int(self._clock()) // self.window_seconds
		window = ThrottleWindow(client_key=client_key, window_index=index)
		window.count = int(self.cache.get(window.key, 0) or 0)
		return window

	def admit(self, client_key: str) -> bool:
		"""Return True and count the request if the client still has room in this window."""
		window = self.current_window(client_key)
		if window.count >= self.capacity:
			logger.info(f"[Throttle] Rejected {client_key} | count={window.count} capacity={self.capacity}")
			return False
		# No await between read and write: atomic within the event loop
		self.cache.set(window.key, window.count + 1, ttl_seconds=self.window_seconds)
		return True
