"""
Cache module.
Key-value store with a per-entry time-to-live, shared by the intent resolver and the throttle.
"""

import threading
import time
from typing import Any, Callable, Optional, Protocol

from cachetools import TLRUCache


class Cache(Protocol):
	"""Interface the pipeline needs from a cache: read with default, write with expiry."""

	def get(self, key: str, default: Any = None) -> Any:
		...

	def set(self, key: str, value: Any, ttl_seconds: float) -> None:
		...


class MemoryCache:
	"""
	In-process cache backed by cachetools.TLRUCache.
	Every entry carries its own TTL; the least recently used entry is evicted when full.
	A lock makes it safe to share between threads (e.g. sync endpoints in a thread pool).
	"""

	def __init__(self, max_size: int = 10000, timer: Optional[Callable[[], float]] = None):
		self._cache = TLRUCache(maxsize=max_size, ttu=self._expires_at, timer=timer or time.monotonic)
		self._lock = threading.Lock()

	@staticmethod
	def _expires_at(key: str, value: Any, now: float) -> float:
		# Values are stored as (payload, ttl_seconds) pairs
		return now + value[1]

	def get(self, key: str, default: Any = None) -> Any:
		with self._lock:
			item = self._cache.get(key)
		if item is None:
			return default
		return item[0]

	def set(self, key: str, value: Any, ttl_seconds: float) -> None:
		with self._lock:
			self._cache[key] = (value, ttl_seconds)

	def __len__(self) -> int:
		with self._lock:
			self._cache.expire()
			return len(self._cache)
