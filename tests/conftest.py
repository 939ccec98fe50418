"""
Shared test doubles: catalog entries, a scripted catalog and a scripted intent extractor.
Nothing here touches the network.
"""

from datetime import date
from typing import Dict, List, Optional

import pytest

from gamescout.catalog_client import CatalogError
from gamescout.intent_extractor import ExtractedIntent, IntentExtractionError
from gamescout.models import CatalogEntry


def make_entry(
	game_id: int,
	name: str,
	released: Optional[str] = None,
	genres: Optional[List[str]] = None,
	platforms: Optional[List[str]] = None,
	ratings_count: int = 0,
	metacritic: Optional[int] = None,
) -> CatalogEntry:
	return CatalogEntry(
		id=game_id,
		name=name,
		released=date.fromisoformat(released) if released else None,
		genres=list(genres or []),
		platforms=list(platforms if platforms is not None else ["PC"]),
		ratings_count=ratings_count,
		metacritic=metacritic,
	)


class FakeCatalog:
	"""Returns canned results per query and descriptions per id; listed failures raise CatalogError."""

	def __init__(self, results: Optional[Dict[str, List[CatalogEntry]]] = None, failing=(), descriptions=None, failing_details=()):
		self.results = results or {}
		self.failing = set(failing)
		self.descriptions = descriptions or {}
		self.failing_details = set(failing_details)
		self.calls = []
		self.detail_calls = []

	async def search(self, query: str, limit: int) -> List[CatalogEntry]:
		self.calls.append((query, limit))
		if query in self.failing:
			raise CatalogError(f"boom for {query}")
		return list(self.results.get(query, []))[:limit]

	async def details(self, game_id: int) -> Optional[str]:
		self.detail_calls.append(game_id)
		if game_id in self.failing_details:
			raise CatalogError(f"no details for {game_id}")
		return self.descriptions.get(game_id)


class FakeExtractor:
	"""Answers with a fixed intent, or raises when `error` is set."""

	def __init__(self, include=None, exclude=None, titles=None, error: Optional[Exception] = None):
		self.answer = ExtractedIntent(include=include, exclude=exclude, titles=titles)
		self.error = error
		self.calls = 0

	async def extract(self, query: str) -> ExtractedIntent:
		self.calls += 1
		if self.error is not None:
			raise self.error
		return self.answer


class FakeClock:
	"""Manually advanced clock for cache and throttle tests."""

	def __init__(self, now: float = 0.0):
		self.now = now

	def __call__(self) -> float:
		return self.now


@pytest.fixture
def entry():
	return make_entry


@pytest.fixture
def clock():
	return FakeClock(1_000_000.0)


@pytest.fixture
def down_extractor():
	return FakeExtractor(error=IntentExtractionError("LLM unavailable"))
