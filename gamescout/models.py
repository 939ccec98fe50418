"""
Data models for GameScout.
Defines the core data structures passed between the pipeline stages.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
from datetime import date  # release dates from the catalog
# Import typing helpers for precise and self-documenting types
from typing import List, Optional, Tuple


@dataclass
class Intent:
	"""
	Represents what the user asked for, extracted from their free-text query.
	All three lists are always present (possibly empty), never None.
	"""
	include: List[str] = field(default_factory=list)  # lowercase concept tokens to look for
	exclude: List[str] = field(default_factory=list)  # lowercase concepts the user does not want
	titles: List[str] = field(default_factory=list)  # proper-cased franchise/title guesses

	def copy(self) -> "Intent":
		"""Return an independent copy so cached values are never mutated."""
		return Intent(include=list(self.include), exclude=list(self.exclude), titles=list(self.titles))


@dataclass(frozen=True)
class CatalogEntry:
	"""
	A single game as returned by the external catalog.
	Frozen: entries are never modified once fetched.
	"""
	id: int  # catalog primary key, the identity of the entry
	name: str  # display name as the catalog spells it
	released: Optional[date] = None  # release date, None when missing or unparseable
	genres: List[str] = field(default_factory=list)  # e.g. ["Action", "RPG"]
	platforms: List[str] = field(default_factory=list)  # e.g. ["PC", "PlayStation 5"]
	ratings_count: int = 0  # number of user ratings on the catalog
	metacritic: Optional[int] = None  # critic score 0..100 if known
	slug: Optional[str] = None  # catalog URL slug

	def haystack(self, with_platforms: bool = True) -> str:
		"""Lowercased name + genres (+ platforms) text used for substring matching."""
		parts = [self.name or ""] + list(self.genres)
		if with_platforms:
			parts += list(self.platforms)
		return " ".join(parts).lower()


@dataclass
class RankedItem:
	"""A catalog entry with its relevance score and franchise grouping key."""
	entry: CatalogEntry
	score: float  # higher is better
	franchise_key: str  # normalized series name used for diversity capping

	@property
	def rank_key(self) -> Tuple[int, str]:
		# Smaller is better; name breaks ties so sorting is a total order
		return (int(1000 - self.score * 100.0), (self.entry.name or "").casefold())


@dataclass
class ThrottleWindow:
	"""Request counter for one client inside one fixed time window."""
	client_key: str
	window_index: int  # floor(unix_seconds / window_seconds)
	count: int = 0

	@property
	def key(self) -> str:
		return f"{self.client_key}:{self.window_index}"
