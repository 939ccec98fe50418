"""
Ranking module.
Combines title, concept and phrase matches with recency, popularity and platform signals.
One signal (franchise recency) is relative to the whole candidate set, so ranking is two-pass.
"""

import math
import re
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger

from .franchise import franchise_key, release_year
from .models import CatalogEntry, Intent, RankedItem


RE_QUERY_SPLIT = re.compile(r"[ ,.:;/\\\-_]+")
PHRASE_FILLERS = {"game", "play", "where"}

DESKTOP_CONSOLE = ("pc", "playstation", "xbox", "nintendo")
BROWSER = ("web", "browser")
MOBILE = ("android", "ios")

NICHE_TOPICS = ("dating sim", "idle", "clicker", "gacha")

# Boost by how many years an entry trails the newest entry of its franchise
FRANCHISE_RECENCY_BOOST = {0: 0.35, 1: 0.15, 2: 0.05}


def title_hit(name: str, titles: Iterable[str]) -> float:
	"""1.0 exact, 0.85 prefix, 0.70 substring match against any title (case-insensitive)."""
	name_l = (name or "").strip().lower()
	best = 0.0
	for t in titles:
		tt = (t or "").strip().lower()
		if not tt:
			continue
		if name_l == tt:
			return 1.0
		if name_l.startswith(tt):
			best = max(best, 0.85)
		elif tt in name_l:
			best = max(best, 0.70)
	return best


def query_bigrams(raw_query: str) -> List[str]:
	tokens = [
		w for w in RE_QUERY_SPLIT.split((raw_query or "").lower())
		if len(w) >= 3 and w not in PHRASE_FILLERS
	]
	return [f"{a} {b}" for a, b in zip(tokens, tokens[1:])]


class Ranker:
	"""
	Computes a relevance score per catalog entry (higher is better):
	- weighted match signals: title hit, include overlap, query phrase overlap
	- weighted metadata signals: recency, popularity/critic score
	- additive adjustments: franchise recency boost, platform, generic name, niche topic
	"""

	def __init__(
		self,
		title_weight: float = 1.30,
		include_weight: float = 1.05,
		phrase_weight: float = 0.70,
		recency_weight: float = 0.30,
		popularity_weight: float = 0.25,
		today: Optional[Callable[[], date]] = None,
	):
		self.title_weight = title_weight
		self.include_weight = include_weight
		self.phrase_weight = phrase_weight
		self.recency_weight = recency_weight
		self.popularity_weight = popularity_weight
		self._today = today or date.today

	@staticmethod
	def latest_years(candidates: Iterable[CatalogEntry]) -> Dict[str, int]:
		"""Newest release year per franchise key across the candidate set (0 if none known)."""
		table: Dict[str, int] = {}
		for entry in candidates:
			key = franchise_key(entry.name)
			table[key] = max(table.get(key, 0), release_year(entry))
		return table

	def score(self, entry: CatalogEntry, intent: Intent, candidates: List[CatalogEntry], raw_query: str) -> float:
		"""Score one entry against the full candidate set."""
		return self._score(entry, intent, raw_query, self.latest_years(candidates), query_bigrams(raw_query))

	def rank(self, entries: List[CatalogEntry], intent: Intent, raw_query: str) -> List[RankedItem]:
		"""Score every entry (franchise table computed once) and return them best first."""
		latest = self.latest_years(entries)
		bigrams = query_bigrams(raw_query)
		ranked = []
		for entry in entries:
			item = RankedItem(
				entry=entry,
				score=self._score(entry, intent, raw_query, latest, bigrams),
				franchise_key=franchise_key(entry.name),
			)
			logger.debug(f"[Ranker] {entry.name} ({entry.id}) | score={item.score:.3f} | franchise='{item.franchise_key}'")
			ranked.append(item)
		ranked.sort(key=lambda r: r.rank_key)
		return ranked

	def _score(
		self,
		entry: CatalogEntry,
		intent: Intent,
		raw_query: str,
		latest_years: Dict[str, int],
		bigrams: List[str],
	) -> float:
		name = (entry.name or "").strip()
		name_l = name.lower()

		match = (
			self.title_weight * title_hit(name, intent.titles) +
			self.include_weight * self._include_score(entry, intent.include) +
			self.phrase_weight * self._phrase_score(name_l, bigrams)
		)
		metadata = (
			self.recency_weight * self._recency_score(entry) +
			self.popularity_weight * self._popularity_score(entry)
		)
		adjustments = (
			self._franchise_boost(entry, latest_years) +
			self._platform_score(entry) +
			self._generic_name_penalty(name) +
			self._topic_mismatch_penalty(entry, intent.include)
		)
		return match + metadata + adjustments

	def _include_score(self, entry: CatalogEntry, include: List[str]) -> float:
		"""Fraction of include tokens (3+ chars) present in name + genres + platforms."""
		tokens = [t for t in include if len(t) >= 3]
		if not tokens:
			return 0.0
		haystack = entry.haystack()
		return sum(1 for t in tokens if t in haystack) / len(tokens)

	def _phrase_score(self, name_l: str, bigrams: List[str]) -> float:
		return min(1.0, sum(0.5 for b in bigrams if b in name_l))

	def _recency_score(self, entry: CatalogEntry) -> float:
		if entry.released is None:
			return 0.0
		age_years = max(0.0, (self._today() - entry.released).days / 365.0)
		# ~0.35 when new, ~0.20 at 3 years, ~0.10 at 6, ~0.03 at 10+
		return 0.35 * math.exp(-age_years / 6.0)

	def _popularity_score(self, entry: CatalogEntry) -> float:
		score = 0.0
		if entry.ratings_count > 0:
			score += min(0.4, math.log10(entry.ratings_count + 1) * 0.2)
		if entry.metacritic is not None:
			score += max(0.0, min(0.3, (entry.metacritic - 60) / 100.0))
		return score

	def _franchise_boost(self, entry: CatalogEntry, latest_years: Dict[str, int]) -> float:
		year = release_year(entry)
		latest = latest_years.get(franchise_key(entry.name), 0)
		if year <= 0 or latest <= 0:
			return 0.0
		return FRANCHISE_RECENCY_BOOST.get(latest - year, 0.0)

	def _platform_score(self, entry: CatalogEntry) -> float:
		plats = [p.lower() for p in entry.platforms]
		has_desktop_console = any(k in p for p in plats for k in DESKTOP_CONSOLE)
		if has_desktop_console:
			return 0.2
		if any(k in p for p in plats for k in BROWSER):
			return -0.9
		if any(k in p for p in plats for k in MOBILE):
			return -0.5
		return -0.2

	def _generic_name_penalty(self, name: str) -> float:
		penalty = 0.0
		if len(name) <= 3:
			penalty -= 0.6
		if len(name.split()) == 1 and len(name) < 6:
			penalty -= 0.3
		return penalty

	def _topic_mismatch_penalty(self, entry: CatalogEntry, include: List[str]) -> float:
		haystack = entry.haystack(with_platforms=False)
		mentioned = [n for n in NICHE_TOPICS if n in haystack]
		# Every niche topic the entry carries must have been asked for
		unasked = [n for n in mentioned if not any(inc and inc in n for inc in include)]
		return -0.4 if unasked else 0.0
