"""
Intent resolution module.
Turns a raw query into an Intent: cached result first, then the LLM extractor,
then a deterministic keyword fallback when the extractor is unavailable or fails.
Resolved intents are broadened with franchise aliases and pruned of stop words.
"""

import asyncio
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger  # console logging
from rapidfuzz import fuzz, process  # typo-tolerant keyword matching

from .cache import Cache
from .intent_extractor import IntentExtractor
from .models import Intent


# Fallback keyword table: any of the phrases (English or Turkish) -> include tokens
FALLBACK_INCLUDE_RULES: Sequence[Tuple[Tuple[str, ...], Tuple[str, ...]]] = (
	(("ortaçağ", "orta cag", "medieval"), ("medieval",)),
	(("ejderha", "ejder", "dragon"), ("dragon",)),
	(("uzay", "space", "sci-fi"), ("space", "sci-fi")),
	(("korku", "horror"), ("horror",)),
	(("rpg",), ("rpg",)),
	(("açık dünya", "acik dunya", "open world"), ("open world",)),
	(("polis", "police"), ("police",)),
	(("koval", "chase"), ("chase",)),
	(("yarış", "yaris", "racing", "race"), ("racing",)),
)

# Phrases that deny a concept -> exclude tokens
FALLBACK_EXCLUDE_RULES: Sequence[Tuple[Tuple[str, ...], Tuple[str, ...]]] = (
	(
		("no magic", "without magic", "non-magic", "büyü olmasın", "buyu olmasin", "büyüsüz", "buyusuz",
		 "sihir olmasın", "sihir olmasin", "sihirsiz"),
		("magic",),
	),
	(
		("no wizard", "without wizard", "sihirbaz olmasın", "sihirbaz olmasin", "sihirbazsız", "sihirbazsiz"),
		("wizard",),
	),
)

# Single-word keywords long enough to match misspellings against
FUZZY_KEYWORDS: List[str] = sorted({
	phrase
	for phrases, _ in FALLBACK_INCLUDE_RULES
	for phrase in phrases
	if " " not in phrase and phrase.isalpha() and len(phrase) >= 6
})
FUZZY_THRESHOLD = 88

RE_WAR = re.compile(r"\b(wars?|warfare|wartime|military|soldiers?|battles?|battlefields?)\b", re.I)
WAR_FRANCHISES = ("battlefield", "crysis", "arma", "medal of honor", "company of heroes")

# Yearly sports franchises: include token -> (alias to add, title prefix for the season's edition)
YEARLY_SPORTS_ALIASES: Sequence[Tuple[str, str, str]] = (
	("fifa", "ea sports fc", "EA SPORTS FC"),
	("madden", "madden nfl", "Madden NFL"),
)

CITY_BUILDER_TITLE = "Cities: Skylines II"

STOP_WORDS = {"game", "games", "video", "videogame", "the", "a", "an", "play", "player", "we"}
MAX_INCLUDE = 6


@dataclass
class IntentResolution:
	"""An Intent plus where it came from, for diagnostics."""
	intent: Intent
	from_fallback: bool = False  # True when the keyword fallback produced it
	error: Optional[str] = None  # extractor failure message, if any
	cached: bool = False  # True when served from the intent cache


def season_edition(prefix: str, today: date) -> str:
	"""Title of a yearly sports game for the current season (editions roll over in September)."""
	year = today.year + 1 if today.month >= 9 else today.year
	return f"{prefix} {year % 100:02d}"


def fallback_intent(query: str) -> Intent:
	"""Deterministic keyword-table intent used when the extractor is unavailable. Never sets titles."""
	text = (query or "").lower()
	include: List[str] = []
	exclude: List[str] = []

	tokens = set(re.findall(r"[^\W\d_]+", text))
	fuzzy_hits = set()
	for token in tokens:
		if len(token) < 5:
			continue
		match = process.extractOne(token, FUZZY_KEYWORDS, scorer=fuzz.ratio, score_cutoff=FUZZY_THRESHOLD)
		if match:
			fuzzy_hits.add(match[0])
			if match[0] not in text:
				logger.debug(f"[Intent] Fallback fuzzy match: '{token}' -> '{match[0]}' (score={match[1]:.0f})")

	for phrases, tokens_out in FALLBACK_INCLUDE_RULES:
		if any(p in text or p in fuzzy_hits for p in phrases):
			include.extend(t for t in tokens_out if t not in include)

	for phrases, tokens_out in FALLBACK_EXCLUDE_RULES:
		if any(p in text for p in phrases):
			exclude.extend(t for t in tokens_out if t not in exclude)

	logger.debug(f"[Intent] Fallback for '{query}' | include={include} exclude={exclude}")
	return Intent(include=include, exclude=exclude, titles=[])


def coalesce(raw) -> Intent:
	"""Build an Intent whose three fields are always lists of clean strings."""
	def clean(values, lower: bool) -> List[str]:
		out = []
		for v in values or []:
			if not isinstance(v, str) or not v.strip():
				continue
			out.append(v.strip().lower() if lower else v.strip())
		return out

	return Intent(
		include=clean(getattr(raw, "include", None), lower=True),
		exclude=clean(getattr(raw, "exclude", None), lower=True),
		titles=clean(getattr(raw, "titles", None), lower=False),
	)


def _add_if_missing(values: List[str], token: str) -> None:
	if not any(v.lower() == token.lower() for v in values):
		values.append(token)


def enrich(intent: Intent, query: str, today: date) -> Intent:
	"""Broaden the include/title signals with generic franchise aliases (in place)."""
	if RE_WAR.search(query or ""):
		for name in WAR_FRANCHISES:
			_add_if_missing(intent.include, name)
		logger.debug("[Intent] War terms found, added war franchises to include")

	for token, alias, title_prefix in YEARLY_SPORTS_ALIASES:
		if any(token in t for t in intent.include):
			_add_if_missing(intent.include, alias)
			if not any(title_prefix.lower() in t.lower() for t in intent.titles):
				intent.titles.append(season_edition(title_prefix, today))

	if any("city" in t for t in intent.include) and any("build" in t for t in intent.include):
		_add_if_missing(intent.include, "city builder")
		if not any(CITY_BUILDER_TITLE.lower() in t.lower() for t in intent.titles):
			intent.titles.append(CITY_BUILDER_TITLE)

	return intent


def prune_include(include: List[str]) -> List[str]:
	"""Drop stop words and short tokens, dedupe preserving order, cap the list."""
	seen = set()
	kept = []
	for t in include:
		if t in STOP_WORDS or len(t) < 3 or t in seen:
			continue
		seen.add(t)
		kept.append(t)
	return kept[:MAX_INCLUDE]


class IntentResolver:
	"""
	Cache -> extractor -> fallback chain.
	Only extractor answers are cached, so a degraded guess is never reused.
	"""

	CACHE_PREFIX = "intent:"

	def __init__(
		self,
		cache: Cache,
		extractor: Optional[IntentExtractor],
		timeout_seconds: float = 8.0,
		cache_ttl_seconds: int = 1800,
		today: Optional[Callable[[], date]] = None,
	):
		self.cache = cache
		self.extractor = extractor
		self.timeout_seconds = timeout_seconds
		self.cache_ttl_seconds = cache_ttl_seconds
		self._today = today or date.today

	@classmethod
	def cache_key(cls, query: str) -> str:
		return cls.CACHE_PREFIX + query.strip().lower()

	async def resolve(self, query: str) -> IntentResolution:
		if not query or not query.strip():
			raise ValueError("Query cannot be empty")

		key = self.cache_key(query)
		cached = self.cache.get(key)
		if cached is not None:
			logger.debug(f"[Intent] Cache hit for '{key}'")
			return IntentResolution(intent=cached.copy(), cached=True)

		used_fallback = False
		error = None
		try:
			if self.extractor is None:
				raise RuntimeError("intent extractor not configured")
			raw = await asyncio.wait_for(self.extractor.extract(query), timeout=self.timeout_seconds)
		except Exception as e:
			error = str(e) or type(e).__name__
			logger.warning(f"[Intent] Extractor failed for '{query}', using heuristic fallback: {error}")
			raw = fallback_intent(query)
			used_fallback = True

		intent = coalesce(raw)
		enrich(intent, query, self._today())
		intent.include = prune_include(intent.include)

		if not used_fallback:
			self.cache.set(key, intent.copy(), ttl_seconds=self.cache_ttl_seconds)

		logger.info(
			f"[Intent] Resolved '{query}' | fallback={used_fallback} include={intent.include} "
			f"exclude={intent.exclude} titles={intent.titles}"
		)
		return IntentResolution(intent=intent, from_fallback=used_fallback, error=error)
