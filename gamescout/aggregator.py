"""
Result aggregation.
Merges main and hint search results, removes duplicates and junk listings.
"""

from collections import Counter
from typing import Iterable, List

from loguru import logger

from .models import CatalogEntry


def normalize_name(name: str) -> str:
	"""Trim, case-fold and drop trailing punctuation: "Dreams." == "dreams"."""
	return (name or "").strip().casefold().rstrip(".!? ").strip()


def looks_like_spam(entry: CatalogEntry) -> bool:
	name = (entry.name or "").strip()
	if len(name) < 3:
		return True

	lower = name.lower()
	words = lower.split()
	# Same word 3+ times (COIN COIN COIN)
	if words and max(Counter(words).values()) >= 3:
		return True

	# More symbols/digits than letters: clicker/gacha junk rather than a game name
	letters = sum(1 for ch in lower if ch.isalpha())
	non_letters = sum(1 for ch in lower if not ch.isalpha() and not ch.isspace())
	return non_letters > letters


def merge(main_results: List[CatalogEntry], hint_results: Iterable[List[CatalogEntry]]) -> List[CatalogEntry]:
	"""
	Concatenate main results with every hint list, then keep the first entry per id,
	the first entry per normalized name, and drop spam-like names.
	"""
	combined = list(main_results)
	for hits in hint_results:
		combined.extend(hits)

	seen_ids = set()
	seen_names = set()
	merged: List[CatalogEntry] = []
	for entry in combined:
		if entry.id in seen_ids:
			continue
		seen_ids.add(entry.id)
		key = normalize_name(entry.name)
		if key in seen_names:
			logger.debug(f"[Aggregator] Collapsed near-duplicate '{entry.name}' ({entry.id})")
			continue
		seen_names.add(key)
		merged.append(entry)

	kept = [e for e in merged if not looks_like_spam(e)]
	if len(kept) < len(merged):
		logger.debug(f"[Aggregator] Dropped {len(merged) - len(kept)} spam-like entries")
	logger.debug(f"[Aggregator] {len(combined)} raw -> {len(kept)} merged")
	return kept
