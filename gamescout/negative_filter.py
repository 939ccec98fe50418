"""
Negative filtering: drop entries that mention concepts the user excluded.
"""

from typing import Dict, Iterable, Iterator, List, Tuple

from .models import CatalogEntry


# Symmetric on purpose: excluding either near-synonym blocks the whole cluster
EXCLUDE_SYNONYMS: Dict[str, Tuple[str, ...]] = {
	"magic": ("magic", "mage", "wizard", "sorcerer"),
	"wizard": ("wizard", "mage", "sorcerer", "magic"),
}


def expand(tokens: List[str]) -> List[str]:
	"""Each token plus its synonyms, lowercased, without duplicates."""
	words: List[str] = []
	for token in tokens:
		for w in (token,) + EXCLUDE_SYNONYMS.get(token, ()):
			if w not in words:
				words.append(w)
	return words


def exclude(entries: Iterable[CatalogEntry], exclude_tokens: List[str]) -> Iterator[CatalogEntry]:
	"""Yield entries whose name/genres/platforms mention none of the excluded concepts."""
	tokens = [t.strip().lower() for t in exclude_tokens or [] if t and t.strip()]
	if not tokens:
		yield from entries
		return

	blocked_words = expand(tokens)
	for entry in entries:
		haystack = entry.haystack()
		if any(w in haystack for w in blocked_words):
			continue
		yield entry
