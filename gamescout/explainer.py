"""
Short human-readable reasons for why a game was returned.
"""

from typing import List

from .models import CatalogEntry, Intent

MAX_REASONS = 3


def explain(entry: CatalogEntry, intent: Intent) -> List[str]:
	"""Matched concepts, then genres, platforms and release date; at most three lines."""
	reasons: List[str] = []

	haystack = entry.haystack()
	matched = [t for t in intent.include if t and t in haystack]
	if matched:
		reasons.append("Matched: " + ", ".join(matched[:2]))
	if entry.genres:
		reasons.append("Genres: " + ", ".join(entry.genres[:2]))
	if entry.platforms:
		reasons.append("Platforms: " + ", ".join(entry.platforms[:2]))
	if entry.released:
		reasons.append("Release: " + entry.released.isoformat())

	return reasons[:MAX_REASONS]
