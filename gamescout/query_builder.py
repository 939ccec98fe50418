"""
Catalog query construction.
Builds the main full-text search string and the per-title hint searches from an Intent.
"""

import re
from dataclasses import dataclass, field
from typing import List

from .models import Intent


RE_FILLER = re.compile(r"\b(game|where|we|play|in|as|the|a|an)\b", re.I)
RE_SPACES = re.compile(r"\s+")
MAX_HINTS = 2


@dataclass
class CatalogQueries:
	main_query: str
	hint_queries: List[str] = field(default_factory=list)


def clean_user_text(query: str) -> str:
	"""Remove filler words ("game where we play as ...") and collapse whitespace."""
	return RE_SPACES.sub(" ", RE_FILLER.sub("", query or "")).strip()


def hint_queries(titles: List[str], from_fallback: bool, max_hints: int = MAX_HINTS) -> List[str]:
	"""Up to max_hints distinct, trimmed titles; none for fallback intents."""
	if from_fallback:
		return []
	hints: List[str] = []
	seen = set()
	for t in titles:
		if not t or not t.strip():
			continue
		t = t.strip()
		if t.casefold() in seen:
			continue
		seen.add(t.casefold())
		hints.append(t)
		if len(hints) >= max_hints:
			break
	return hints


def build_queries(query: str, intent: Intent, from_fallback: bool, max_hints: int = MAX_HINTS) -> CatalogQueries:
	main = " ".join([clean_user_text(query), " ".join(intent.include)])
	return CatalogQueries(
		main_query=RE_SPACES.sub(" ", main).strip(),
		hint_queries=hint_queries(intent.titles, from_fallback, max_hints),
	)
