"""
Franchise grouping.
Collapses sequels, editions and sub-lines of one series to a single key.
"""

import re

from .models import CatalogEntry


# Series whose sub-lines would otherwise slip past the diversity cap
MEGA_FRANCHISES = (
	"call of duty",
	"battlefield",
	"medal of honor",
	"crysis",
	"arma",
	"company of heroes",
	"total war",
)

RE_EDITION = re.compile(r"\b(remastered|definitive|ultimate|deluxe|goty|edition|unlimited|complete)\b", re.I)
RE_ROMAN = re.compile(r"\b(ii|iii|iv|v|vi|vii|viii|ix|x)\b", re.I)
RE_NUMBER = re.compile(r"\b\d{1,4}\b")
RE_SPACES = re.compile(r"\s+")


def _starts_with_word(text: str, prefix: str) -> bool:
	return text == prefix or (text.startswith(prefix) and not text[len(prefix)].isalnum())


def franchise_key(name: str) -> str:
	n = (name or "").lower().strip().replace("–", "-").replace("—", "-")

	for root in MEGA_FRANCHISES:
		if _starts_with_word(n, root):
			return root

	# Subtitles: "Dark Souls: Remastered", "Game - Episode 2"
	cut = n.find(":")
	if cut > 0:
		n = n[:cut]
	cut = n.find(" - ")
	if cut > 0:
		n = n[:cut]

	n = RE_EDITION.sub("", n)
	n = RE_ROMAN.sub("", n)
	n = RE_NUMBER.sub("", n)
	key = RE_SPACES.sub(" ", n).strip()
	# Only reached by direct callers: digit-only names ("2048") are dropped as spam before ranking
	return key or RE_SPACES.sub(" ", (name or "").lower()).strip()


def release_year(entry: CatalogEntry) -> int:
	"""Release year, 0 when unknown."""
	return entry.released.year if entry.released else 0
