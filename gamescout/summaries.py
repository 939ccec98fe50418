"""
One-sentence store blurbs for returned games, written by the LLM in a single call.
"""

from typing import Dict, List, Optional

import httpx
from loguru import logger

from .models import CatalogEntry


SUMMARY_PROMPT = (
	"You write short store blurbs for video games.\n"
	"Rules:\n"
	"- One sentence per game, in English, max 20 words.\n"
	"- Focus on what the player does and the game's vibe.\n"
	"- Do NOT mention platforms, release dates or review scores.\n"
	"- Answer with one line per game: ID|summary"
)


class SummaryError(RuntimeError):
	pass


MAX_DESCRIPTION_WORDS = 60
MAX_DESCRIPTION_CHARS = 350


def trim_description(description: str, max_words: int = MAX_DESCRIPTION_WORDS, max_chars: int = MAX_DESCRIPTION_CHARS) -> str:
	"""Collapse whitespace, then keep the first max_words words and at most max_chars characters."""
	words = (description or "").split()
	return " ".join(words[:max_words])[:max_chars].strip()


def compact_text(entry: CatalogEntry, description: Optional[str] = None) -> str:
	"""Name plus a trimmed description; genres stand in when there is no description."""
	text = entry.name
	desc = trim_description(description) if description else ""
	if desc:
		text += ". " + desc
	elif entry.genres:
		text += ". Genres: " + ", ".join(entry.genres)
	return text


def parse_summaries(content: str, known_ids: List[int]) -> Dict[int, str]:
	"""Read 'ID|summary' lines, ignoring anything malformed or for unknown ids."""
	summaries: Dict[int, str] = {}
	for line in content.strip().strip("`").splitlines():
		parts = line.strip().split("|", 1)
		if len(parts) != 2:
			continue
		try:
			game_id = int(parts[0].strip())
		except ValueError:
			continue
		summary = parts[1].strip()
		if summary and game_id in known_ids:
			summaries[game_id] = summary
	return summaries


class GameSummaryService:
	def __init__(self, http: httpx.AsyncClient, api_key: Optional[str], model: str = "gpt-4o-mini", project_id: Optional[str] = None):
		self._http = http
		self._api_key = api_key
		self.model = model
		self._project_id = project_id

	async def summarize(self, entries: List[CatalogEntry], descriptions: Optional[Dict[int, str]] = None) -> Dict[int, str]:
		"""One blurb per entry id; `descriptions` maps ids to catalog descriptions when known."""
		if not entries:
			return {}
		if not self._api_key:
			raise SummaryError("LLM API key missing")

		descriptions = descriptions or {}
		lines = []
		for e in entries:
			lines += [f"ID: {e.id}", f"TEXT: {compact_text(e, descriptions.get(e.id))}", "---"]
		headers = {"Authorization": f"Bearer {self._api_key}"}
		if self._project_id:
			headers["OpenAI-Project"] = self._project_id
		body = {
			"model": self.model,
			"max_completion_tokens": 300,
			"messages": [
				{"role": "system", "content": SUMMARY_PROMPT},
				{"role": "user", "content": "\n".join(lines)},
			],
		}

		try:
			res = await self._http.post("chat/completions", json=body, headers=headers)
		except httpx.HTTPError as e:
			raise SummaryError(f"Summary request failed: {e}") from e
		if res.status_code >= 400:
			logger.error(f"[Summaries] LLM error {res.status_code}: {res.text[:300]}")
			raise SummaryError(f"Summary LLM returned HTTP {res.status_code}")

		try:
			data = res.json()
			content = data["choices"][0]["message"]["content"] or ""
		except (ValueError, KeyError, IndexError, TypeError) as e:
			raise SummaryError("Summary response had no message content") from e

		usage = data.get("usage") if isinstance(data, dict) else None
		if usage:
			logger.info(
				f"[Summaries] Usage prompt={usage.get('prompt_tokens')} completion={usage.get('completion_tokens')} total={usage.get('total_tokens')}"
			)
		summaries = parse_summaries(content, [e.id for e in entries])
		logger.debug(f"[Summaries] {len(summaries)}/{len(entries)} games summarized")
		return summaries
