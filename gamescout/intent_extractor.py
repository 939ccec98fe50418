"""
Intent extraction via a chat-completions LLM.
Asks the model for a JSON object {include, exclude, titles} describing the user's request.
Any failure surfaces as IntentExtractionError so the resolver can fall back.
"""

import json
from typing import List, Optional, Protocol

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError


SYSTEM_PROMPT = (
	"You turn a video game search request into JSON. "
	"Reply with a single JSON object and nothing else, with exactly these keys: "
	"\"include\": up to 6 short lowercase concepts the player wants (themes, genres, settings, mechanics); "
	"\"exclude\": lowercase concepts the player explicitly does NOT want; "
	"\"titles\": up to 3 canonical BASE GAME titles or franchise names that best match, properly cased. "
	"No DLCs, remasters, bundles or collections in titles."
)


class IntentExtractionError(RuntimeError):
	pass


class ExtractedIntent(BaseModel):
	"""Raw extractor answer; any field may be missing or null."""
	include: Optional[List[str]] = None
	exclude: Optional[List[str]] = None
	titles: Optional[List[str]] = None


class IntentExtractor(Protocol):
	async def extract(self, query: str) -> ExtractedIntent:
		...


def _strip_code_fence(content: str) -> str:
	text = content.strip().strip("`").strip()
	if text.lower().startswith("json"):
		text = text[4:].strip()
	return text


class LlmIntentExtractor:
	"""
	OpenAI-compatible chat-completions client.
	The httpx client is expected to carry the API base URL (e.g. https://api.openai.com/v1/).
	"""

	def __init__(
		self,
		http: httpx.AsyncClient,
		api_key: Optional[str],
		model: str = "gpt-4o-mini",
		project_id: Optional[str] = None,
	):
		self._http = http
		self._api_key = api_key
		self.model = model
		self._project_id = project_id

	async def extract(self, query: str) -> ExtractedIntent:
		if not self._api_key:
			raise IntentExtractionError("LLM API key missing")

		headers = {"Authorization": f"Bearer {self._api_key}"}
		if self._project_id:
			headers["OpenAI-Project"] = self._project_id
		body = {
			"model": self.model,
			"temperature": 0,
			"response_format": {"type": "json_object"},
			"messages": [
				{"role": "system", "content": SYSTEM_PROMPT},
				{"role": "user", "content": query},
			],
		}

		try:
			res = await self._http.post("chat/completions", json=body, headers=headers)
		except httpx.HTTPError as e:
			raise IntentExtractionError(f"LLM request failed: {e}") from e

		if res.status_code >= 400:
			logger.error(f"[Extractor] LLM error {res.status_code}: {res.text[:300]}")
			raise IntentExtractionError(f"LLM returned HTTP {res.status_code}")

		try:
			content = res.json()["choices"][0]["message"]["content"]
		except (ValueError, KeyError, IndexError, TypeError) as e:
			raise IntentExtractionError("LLM response had no message content") from e
		if not content or not str(content).strip():
			raise IntentExtractionError("LLM returned empty content")

		try:
			payload = json.loads(_strip_code_fence(str(content)))
			extracted = ExtractedIntent.model_validate(payload)
		except (json.JSONDecodeError, ValidationError) as e:
			logger.warning(f"[Extractor] Malformed intent for '{query}': {str(content)[:200]}")
			raise IntentExtractionError(f"Malformed intent payload: {e}") from e

		logger.info(
			f"[Extractor] Intent for '{query}' | include={extracted.include} exclude={extracted.exclude} titles={extracted.titles}"
		)
		return extracted
