"""
Catalog search client for the RAWG video game database.
Maps RAWG's JSON records onto CatalogEntry objects.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol

import httpx
from loguru import logger

from .models import CatalogEntry


class CatalogError(RuntimeError):
	pass


class CatalogSearchClient(Protocol):
	async def search(self, query: str, limit: int) -> List[CatalogEntry]:
		...

	async def details(self, game_id: int) -> Optional[str]:
		...


def parse_release_date(value: Any) -> Optional[date]:
	"""RAWG sends 'YYYY-MM-DD' or null; anything else is treated as unknown."""
	if not value or not isinstance(value, str):
		return None
	try:
		return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
	except ValueError:
		return None


def _names(items: Any, nested: Optional[str] = None) -> List[str]:
	names = []
	for item in items or []:
		if not isinstance(item, dict):
			continue
		if nested:
			item = item.get(nested) or {}
		name = item.get("name")
		if isinstance(name, str) and name.strip():
			names.append(name.strip())
	return names


def parse_game(data: Dict[str, Any]) -> Optional[CatalogEntry]:
	"""Convert one RAWG result into a CatalogEntry; None when it has no usable id or name."""
	try:
		game_id = int(data.get("id"))
	except (TypeError, ValueError):
		return None
	name = data.get("name")
	if not isinstance(name, str) or not name.strip():
		return None

	platforms = _names(data.get("platforms"), nested="platform") or _names(data.get("parent_platforms"), nested="platform")
	metacritic = data.get("metacritic")
	return CatalogEntry(
		id=game_id,
		name=name.strip(),
		released=parse_release_date(data.get("released")),
		genres=_names(data.get("genres")),
		platforms=platforms,
		ratings_count=max(0, int(data.get("ratings_count") or 0)),
		metacritic=int(metacritic) if isinstance(metacritic, (int, float)) else None,
		slug=data.get("slug") or None,
	)


class RawgClient:
	"""
	Thin async wrapper over GET /games?search=... and GET /games/{id}
	The httpx client is expected to carry the RAWG base URL and timeout.
	"""

	def __init__(self, http: httpx.AsyncClient, api_key: Optional[str]):
		self._http = http
		self._api_key = api_key

	async def search(self, query: str, limit: int) -> List[CatalogEntry]:
		if not self._api_key:
			raise CatalogError("RAWG API key missing")
		params = {"search": query, "page_size": limit, "key": self._api_key}
		logger.debug(f"[Catalog] GET games search='{query}' page_size={limit}")

		try:
			res = await self._http.get("games", params=params)
			res.raise_for_status()
			payload = res.json()
		except httpx.HTTPStatusError as e:
			raise CatalogError(f"RAWG returned HTTP {e.response.status_code}") from e
		except httpx.HTTPError as e:
			raise CatalogError(f"RAWG request failed: {e}") from e
		except ValueError as e:
			raise CatalogError("RAWG returned invalid JSON") from e

		results = payload.get("results") if isinstance(payload, dict) else None
		entries = []
		for raw in results or []:
			if not isinstance(raw, dict):
				continue
			entry = parse_game(raw)
			if entry is not None:
				entries.append(entry)
		logger.debug(f"[Catalog] '{query}' -> {len(entries)} results")
		return entries

	async def details(self, game_id: int) -> Optional[str]:
		"""Plain-text description from GET /games/{id}; None when RAWG has none."""
		if not self._api_key:
			raise CatalogError("RAWG API key missing")
		logger.debug(f"[Catalog] GET games/{game_id}")

		try:
			res = await self._http.get(f"games/{game_id}", params={"key": self._api_key})
			res.raise_for_status()
			payload = res.json()
		except httpx.HTTPStatusError as e:
			raise CatalogError(f"RAWG details for {game_id} returned HTTP {e.response.status_code}") from e
		except httpx.HTTPError as e:
			raise CatalogError(f"RAWG details request for {game_id} failed: {e}") from e
		except ValueError as e:
			raise CatalogError(f"RAWG details for {game_id} returned invalid JSON") from e

		description = payload.get("description_raw") if isinstance(payload, dict) else None
		if not isinstance(description, str) or not description.strip():
			return None
		return description
