"""
Search engine module.
Resolves the query intent, searches the catalog, filters, ranks and diversifies the results.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from .aggregator import merge
from .catalog_client import CatalogSearchClient
from .diversifier import select
from .explainer import explain
from .intent_resolver import IntentResolver
from .models import CatalogEntry, Intent
from .negative_filter import exclude
from .query_builder import MAX_HINTS, build_queries
from .ranking import Ranker
from .summaries import GameSummaryService


@dataclass
class SearchItem:
	title: str  # catalog display name
	why: List[str]  # short reasons, at most three
	summary: Optional[str] = None  # one-sentence blurb when summaries were requested


@dataclass
class SearchDebug:
	rawg_query: str = ""
	include: List[str] = field(default_factory=list)
	exclude: List[str] = field(default_factory=list)
	titles: List[str] = field(default_factory=list)
	llm_fallback: bool = False
	llm_error: Optional[str] = None
	rawg_error: Optional[str] = None
	summary_error: Optional[str] = None


@dataclass
class SearchResult:
	items: List[SearchItem]
	took_ms: int
	debug: SearchDebug


def _raise_if_cancelled(outcome) -> None:
	# gather(return_exceptions=True) also returns CancelledError; never treat it as a failed call
	if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
		raise outcome


class SearchEngine:
	"""
	High-level search API combining intent resolution, catalog search, filtering, and ranking.
	External failures degrade to documented defaults; only cancellation propagates.
	"""
	def __init__(
		self,
		resolver: IntentResolver,
		catalog: CatalogSearchClient,
		ranker: Optional[Ranker] = None,
		summarizer: Optional[GameSummaryService] = None,
		hint_result_limit: int = 5,
		franchise_cap: int = 1,
		max_hints: int = MAX_HINTS,
	):
		self.resolver = resolver
		self.catalog = catalog
		self.ranker = ranker or Ranker()
		self.summarizer = summarizer
		self.hint_result_limit = hint_result_limit
		self.franchise_cap = franchise_cap
		self.max_hints = max_hints

	async def _descriptions(self, entries: List[CatalogEntry], query: str) -> Dict[int, str]:
		"""Catalog descriptions for the chosen entries, fetched together; failed lookups are skipped."""
		outcomes = await asyncio.gather(*(self.catalog.details(e.id) for e in entries), return_exceptions=True)
		for outcome in outcomes:
			_raise_if_cancelled(outcome)

		descriptions: Dict[int, str] = {}
		for e, outcome in zip(entries, outcomes):
			if isinstance(outcome, Exception):
				logger.warning(f"[Engine] Details for '{e.name}' ({e.id}) failed for '{query}': {outcome}")
				continue
			if outcome:
				descriptions[e.id] = outcome
		logger.debug(f"[Engine] {len(descriptions)}/{len(entries)} descriptions fetched for summaries")
		return descriptions

	async def search(self, query: str, limit: int = 10, summarize: bool = False) -> SearchResult:
		"""Run the full pipeline for one query and return at most `limit` explained items."""
		if not query or not query.strip():
			raise ValueError("Query cannot be empty")
		started = time.perf_counter()

		resolution = await self.resolver.resolve(query)
		queries = build_queries(query, resolution.intent, resolution.from_fallback, self.max_hints)
		# Ranking and bucketing only trust titles that were actually searched for
		intent = Intent(
			include=list(resolution.intent.include),
			exclude=list(resolution.intent.exclude),
			titles=list(queries.hint_queries),
		)
		debug = SearchDebug(
			rawg_query=queries.main_query,
			include=list(intent.include),
			exclude=list(intent.exclude),
			titles=list(intent.titles),
			llm_fallback=resolution.from_fallback,
			llm_error=resolution.error,
		)
		logger.debug(f"[Engine] Catalog queries | main='{queries.main_query}' hints={queries.hint_queries}")

		outcomes = await asyncio.gather(
			self.catalog.search(queries.main_query, limit),
			*(self.catalog.search(h, self.hint_result_limit) for h in queries.hint_queries),
			return_exceptions=True,
		)
		for outcome in outcomes:
			_raise_if_cancelled(outcome)

		main_outcome, hint_outcomes = outcomes[0], outcomes[1:]
		main_results: List[CatalogEntry] = []
		if isinstance(main_outcome, Exception):
			debug.rawg_error = str(main_outcome) or type(main_outcome).__name__
			logger.error(f"[Engine] Main catalog search failed for '{query}': {debug.rawg_error}")
		else:
			main_results = main_outcome

		hint_results: List[List[CatalogEntry]] = []
		for hint, outcome in zip(queries.hint_queries, hint_outcomes):
			if isinstance(outcome, Exception):
				logger.warning(f"[Engine] Hint search '{hint}' failed for '{query}': {outcome}")
				if debug.rawg_error is None:
					debug.rawg_error = f"hint search failed: {outcome}"
				continue
			hint_results.append(outcome)

		candidates = merge(main_results, hint_results)
		candidates = list(exclude(candidates, intent.exclude))
		logger.debug(f"[Engine] {len(candidates)} candidates after dedupe and exclusions")

		ranked = self.ranker.rank(candidates, intent, query)
		chosen = select(ranked, intent.titles, limit, self.franchise_cap)

		summaries = {}
		if summarize and chosen:
			if self.summarizer is None:
				debug.summary_error = "summary service not configured"
			else:
				descriptions = await self._descriptions(chosen, query)
				try:
					summaries = await self.summarizer.summarize(chosen, descriptions)
				except Exception as e:
					debug.summary_error = str(e) or type(e).__name__
					logger.warning(f"[Engine] Summaries failed for '{query}': {debug.summary_error}")

		items = [
			SearchItem(title=e.name, why=explain(e, intent), summary=summaries.get(e.id))
			for e in chosen
		]
		took_ms = int((time.perf_counter() - started) * 1000)
		logger.info(
			f"[Engine] '{query}' -> {len(items)} items of {len(candidates)} candidates in {took_ms} ms "
			f"| fallback={debug.llm_fallback} rawg_error={debug.rawg_error is not None}"
		)
		return SearchResult(items=items, took_ms=took_ms, debug=debug)
