"""
Run one search from the command line, without the HTTP server.

This script:
1) Loads settings from the environment (.env supported)
2) Wires the same engine the API uses
3) Prints the picks with their reasons (or the full JSON response)

Usage:
    python -m scripts.search_query "medieval game with dragons" --limit 5
    python -m scripts.search_query "police chase" --json
"""

import argparse
import asyncio
import json

import httpx
from loguru import logger

from api import build_engine, to_response
from gamescout.config import configure_logging, get_settings


async def run(query: str, limit: int, summarize: bool):
	settings = get_settings()
	configure_logging(settings)
	async with httpx.AsyncClient(base_url=settings.llm_base_url, timeout=settings.llm_timeout_seconds) as llm_http, \
			httpx.AsyncClient(base_url=settings.rawg_base_url, timeout=settings.rawg_timeout_seconds) as rawg_http:
		engine, _ = build_engine(settings, llm_http, rawg_http)
		return await engine.search(query, limit=settings.clamp_limit(limit), summarize=summarize)


def main(args):
	if not args.query.strip():
		logger.error("Query cannot be empty.")
		return 2

	result = asyncio.run(run(args.query, args.limit, args.summarize))

	if args.json:
		print(json.dumps(to_response(result).model_dump(by_alias=True), indent=2, ensure_ascii=False))
		return 0

	d = result.debug
	logger.info("=" * 60)
	logger.info(f"Query: {args.query}")
	logger.info(f"Catalog query: '{d.rawg_query}' | titles={d.titles} | fallback={d.llm_fallback}")
	if d.llm_error:
		logger.warning(f"LLM: {d.llm_error}")
	if d.rawg_error:
		logger.warning(f"Catalog: {d.rawg_error}")
	logger.info("=" * 60)
	for n, item in enumerate(result.items, start=1):
		print(f"{n:2d}. {item.title}")
		for reason in item.why:
			print(f"      - {reason}")
		if item.summary:
			print(f"      {item.summary}")
	logger.info(f"{len(result.items)} items in {result.took_ms} ms")
	return 0


if __name__ == "__main__":
	parser = argparse.ArgumentParser(description="GameScout one-off search")
	parser.add_argument("query", help="Free-text request, e.g. 'open world game with dragons'")
	parser.add_argument("--limit", type=int, default=None, help="Number of results (default 10, max 20)")
	parser.add_argument("--summarize", action="store_true", help="Ask the LLM for a one-line blurb per game")
	parser.add_argument("--json", action="store_true", help="Print the API-shaped JSON response")
	raise SystemExit(main(parser.parse_args()))
