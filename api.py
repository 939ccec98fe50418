"""
FastAPI server exposing the game search API.
Endpoints:
- GET /health: basic health check
- POST /search {"query": "...", "limit": 10, "summarize": false}: returns explained game picks

Startup reads settings from the environment (.env supported), opens the outbound
HTTP clients and wires the search engine. Serve with:
    uvicorn api:app --reload
"""

# Import standard libraries for timing
import time  # measure startup and request latencies
from typing import Any, Dict, List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for request/response models
import httpx  # async HTTP clients for the LLM and the catalog
from fastapi import FastAPI, Request  # FastAPI primitives
from fastapi.responses import JSONResponse  # error payloads with custom status codes
from pydantic import BaseModel, ConfigDict, model_serializer  # schema definitions
from pydantic.alias_generators import to_camel  # camelCase JSON keys

# Import our internal modules for search
from gamescout.cache import MemoryCache  # shared cache for intents and throttle windows
from gamescout.catalog_client import RawgClient  # RAWG catalog client
from gamescout.config import Settings, configure_logging, get_settings  # env-driven settings
from gamescout.intent_extractor import LlmIntentExtractor  # LLM intent extraction
from gamescout.intent_resolver import IntentResolver  # cache -> LLM -> fallback chain
from gamescout.ranking import Ranker  # relevance scoring
from gamescout.search_engine import SearchEngine, SearchResult  # core search engine
from gamescout.summaries import GameSummaryService  # optional one-line blurbs
from gamescout.throttle import Throttle  # per-client admission control

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

EMPTY_QUERY_ERROR = "Query cannot be empty."
THROTTLED_ERROR = "Too many requests. Please wait a few seconds."

# Instantiate the FastAPI application with metadata
app = FastAPI(title="GameScout API", version="1.0.0")  # web app

# Globals that hold the wired components and measured startup time
ENGINE: Optional[SearchEngine] = None  # will point to the initialized engine
THROTTLE: Optional[Throttle] = None  # admission control, shares the engine's cache
SETTINGS: Settings = Settings()  # replaced from the environment at startup
HTTP_CLIENTS: List[httpx.AsyncClient] = []  # closed at shutdown
STARTUP_TIME_S: float = 0.0  # measures how long startup took


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Pydantic model for the search request body; missing fields are validated by hand
class SearchRequest(CamelModel):
	query: Optional[str] = None  # free-text request
	limit: Optional[int] = None  # wanted result count, clamped to [1, MAX_LIMIT]
	summarize: bool = False  # attach a one-sentence blurb per game


# Pydantic model for a single returned game
class SearchItemOut(CamelModel):
	title: str  # catalog display name
	why: List[str]  # up to three short reasons
	summary: Optional[str] = None  # blurb, only present when one was produced

	@model_serializer(mode="wrap")
	def _drop_missing_summary(self, handler) -> Dict[str, Any]:
		data = handler(self)
		if data.get("summary") is None:
			data.pop("summary", None)
		return data


# Pydantic model for the diagnostics block
class SearchDebugOut(CamelModel):
	rawg_query: str
	include: List[str]
	exclude: List[str]
	titles: List[str]
	llm_fallback: bool
	llm_error: Optional[str] = None
	rawg_error: Optional[str] = None
	summary_error: Optional[str] = None


# Pydantic model for the complete search response payload
class SearchResponse(CamelModel):
	items: List[SearchItemOut]
	took_ms: int  # server-side pipeline time in ms
	debug: SearchDebugOut


def build_engine(settings: Settings, llm_http: httpx.AsyncClient, rawg_http: httpx.AsyncClient):
	"""Wire the search engine and throttle around one shared in-memory cache."""
	cache = MemoryCache(max_size=settings.cache_max_size)
	extractor = LlmIntentExtractor(llm_http, settings.llm_api_key, settings.llm_model, settings.llm_project_id)
	resolver = IntentResolver(
		cache,
		extractor,
		timeout_seconds=settings.llm_timeout_seconds,
		cache_ttl_seconds=settings.intent_cache_ttl_seconds,
	)
	engine = SearchEngine(
		resolver,
		RawgClient(rawg_http, settings.rawg_api_key),
		ranker=Ranker(),
		summarizer=GameSummaryService(llm_http, settings.llm_api_key, settings.llm_model, settings.llm_project_id),
		hint_result_limit=settings.hint_result_limit,
		franchise_cap=settings.franchise_cap,
	)
	throttle = Throttle(cache, capacity=settings.throttle_capacity, window_seconds=settings.throttle_window_seconds)
	return engine, throttle


# FastAPI startup hook to initialize the search engine once
@app.on_event("startup")
async def startup_event():
	"""Read settings, open the HTTP clients and build the engine."""
	global ENGINE, THROTTLE, SETTINGS, HTTP_CLIENTS, STARTUP_TIME_S  # refer to module-level globals
	start = time.time()  # start timer for startup latency

	SETTINGS = get_settings()  # env + .env
	configure_logging(SETTINGS)  # apply LOG_LEVEL
	logger.info("[API] Startup: opening HTTP clients and wiring engine...")  # log intent

	if not SETTINGS.llm_api_key:
		logger.warning("[API] LLM_API_KEY not set: every query will use the keyword fallback")
	if not SETTINGS.rawg_api_key:
		logger.warning("[API] RAWG_API_KEY not set: catalog searches will return nothing")

	llm_http = httpx.AsyncClient(base_url=SETTINGS.llm_base_url, timeout=SETTINGS.llm_timeout_seconds)
	rawg_http = httpx.AsyncClient(base_url=SETTINGS.rawg_base_url, timeout=SETTINGS.rawg_timeout_seconds)
	HTTP_CLIENTS = [llm_http, rawg_http]
	ENGINE, THROTTLE = build_engine(SETTINGS, llm_http, rawg_http)

	# Compute and log startup duration
	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s.")  # summary log


@app.on_event("shutdown")
async def shutdown_event():
	"""Close outbound HTTP clients."""
	global ENGINE, THROTTLE, HTTP_CLIENTS
	for client in HTTP_CLIENTS:
		await client.aclose()
	HTTP_CLIENTS = []
	ENGINE, THROTTLE = None, None
	logger.info("[API] Shutdown complete")


def client_key(request: Request) -> str:
	"""Throttle key: the caller's IP, or the first X-Forwarded-For hop when trusted."""
	ip = request.client.host if request.client else "unknown"
	if SETTINGS.trust_forwarded_for:
		forwarded = request.headers.get("x-forwarded-for", "")
		first = forwarded.split(",")[0].strip()
		if first:
			ip = first
	return "throttle:" + ip


def to_response(result: SearchResult) -> SearchResponse:
	d = result.debug
	return SearchResponse(
		items=[SearchItemOut(title=i.title, why=i.why, summary=i.summary) for i in result.items],
		took_ms=result.took_ms,
		debug=SearchDebugOut(
			rawg_query=d.rawg_query,
			include=d.include,
			exclude=d.exclude,
			titles=d.titles,
			llm_fallback=d.llm_fallback,
			llm_error=d.llm_error,
			rawg_error=d.rawg_error,
			summary_error=d.summary_error,
		),
	)


# Simple health endpoint for readiness checks
@app.get("/health")
async def health():
	"""Return minimal health info for liveness/readiness probes."""
	return {
		"status": "ok",  # constant indicator
		"engine_ready": ENGINE is not None,  # True if engine initialized
		"startup_seconds": round(STARTUP_TIME_S, 2)  # startup latency
	}


# Main search endpoint that accepts a free-text query
@app.post("/search", response_model=SearchResponse)
async def search(request: Request, body: Optional[SearchRequest] = None):
	"""Validate, throttle, then run the search pipeline."""
	body = body or SearchRequest()
	query = (body.query or "").strip()
	if not query:  # nothing to search for
		return JSONResponse(status_code=400, content={"error": EMPTY_QUERY_ERROR})

	if ENGINE is None or THROTTLE is None:  # engine must be ready to serve
		logger.warning("[API] Search requested but engine not initialized")  # guard log
		return JSONResponse(status_code=503, content={"error": "Search engine is not ready."})

	key = client_key(request)
	if not THROTTLE.admit(key):  # over the per-window budget
		return JSONResponse(status_code=429, content={"error": THROTTLED_ERROR})

	limit = SETTINGS.clamp_limit(body.limit)  # default and clamp
	logger.debug(f"[API] /search query='{query}' limit={limit} summarize={body.summarize}")  # debug log of input

	# Delegate to the engine
	result = await ENGINE.search(query, limit=limit, summarize=body.summarize)  # run search
	logger.info(f"[API] /search served {len(result.items)} items in {result.took_ms} ms")  # summary
	return to_response(result)
