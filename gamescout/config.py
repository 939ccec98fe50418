"""
Configuration module.
Reads settings from environment variables (and an optional .env file).
"""

import os
import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

load_dotenv()


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
	value = os.getenv(name)
	if value is None or not value.strip():
		return default
	return value.strip()


def _env_int(name: str, default: int) -> int:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	try:
		return int(raw)
	except ValueError:
		logger.warning(f"[Config] Invalid integer for {name}='{raw}', using default {default}")
		return default


def _env_float(name: str, default: float) -> float:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	try:
		return float(raw)
	except ValueError:
		logger.warning(f"[Config] Invalid number for {name}='{raw}', using default {default}")
		return default


def _env_flag(name: str, default: bool) -> bool:
	raw = os.getenv(name)
	if raw is None:
		return default
	return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
	"""
	Runtime settings for the API and its collaborators.
	Missing API keys are allowed: the pipeline degrades (fallback intent, empty catalog results).
	"""
	rawg_api_key: Optional[str] = None
	rawg_base_url: str = "https://api.rawg.io/api/"
	rawg_timeout_seconds: float = 8.0
	llm_api_key: Optional[str] = None
	llm_base_url: str = "https://api.openai.com/v1/"
	llm_model: str = "gpt-4o-mini"
	llm_project_id: Optional[str] = None
	llm_timeout_seconds: float = 8.0
	intent_cache_ttl_seconds: int = 1800
	throttle_capacity: int = 5
	throttle_window_seconds: int = 10
	default_limit: int = 10
	max_limit: int = 20
	hint_result_limit: int = 5
	franchise_cap: int = 1
	cache_max_size: int = 10000
	trust_forwarded_for: bool = False
	log_level: str = "INFO"

	@classmethod
	def from_env(cls) -> "Settings":
		return cls(
			rawg_api_key=_env_str("RAWG_API_KEY"),
			rawg_base_url=_env_str("RAWG_BASE_URL", cls.rawg_base_url),
			rawg_timeout_seconds=_env_float("RAWG_TIMEOUT_SECONDS", cls.rawg_timeout_seconds),
			llm_api_key=_env_str("LLM_API_KEY"),
			llm_base_url=_env_str("LLM_BASE_URL", cls.llm_base_url),
			llm_model=_env_str("LLM_MODEL", cls.llm_model),
			llm_project_id=_env_str("LLM_PROJECT_ID"),
			llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", cls.llm_timeout_seconds),
			intent_cache_ttl_seconds=_env_int("INTENT_CACHE_TTL_SECONDS", cls.intent_cache_ttl_seconds),
			throttle_capacity=_env_int("THROTTLE_CAPACITY", cls.throttle_capacity),
			throttle_window_seconds=_env_int("THROTTLE_WINDOW_SECONDS", cls.throttle_window_seconds),
			default_limit=_env_int("DEFAULT_LIMIT", cls.default_limit),
			max_limit=_env_int("MAX_LIMIT", cls.max_limit),
			hint_result_limit=_env_int("HINT_RESULT_LIMIT", cls.hint_result_limit),
			franchise_cap=_env_int("FRANCHISE_CAP", cls.franchise_cap),
			cache_max_size=_env_int("CACHE_MAX_SIZE", cls.cache_max_size),
			trust_forwarded_for=_env_flag("TRUST_FORWARDED_FOR", cls.trust_forwarded_for),
			log_level=(_env_str("LOG_LEVEL", cls.log_level) or cls.log_level).upper(),
		)

	def clamp_limit(self, limit: Optional[int]) -> int:
		"""Apply the default and clamp a requested result count to [1, max_limit]."""
		if limit is None:
			return self.default_limit
		return max(1, min(int(limit), self.max_limit))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
	return Settings.from_env()


def configure_logging(settings: Settings) -> None:
	"""Replace loguru's default sink with one at the configured level."""
	logger.remove()
	logger.add(sys.stderr, level=settings.log_level)
	logger.debug(f"[Config] Logging configured at level {settings.log_level}")
