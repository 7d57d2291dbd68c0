"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

RESOLVER_STRATEGIES = {"generative", "lookup"}
IMAGE_MODES = {"eager", "lazy"}


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str = ""
    gemini_api_key: str = ""
    resolver_strategy: str = "generative"
    text_model: str = "gemini-2.0-flash"
    image_model: str = "gemini-2.0-flash-exp"
    max_candidates: int = 12
    places_search_limit: int = 15
    places_language: str = "en"
    image_mode: str = "lazy"
    enrich_max_concurrency: int = 0
    default_phone_region: Optional[str] = None
    worker_port: int = 9000

    @property
    def images_eager(self) -> bool:
        return self.image_mode == "eager"


def require(value: str, name: str) -> str:
    """Return ``value`` or raise ConfigError naming the missing variable."""
    if not value:
        raise ConfigError(f"{name} must be set in the environment.")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    gemini_api_key = os.getenv("GEMINI_API_KEY", "")
    resolver_strategy = os.getenv("RESOLVER_STRATEGY", "generative").strip().lower()
    text_model = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.0-flash")
    image_model = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.0-flash-exp")
    max_candidates = int(os.getenv("MAX_CANDIDATES", "12"))
    places_search_limit = int(os.getenv("PLACES_SEARCH_LIMIT", "15"))
    places_language = os.getenv("PLACES_LANGUAGE", "en")
    image_mode = os.getenv("IMAGE_MODE", "lazy").strip().lower()
    enrich_max_concurrency = int(os.getenv("ENRICH_MAX_CONCURRENCY", "0"))
    default_phone_region_raw = os.getenv("DEFAULT_PHONE_REGION")
    default_phone_region = default_phone_region_raw.strip().upper() if default_phone_region_raw else None
    worker_port = int(os.getenv("WORKER_PORT", "9000"))

    if resolver_strategy not in RESOLVER_STRATEGIES:
        raise ConfigError(
            f"RESOLVER_STRATEGY must be one of {sorted(RESOLVER_STRATEGIES)}, got {resolver_strategy!r}"
        )
    if image_mode not in IMAGE_MODES:
        logger.warning("IMAGE_MODE=%s is not recognised; falling back to lazy.", image_mode)
        image_mode = "lazy"

    if not gemini_api_key:
        logger.warning("GEMINI_API_KEY is not configured; generation requests will fail.")
    if resolver_strategy == "lookup" and not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places requests will fail.")

    return Settings(
        google_api_key=google_api_key,
        gemini_api_key=gemini_api_key,
        resolver_strategy=resolver_strategy,
        text_model=text_model,
        image_model=image_model,
        max_candidates=max_candidates,
        places_search_limit=places_search_limit,
        places_language=places_language,
        image_mode=image_mode,
        enrich_max_concurrency=enrich_max_concurrency,
        default_phone_region=default_phone_region,
        worker_port=worker_port,
    )
