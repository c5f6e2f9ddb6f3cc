"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "catalog")
    default_per_page: int = int(_get_env("DEFAULT_PER_PAGE", "12"))
    new_arrivals_days: int = int(_get_env("NEW_ARRIVALS_DAYS", "30"))
    meta_taxonomy: str = _get_env("META_TAXONOMY", "meta")
    listing_image_style: str = _get_env("LISTING_IMAGE_STYLE", "clp_small")
    thumbnail_image_style: str = _get_env("THUMBNAIL_IMAGE_STYLE", "mini")
    suggest_size: int = int(_get_env("SUGGEST_SIZE", "10"))
    search_category_names: bool = _get_env("SEARCH_CATEGORY_NAMES", "true").lower() in {"1", "true", "yes"}
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
