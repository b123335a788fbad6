"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from dq.core.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    database_url: str
    google_api_key: str
    overrides_path: str = "overrides.json"
    lookup_delay_seconds: float = 0.2
    page_size: int = 1000
    rule_workers: int = 4
    fix_workers: int = 1
    server_port: int = 8080


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    google_api_key = os.getenv("GOOGLE_PLACES_API_KEY") or os.getenv("GOOGLE_API_KEY", "")
    overrides_path = os.getenv("DQ_OVERRIDES_PATH", "overrides.json")
    lookup_delay_ms = _int_env("DQ_LOOKUP_DELAY_MS", 200)
    page_size = _int_env("DQ_PAGE_SIZE", 1000, minimum=1)
    rule_workers = _int_env("DQ_RULE_WORKERS", 4, minimum=1)
    fix_workers = _int_env("DQ_FIX_WORKERS", 1, minimum=1)
    server_port = _int_env("PORT", 8080, minimum=1)

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not google_api_key:
        logger.warning("GOOGLE_PLACES_API_KEY is not configured; Google Places lookups are disabled.")

    return Settings(
        database_url=database_url,
        google_api_key=google_api_key,
        overrides_path=overrides_path,
        lookup_delay_seconds=lookup_delay_ms / 1000.0,
        page_size=page_size,
        rule_workers=rule_workers,
        fix_workers=fix_workers,
        server_port=server_port,
    )
