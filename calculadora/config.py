"""Application settings read from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BCB_API_BASE = "https://api.bcb.gov.br/dados/serie/bcdata.sgs"


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    # Banco Central SGS API
    bcb_api_base: str = DEFAULT_BCB_API_BASE
    bcb_timeout: float = 30.0
    bcb_max_window_years: int = 10

    # Index cache
    cache_ttl_hours: float = 24.0
    cache_path: Optional[str] = None

    # Batch calculation
    calc_concurrency: int = 4

    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            bcb_api_base=os.getenv("BCB_API_BASE", DEFAULT_BCB_API_BASE).strip().rstrip("/"),
            bcb_timeout=float(os.getenv("BCB_TIMEOUT", "30")),
            bcb_max_window_years=int(os.getenv("BCB_MAX_WINDOW_YEARS", "10")),
            cache_ttl_hours=float(os.getenv("CACHE_TTL_HOURS", "24")),
            cache_path=os.getenv("CACHE_PATH") or None,
            calc_concurrency=max(1, int(os.getenv("CALC_CONCURRENCY", "4"))),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "http://localhost:5173")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
