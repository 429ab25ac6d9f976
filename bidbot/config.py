"""
Runtime configuration for bidbot.

All settings come from environment variables (a local .env is loaded on
first use). Services receive a Settings instance explicitly instead of
reading the environment themselves.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./bidbot.db"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"

SEARCH_CACHE_TTL_SECONDS = 1800          # 30 minutes
SEARCH_HISTORY_LIMIT = 50
SEARCH_HISTORY_TTL_SECONDS = 86400 * 7   # 7 days
PROPOSAL_HISTORY_LIMIT = 100
PROPOSAL_HISTORY_TTL_SECONDS = 86400 * 30  # 30 days
ANALYTICS_RETENTION_DAYS = 30
ANALYTICS_MAX_EVENTS = 50_000

# Requests per hour, per platform
DEFAULT_RATE_LIMITS = {
    "upwork": 100,
    "freelancer": 1000,
    "fiverr": 500,
}


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    try:
        return max(minimum, int(os.getenv(name, str(default))))
    except ValueError:
        return default


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    try:
        return max(minimum, float(os.getenv(name, str(default))))
    except ValueError:
        return default


@dataclass
class Settings:
    """Resolved configuration for one process."""
    database_url: str = DEFAULT_DATABASE_URL
    redis_url: Optional[str] = None
    log_level: str = "INFO"

    upwork_api_key: Optional[str] = None
    freelancer_api_key: Optional[str] = None
    fiverr_api_key: Optional[str] = None
    platform_timeout: float = 30.0
    rate_limits: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_RATE_LIMITS))

    openai_api_key: Optional[str] = None
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    openai_model: str = DEFAULT_OPENAI_MODEL
    llm_timeout: float = 60.0

    templates_dir: str = "./data/templates"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    @property
    def ai_enabled(self) -> bool:
        return bool(self.openai_api_key)


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    load_dotenv()

    cors = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    rate_limits = {
        platform: _env_int(f"{platform.upper()}_RATE_LIMIT_PER_HOUR", default, minimum=1)
        for platform, default in DEFAULT_RATE_LIMITS.items()
    }

    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        redis_url=os.getenv("REDIS_URL") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        upwork_api_key=os.getenv("UPWORK_API_KEY") or None,
        freelancer_api_key=os.getenv("FREELANCER_API_KEY") or None,
        fiverr_api_key=os.getenv("FIVERR_API_KEY") or None,
        platform_timeout=_env_float("PLATFORM_TIMEOUT_SECONDS", 30.0, minimum=1.0),
        rate_limits=rate_limits,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL),
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        llm_timeout=_env_float("LLM_TIMEOUT_SECONDS", 60.0, minimum=1.0),
        templates_dir=os.getenv("TEMPLATES_DIR", "./data/templates"),
        cors_origins=[o.strip() for o in cors.split(",") if o.strip()],
    )
