"""
Runtime configuration.

Values come from the environment; a `.env` file next to this module is loaded
first so local development does not need exported variables.

Environment variables:
- SUPABASE_URL: primary (owner) Supabase project URL (required)
- SUPABASE_KEY: primary Supabase API key (required)
- DASHBOARD_TIMEZONE: IANA zone used for day boundaries and peak hours
- CHAT_HISTORY_TABLE: chat history table in the external project
- CHAT_SESSION_LIMIT: maximum chat rows scanned when listing sessions
- CORS_ALLOW_ORIGINS: comma separated list of allowed origins
- LOG_LEVEL: root logging level
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from domain.errors import ConfigurationError

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_TIMEZONE = "America/Sao_Paulo"
DEFAULT_CHAT_HISTORY_TABLE = "n8n_chat_histories"
DEFAULT_CHAT_SESSION_LIMIT = 2000


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str
    supabase_key: str
    timezone: ZoneInfo
    chat_history_table: str = DEFAULT_CHAT_HISTORY_TABLE
    chat_session_limit: int = DEFAULT_CHAT_SESSION_LIMIT
    cors_allow_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"


def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing environment variable: {name}.")
    return value


def _resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown DASHBOARD_TIMEZONE: {name!r}") from e


def log_level_from_env() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def cors_origins_from_env() -> Tuple[str, ...]:
    origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return tuple(o.strip() for o in origins.split(",") if o.strip())


def settings_from_env() -> Settings:
    """
    Build Settings from the current environment.

    Raises:
        ConfigurationError: if a required variable is missing or invalid
    """

    limit_text = os.getenv("CHAT_SESSION_LIMIT", str(DEFAULT_CHAT_SESSION_LIMIT))
    try:
        chat_session_limit = int(limit_text)
    except ValueError as e:
        raise ConfigurationError(f"CHAT_SESSION_LIMIT must be an integer, got {limit_text!r}") from e

    return Settings(
        supabase_url=_require("SUPABASE_URL"),
        supabase_key=_require("SUPABASE_KEY"),
        timezone=_resolve_timezone(os.getenv("DASHBOARD_TIMEZONE", DEFAULT_TIMEZONE)),
        chat_history_table=os.getenv("CHAT_HISTORY_TABLE", DEFAULT_CHAT_HISTORY_TABLE),
        chat_session_limit=chat_session_limit,
        cors_allow_origins=cors_origins_from_env(),
        log_level=log_level_from_env(),
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Process-wide settings, read once."""
    return settings_from_env()


__all__ = [
    "Settings",
    "cors_origins_from_env",
    "load_settings",
    "log_level_from_env",
    "settings_from_env",
]
