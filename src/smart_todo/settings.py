from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - OPENAI_API_KEY: API key for the instruction interpreter
    - OPENAI_BASE_URL: optional OpenAI-compatible endpoint
    - OPENAI_MODEL: chat model used for categorization and instructions (default 'gpt-4o-mini')
    - OPENAI_TIMEOUT: request timeout in seconds (default 30)
    - TODO_CATEGORIES: comma-separated categories suggested to the categorizer
    - LOG_LEVEL: 'DEBUG', 'INFO' (default), 'WARNING' or 'ERROR'
    - LOG_FORMAT: 'console' (default) or 'json'
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    openai_api_key: Optional[str]
    openai_base_url: Optional[str]
    openai_model: str
    openai_timeout: int
    todo_categories: List[str]
    log_level: str
    log_format: str


_DEFAULT_CATEGORIES = "Work,Personal,Shopping,Health,Finance,Other"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _parse_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default)).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}") from exc


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        # Star will be handled in main via allow_origins=["*"]
        return ["*"]
    return _parse_list(value)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    log_format = _get_env("LOG_FORMAT", "console").strip().lower()
    if log_format not in {"console", "json"}:
        log_format = "console"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        openai_api_key=_get_optional_env("OPENAI_API_KEY"),
        openai_base_url=_get_optional_env("OPENAI_BASE_URL"),
        openai_model=_get_env("OPENAI_MODEL", "gpt-4o-mini").strip(),
        openai_timeout=_parse_int("OPENAI_TIMEOUT", 30),
        todo_categories=_parse_list(_get_env("TODO_CATEGORIES", _DEFAULT_CATEGORIES)),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_format=log_format,
    )
