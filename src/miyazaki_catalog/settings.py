"""
Configuration helpers for the catalog database and embedding provider.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError


DEFAULT_DB_PATH = "~/.miyazaki_catalog/catalog.duckdb"
ENV_DB_PATH = "MIYAZAKI_CATALOG_DB_PATH"
ENV_EMBEDDING_TIMEOUT = "MIYAZAKI_CATALOG_EMBEDDING_TIMEOUT"

DEFAULT_EMBEDDING_MODEL = "gemini-embedding-001"
DEFAULT_EMBEDDING_TIMEOUT = 10.0
MAX_EMBEDDING_CHARS = 6000

_TRUTHY = {"1", "true", "yes", "on"}


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) MIYAZAKI_CATALOG_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_seconds(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number of seconds, got {raw!r}"
        ) from None
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive number of seconds, got {raw!r}")
    return value


@dataclass(frozen=True)
class EmbeddingSettings:
    """Embedding provider configuration.

    The provider is considered disabled when no API key is set; callers
    check ``enabled`` instead of testing the key themselves.
    """

    api_key: str | None = None
    model: str = DEFAULT_EMBEDDING_MODEL
    timeout_seconds: float = DEFAULT_EMBEDDING_TIMEOUT
    max_chars: int = MAX_EMBEDDING_CHARS

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_env(cls) -> EmbeddingSettings:
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        model = (
            os.getenv("GEMINI_EMBEDDING_MODEL")
            or os.getenv("GOOGLE_EMBEDDING_MODEL")
            or DEFAULT_EMBEDDING_MODEL
        )
        timeout = _env_seconds(ENV_EMBEDDING_TIMEOUT, DEFAULT_EMBEDDING_TIMEOUT)
        return cls(api_key=api_key, model=model, timeout_seconds=timeout)


@dataclass(frozen=True)
class CatalogSettings:
    """Top-level application settings."""

    db_path: str
    embedding: EmbeddingSettings = field(default_factory=EmbeddingSettings)
    backfill_on_search: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, db_path: str | None = None) -> CatalogSettings:
        return cls(
            db_path=resolve_db_path(db_path),
            embedding=EmbeddingSettings.from_env(),
            backfill_on_search=_env_flag("MIYAZAKI_CATALOG_BACKFILL_ON_SEARCH", True),
            log_level=os.getenv("MIYAZAKI_CATALOG_LOG_LEVEL", "INFO").upper(),
            log_json=_env_flag("MIYAZAKI_CATALOG_LOG_JSON", False),
        )
