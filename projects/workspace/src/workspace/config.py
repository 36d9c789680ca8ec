"""Environment configuration."""

from __future__ import annotations

from datetime import timedelta
from logging import getLogger
from os import environ
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from history import DEFAULT_MAX_SIZE, DEFAULT_RETENTION, HistoryEngine
from workspace.persistence import JsonFileStorage

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = getLogger(__name__)

ENV_PREFIX = "SCHEMA_ARCHITECT_"
DEFAULT_RETENTION_MS = int(DEFAULT_RETENTION.total_seconds() * 1000)
DEFAULT_STORAGE_PATH = "~/.schema-architect/project.json"


class Settings(NamedTuple):
    """Runtime settings read from the environment."""

    history_max_size: int = DEFAULT_MAX_SIZE
    history_retention: timedelta = DEFAULT_RETENTION
    storage_path: Path = Path(DEFAULT_STORAGE_PATH).expanduser()
    api_url: str = ""


def positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    """Read a positive integer variable, falling back to ``default``."""
    key = f"{ENV_PREFIX}{name}"
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s value %r, using %d", key, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive, using %d", key, default)
        return default
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Read every setting once from ``env`` (the process environment by default)."""
    env = environ if env is None else env
    retention_ms = positive_int(env, "HISTORY_RETENTION_MS", DEFAULT_RETENTION_MS)
    storage_path = env.get(f"{ENV_PREFIX}STORAGE_PATH", "").strip() or DEFAULT_STORAGE_PATH
    return Settings(
        history_max_size=positive_int(env, "HISTORY_MAX_SIZE", DEFAULT_MAX_SIZE),
        history_retention=timedelta(milliseconds=retention_ms),
        storage_path=Path(storage_path).expanduser(),
        api_url=env.get(f"{ENV_PREFIX}API_URL", "").strip(),
    )


def create_history(settings: Settings) -> HistoryEngine:
    """Build a history engine with the configured limits."""
    return HistoryEngine(
        max_size=settings.history_max_size,
        retention=settings.history_retention,
    )


def create_storage(settings: Settings) -> JsonFileStorage:
    """Build the file storage at the configured path."""
    return JsonFileStorage(settings.storage_path)
