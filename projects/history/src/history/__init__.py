"""Snapshot based undo/redo history."""

from history.engine import (
    DEFAULT_MAX_SIZE,
    DEFAULT_RETENTION,
    HistoryEngine,
    HistoryEntry,
)
from history.snapshot import Snapshot

__all__ = [
    "DEFAULT_MAX_SIZE",
    "DEFAULT_RETENTION",
    "HistoryEngine",
    "HistoryEntry",
    "Snapshot",
]
