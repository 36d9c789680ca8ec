"""Undo/redo over two bounded stacks of snapshots."""

from __future__ import annotations

from datetime import timedelta
from logging import getLogger
from time import time
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Callable

    from history.snapshot import Snapshot

logger = getLogger(__name__)

DEFAULT_MAX_SIZE = 100
DEFAULT_RETENTION = timedelta(minutes=10)


class HistoryEntry(NamedTuple):
    """A snapshot and the clock reading when it was stacked."""

    snapshot: Snapshot
    created_at: float


class HistoryEngine:
    """Record, undo and redo snapshots of a single document.

    Both stacks are bounded by ``max_size`` and by the ``retention`` window;
    entries older than the window are evicted on every record, undo and redo
    even when the stack is below its size cap.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], float] = time,
    ) -> None:
        if max_size < 1:
            msg = f"History size must be positive, got {max_size}"
            raise ValueError(msg)
        if retention <= timedelta(0):
            msg = f"History retention must be positive, got {retention}"
            raise ValueError(msg)

        self.max_size = max_size
        self.retention = retention
        self._clock = clock
        self._past: list[HistoryEntry] = []
        self._future: list[HistoryEntry] = []
        self._restoring = False

    @property
    def past(self) -> tuple[HistoryEntry, ...]:
        """Entries that can be undone, oldest first."""
        return tuple(self._past)

    @property
    def future(self) -> tuple[HistoryEntry, ...]:
        """Entries that can be redone, oldest first."""
        return tuple(self._future)

    @property
    def is_restoring(self) -> bool:
        """True while an undo or redo is applying a snapshot."""
        return self._restoring

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def is_dirty(self) -> bool:
        return self.can_undo or self.can_redo

    def record(self, snapshot: Snapshot) -> bool:
        """Push ``snapshot`` onto the undo stack and invalidate redo.

        Returns False without touching the stacks while restoring, or when
        ``snapshot`` equals the most recent entry.
        """
        if self._restoring:
            return False
        if self._past and self._past[-1].snapshot == snapshot:
            return False

        self._push(self._past, snapshot)
        self._future.clear()
        logger.debug("Recorded snapshot %s (%d undoable)", snapshot.digest[:12], len(self._past))
        return True

    def undo(self, current: Snapshot, apply: Callable[[Snapshot], None]) -> bool:
        """Apply the previous snapshot, stacking ``current`` for redo."""
        return self._step(self._past, self._future, current, apply, "undo")

    def redo(self, current: Snapshot, apply: Callable[[Snapshot], None]) -> bool:
        """Apply the next snapshot, stacking ``current`` for undo."""
        return self._step(self._future, self._past, current, apply, "redo")

    def prune(self) -> None:
        """Evict expired entries and trim both stacks to ``max_size``."""
        self._trim(self._past)
        self._trim(self._future)

    def clear(self) -> None:
        """Forget every entry."""
        self._past.clear()
        self._future.clear()
        self._restoring = False

    def _step(
        self,
        source: list[HistoryEntry],
        target: list[HistoryEntry],
        current: Snapshot,
        apply: Callable[[Snapshot], None],
        action: str,
    ) -> bool:
        self.prune()
        if not source:
            logger.debug("Nothing to %s", action)
            return False

        entry = source.pop()
        self._push(target, current)
        self._restoring = True
        try:
            apply(entry.snapshot)
        finally:
            self._restoring = False

        logger.debug("Applied %s to snapshot %s", action, entry.snapshot.digest[:12])
        return True

    def _push(self, stack: list[HistoryEntry], snapshot: Snapshot) -> None:
        stack.append(HistoryEntry(snapshot, self._clock()))
        self.prune()

    def _trim(self, stack: list[HistoryEntry]) -> None:
        cutoff = self._clock() - self.retention.total_seconds()
        stack[:] = [entry for entry in stack if entry.created_at >= cutoff]
        if len(stack) > self.max_size:
            del stack[: len(stack) - self.max_size]
