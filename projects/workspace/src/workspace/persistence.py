"""Storage adapters for the project state.

Saving never raises: failures come back as a :class:`SaveResult` so that the
in-memory state stays authoritative whatever happens on disk.
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from errno import EDQUOT, ENOSPC
from json import JSONDecodeError, dumps, loads
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol

if TYPE_CHECKING:
    from model.types import ProjectState

logger = getLogger(__name__)

QUOTA_ERRNOS = frozenset({ENOSPC, EDQUOT})


class SaveResult(NamedTuple):
    """Outcome of a save."""

    ok: bool
    error: Exception | None = None


class StorageAdapter(Protocol):
    """Where a project state is loaded from and saved to."""

    def load(self) -> ProjectState | None: ...

    def save(self, state: ProjectState) -> SaveResult: ...


def is_project_payload(payload: object) -> bool:
    """Check for the ``collections`` and ``edges`` arrays every project needs."""
    return (
        isinstance(payload, Mapping)
        and isinstance(payload.get("collections"), list)
        and isinstance(payload.get("edges"), list)
    )


def is_quota_exceeded(error: BaseException | None) -> bool:
    """Check whether a save failed because the storage is full."""
    if error is None:
        return False
    if isinstance(error, OSError) and error.errno in QUOTA_ERRNOS:
        return True
    message = str(error).lower()
    return "quota" in message or "storage" in message


class JsonFileStorage:
    """Keep the project in a JSON file, replaced atomically on every save."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> ProjectState | None:
        """Read the stored project, or None when missing or unreadable."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as err:
            logger.warning("Could not read project file %s: %s", self.path, err)
            return None

        try:
            payload: Any = loads(text)
        except JSONDecodeError as err:
            logger.warning("Ignoring corrupt project file %s: %s", self.path, err)
            return None
        if not is_project_payload(payload):
            logger.warning("Ignoring project file %s with invalid structure", self.path)
            return None
        return payload

    def save(self, state: ProjectState) -> SaveResult:
        """Write the project next to its destination, then swap it in."""
        temporary = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temporary.write_text(dumps(state, indent=2, ensure_ascii=False), encoding="utf-8")
            temporary.replace(self.path)
        except OSError as err:
            return SaveResult(ok=False, error=err)
        return SaveResult(ok=True)


class MemoryStorage:
    """In-process storage, optionally failing every save with ``error``."""

    def __init__(
        self,
        state: ProjectState | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self.state = deepcopy(state)
        self.error = error
        self.saves = 0

    def load(self) -> ProjectState | None:
        return deepcopy(self.state)

    def save(self, state: ProjectState) -> SaveResult:
        if self.error is not None:
            return SaveResult(ok=False, error=self.error)
        self.state = deepcopy(state)
        self.saves += 1
        return SaveResult(ok=True)
