"""Structurally comparable copies of the project state."""

from __future__ import annotations

from dataclasses import dataclass, field
from hashlib import sha256
from json import dumps, loads
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class Snapshot:
    """A serialized state, compared and hashed by its content digest.

    Keys are sorted before serialization, so two states holding the same data
    produce equal snapshots regardless of dict insertion order.
    """

    digest: str
    payload: str = field(compare=False, repr=False)

    @classmethod
    def capture(cls, state: Mapping[str, Any]) -> Snapshot:
        """Serialize ``state`` into a canonical snapshot."""
        payload = dumps(state, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        return cls(sha256(payload.encode()).hexdigest(), payload)

    def restore(self) -> Any:
        """Deserialize a fresh copy of the captured state."""
        return loads(self.payload)
