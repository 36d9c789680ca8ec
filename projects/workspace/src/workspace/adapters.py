"""Per-family facade over field defaults, naming terms and code generation."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple

from codegen import Target, generate, targets_for
from model.constants import DEFAULT_FIELDS, NEW_FIELD_TYPES, to_family
from model.types import DatabaseFamily

if TYPE_CHECKING:
    from collections.abc import Iterable

    from model.types import Entity, Field


class EntityTerms(NamedTuple):
    """How a family names its entities."""

    singular: str
    plural: str

    @property
    def singular_lower(self) -> str:
        return self.singular.lower()

    @property
    def plural_lower(self) -> str:
        return self.plural.lower()


ENTITY_TERMS = {
    DatabaseFamily.MONGODB: EntityTerms("Collection", "Collections"),
    DatabaseFamily.MYSQL: EntityTerms("Table", "Tables"),
    DatabaseFamily.POSTGRESQL: EntityTerms("Table", "Tables"),
}
LANGUAGES = {
    DatabaseFamily.MONGODB: "javascript",
    DatabaseFamily.MYSQL: "sql",
    DatabaseFamily.POSTGRESQL: "sql",
}
PRIMARY_TARGETS = {
    DatabaseFamily.MONGODB: Target.MONGOOSE,
    DatabaseFamily.MYSQL: Target.SQL,
    DatabaseFamily.POSTGRESQL: Target.SQL,
}


def entity_terms(family: DatabaseFamily | str | None) -> EntityTerms:
    """Entity terms of a family, MongoDB's for unknown families."""
    return ENTITY_TERMS[to_family(family)]


def next_default_entity_name(
    family: DatabaseFamily | str | None,
    existing: Iterable[str | None],
) -> str:
    """First free ``new_<entity>_<n>`` name, compared case-insensitively."""
    base = f"new_{entity_terms(family).singular_lower}"
    used = {text for name in existing if (text := str(name or "").strip().lower())}

    index = 1
    while f"{base}_{index}" in used:
        index += 1
    return f"{base}_{index}"


@dataclass(frozen=True)
class DatabaseAdapter:
    """Everything that differs between database families."""

    family: DatabaseFamily
    language: str
    entity_terms: EntityTerms
    default_field: Field
    new_field_type: str
    targets: tuple[Target, ...]
    primary_target: Target

    def create_default_field(self) -> Field:
        """Fresh copy of the family's primary field."""
        return deepcopy(self.default_field)

    def generate(
        self,
        collections: list[Entity],
        target: Target | str | None = None,
        *,
        collection_id: str | None = None,
        collection_ids: Iterable[str] | None = None,
        **options: Any,
    ) -> str:
        """Generate code for all ``collections``, one of them, or a subset.

        An explicit id set wins over a single id. Scopes that select nothing
        produce an empty string.
        """
        if collection_ids is not None:
            wanted = set(collection_ids)
            scope = [entity for entity in collections if entity["id"] in wanted]
        elif collection_id is not None:
            scope = [entity for entity in collections if entity["id"] == collection_id]
        else:
            scope = collections

        if not scope:
            return ""
        return generate(
            target or self.primary_target,
            {"collections": scope},
            self.family,
            **options,
        )


def create_database_adapter(family: DatabaseFamily | str | None) -> DatabaseAdapter:
    """Build the adapter of a family, MongoDB's for unknown families."""
    family = to_family(family)
    return DatabaseAdapter(
        family=family,
        language=LANGUAGES[family],
        entity_terms=ENTITY_TERMS[family],
        default_field=deepcopy(DEFAULT_FIELDS[family]),
        new_field_type=NEW_FIELD_TYPES[family],
        targets=tuple(targets_for(family)),
        primary_target=PRIMARY_TARGETS[family],
    )
