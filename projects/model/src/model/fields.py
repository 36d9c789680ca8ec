"""Recursive operations over an entity's field tree."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from model.types import Entity, Field


class FieldLocation(NamedTuple):
    """A field together with the list that owns it."""

    node: Field
    container: list[Field]


def locate(fields: list[Field], field_id: str | None) -> FieldLocation | None:
    """Find a field by id anywhere in the tree, depth first in display order."""
    if not field_id:
        return None
    for field in fields:
        if field.get("id") == field_id:
            return FieldLocation(field, fields)
        if children := field.get("children"):
            if location := locate(children, field_id):
                return location
    return None


def iter_fields(fields: list[Field]) -> Iterator[Field]:
    """Walk the tree in pre-order."""
    for field in fields:
        yield field
        yield from iter_fields(field.get("children") or [])


def entity_fields(entity: Entity) -> list[Field]:
    """Return the top-level field list of an entity, creating it when absent."""
    return entity["data"].setdefault("fields", [])


def field_exists(entity: Entity | None, field_id: str | None) -> bool:
    """Check whether the entity's tree contains a field with the given id."""
    if entity is None or not field_id:
        return False
    return locate(entity.get("data", {}).get("fields") or [], field_id) is not None


def remove_field(fields: list[Field], field_id: str) -> Field | None:
    """Detach a field (and its subtree) from whichever list owns it."""
    if location := locate(fields, field_id):
        index = next(
            i for i, field in enumerate(location.container) if field is location.node
        )
        del location.container[index]
        return location.node
    return None


def reassign_field_ids(fields: list[Field], make_id: Callable[[], str]) -> None:
    """Give every field in the tree a fresh id."""
    for field in iter_fields(fields):
        field["id"] = make_id()
