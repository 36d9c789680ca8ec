"""Relation resolution against the current schema graph.

References are resolved at generation time, never cached, so renamed or
removed targets are always reflected in the generated code. A reference
whose target entity cannot be found resolves to ``None`` and is skipped by
every generator.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, NamedTuple, TypeAlias

from codegen.naming import (
    Casing,
    label_key,
    pascal_case,
    snake_case,
    to_identifier,
    unique_name,
)
from codegen.types import is_primary, referential_action

if TYPE_CHECKING:
    from collections.abc import Iterable

    from model.types import Entity, Field

logger = getLogger(__name__)


class Reference(NamedTuple):
    """A field's declared reference to another entity."""

    table: str
    column: str | None
    column_id: str | None
    on_delete: str
    on_update: str
    constraint_name: str | None


class ColumnMeta(NamedTuple):
    """A top-level field with its entity-unique column and member names."""

    field: Field
    name: str
    member: str


@dataclass
class EntityMeta:
    """Generated names for one entity and the lookups used to resolve into it."""

    entity: Entity
    label: str
    table_name: str
    model_name: str
    columns: list[ColumnMeta] = field(default_factory=list)
    by_field_id: dict[str, str] = field(default_factory=dict)
    by_name: dict[str, str] = field(default_factory=dict)
    members: dict[str, str] = field(default_factory=dict)
    names: set[str] = field(default_factory=set)

    @property
    def primary_column(self) -> str | None:
        """Name of the first primary-key column, if any."""
        return next(
            (column.name for column in self.columns if is_primary(column.field)),
            None,
        )

    def lookup(self, column: str) -> str | None:
        """Find a column name by a user-supplied column label."""
        return self.by_name.get(label_key(column)) or self.by_name.get(
            snake_case(column, ""),
        )


class ResolvedReference(NamedTuple):
    """A reference whose target entity and column were found."""

    reference: Reference
    target: EntityMeta
    column: str


LabelIndex: TypeAlias = dict[str, EntityMeta]


def reference_of(field: Field) -> Reference | None:
    """Read the explicit foreign key or document ``ref`` declared on a field."""
    if field.get("foreignKey"):
        table = str(field.get("referencesTable") or "").strip()
        column = str(field.get("referencesColumn") or "").strip() or None
        column_id = str(field.get("referencesColumnId") or "").strip() or None
        if not table or not (column or column_id):
            return None
        return Reference(
            table=table,
            column=column,
            column_id=column_id,
            on_delete=referential_action(field.get("onDelete")),
            on_update=referential_action(field.get("onUpdate")),
            constraint_name=str(field.get("fkConstraintName") or "").strip() or None,
        )

    if table := str(field.get("ref") or "").strip():
        return Reference(table, None, None, "", "", None)
    return None


def member_separator(casing: Casing) -> str:
    """Suffix separator for unique member names in the given casing."""
    return "_" if casing == Casing.SNAKE else ""


def entity_fields(entity: Entity) -> list[Field]:
    """Top-level fields of an entity, tolerating missing data."""
    return (entity.get("data") or {}).get("fields") or []


def build_entity_metas(
    collections: Iterable[Entity],
    *,
    member_casing: Casing = Casing.SNAKE,
    model_prefix: str = "M",
    model_fallback: str = "Model",
) -> list[EntityMeta]:
    """Derive table, model, column and member names for every entity.

    Table and model names are unique across the project. Column names are
    unique within their entity; member names (in ``member_casing``) seed the
    entity's member registry, which relation names are later drawn from.
    """
    tables: set[str] = set()
    models: set[str] = set()
    metas: list[EntityMeta] = []

    for position, entity in enumerate(collections, start=1):
        label = str((entity.get("data") or {}).get("label") or "").strip()
        table_name = unique_name(snake_case(label, f"table_{position}"), tables)
        model_name = unique_name(
            pascal_case(label, f"{model_fallback}{position}", prefix=model_prefix),
            models,
            separator="",
        )
        meta = EntityMeta(entity, label, table_name, model_name)
        column_names: set[str] = set()

        for index, column in enumerate(entity_fields(entity), start=1):
            raw_name = column.get("name")
            name = unique_name(snake_case(raw_name, f"column_{index}"), column_names)
            member = unique_name(
                to_identifier(raw_name, f"field_{index}", member_casing),
                meta.names,
                separator=member_separator(member_casing),
            )
            meta.columns.append(ColumnMeta(column, name, member))
            meta.members[name] = member
            if (field_id := column.get("id")) and isinstance(field_id, str):
                meta.by_field_id.setdefault(field_id, name)
            meta.by_name.setdefault(label_key(raw_name), name)
            meta.by_name.setdefault(snake_case(raw_name, name), name)

        metas.append(meta)

    return metas


def index_labels(metas: Iterable[EntityMeta]) -> LabelIndex:
    """Index entities by trimmed, case-insensitive label; first match wins."""
    metas = list(metas)
    index: LabelIndex = {}
    for meta in metas:
        if meta.label:
            index.setdefault(label_key(meta.label), meta)
    # Generated table names resolve too, after every real label
    for meta in metas:
        index.setdefault(meta.table_name, meta)
    return index


def resolve_column(reference: Reference, target: EntityMeta) -> str:
    """Pick the referenced column: by id, then by name, then normalized, then "id"."""
    if reference.column_id and (name := target.by_field_id.get(reference.column_id)):
        return name
    if reference.column:
        return target.lookup(reference.column) or snake_case(reference.column, "id")
    if reference.column_id:
        return "id"
    return target.primary_column or "id"


def resolve(field: Field, index: LabelIndex) -> ResolvedReference | None:
    """Resolve a field's reference, or return None when it dangles."""
    reference = reference_of(field)
    if reference is None:
        return None

    target = index.get(label_key(reference.table))
    if target is None:
        logger.debug(
            "Skipping reference from %s to unknown entity %s",
            field.get("name"),
            reference.table,
        )
        return None

    return ResolvedReference(reference, target, resolve_column(reference, target))


class Relation(NamedTuple):
    """A resolved many-to-one relation and the names of both of its sides."""

    source: EntityMeta
    column: ColumnMeta
    target: EntityMeta
    reference: Reference
    referenced_column: str
    name: str
    inverse_name: str

    @property
    def referenced_member(self) -> str:
        """Member name of the referenced column on the target."""
        return self.target.members.get(self.referenced_column, self.referenced_column)


def plan_relations(
    metas: list[EntityMeta],
    index: LabelIndex,
    casing: Casing = Casing.CAMEL,
) -> list[Relation]:
    """Resolve every reference and name both sides of each relation.

    Forward names are reserved on every entity before any inverse name, and
    both come from the same per-entity registry as the entity's own members,
    so a back-reference can never shadow a field or a forward relation.
    """
    separator = member_separator(casing)
    forwards: list[tuple[EntityMeta, ColumnMeta, ResolvedReference, str]] = []
    for meta in metas:
        for column in meta.columns:
            if (resolved := resolve(column.field, index)) is None:
                continue
            base = to_identifier(resolved.target.model_name, "relation", casing)
            name = unique_name(base, meta.names, separator)
            forwards.append((meta, column, resolved, name))

    relations: list[Relation] = []
    for meta, column, resolved, name in forwards:
        base = to_identifier(meta.model_name, "items", casing)
        inverse_name = unique_name(base, resolved.target.names, separator)
        relations.append(
            Relation(
                source=meta,
                column=column,
                target=resolved.target,
                reference=resolved.reference,
                referenced_column=resolved.column,
                name=name,
                inverse_name=inverse_name,
            ),
        )
    return relations


def group_relations(
    relations: list[Relation],
) -> tuple[dict[str, list[Relation]], dict[str, list[Relation]]]:
    """Group relations by table name of their owning and referenced entity."""
    owned: dict[str, list[Relation]] = defaultdict(list)
    inverse: dict[str, list[Relation]] = defaultdict(list)
    for relation in relations:
        owned[relation.source.table_name].append(relation)
        inverse[relation.target.table_name].append(relation)
    return owned, inverse
