"""SQLAlchemy declarative model generation."""

from __future__ import annotations

import keyword
from collections import defaultdict
from typing import TYPE_CHECKING, TypeAlias

from codegen.naming import Casing
from codegen.relations import (
    build_entity_metas,
    group_relations,
    index_labels,
    plan_relations,
)
from codegen.type_conversion import field_to_sql, sql_to_python, sql_to_string
from codegen.types import (
    DefaultKind,
    DefaultValue,
    field_default,
    is_nullable,
    is_primary,
    python_string,
)
from model.types import DatabaseFamily

if TYPE_CHECKING:
    from codegen.relations import ColumnMeta, EntityMeta, Relation
    from model.types import SchemaInput

Imports: TypeAlias = dict[str, set[str]]

BASE_CLASS = "Base"
INDENT = "    "


def attribute_name(name: str) -> str:
    """Avoid Python keywords as attribute names."""
    return f"{name}_" if keyword.iskeyword(name) else name


def has_primary_key(meta: EntityMeta) -> bool:
    """Check whether the entity can be mapped as a class."""
    return any(is_primary(column.field) for column in meta.columns)


def render_default(source: DefaultValue, imports: Imports) -> str:
    """Render a default as a ``mapped_column`` keyword argument."""
    match source:
        case DefaultValue(kind=DefaultKind.NOW):
            imports["sqlalchemy"].add("func")
            return "server_default=func.now()"
        case DefaultValue(kind=DefaultKind.BOOLEAN, text=text):
            return f"default={text.capitalize()}"
        case DefaultValue(kind=DefaultKind.NUMBER, text=text):
            return f"default={text}"
        case DefaultValue(text=text):
            return f"default={python_string(text)}"


def render_foreign_key(relation: Relation, imports: Imports) -> str:
    """Render ForeignKey reference from a resolved relation."""
    imports["sqlalchemy"].add("ForeignKey")
    reference = relation.reference
    args = [f'"{relation.target.table_name}.{relation.referenced_column}"']
    if reference.on_delete:
        args.append(f'ondelete="{reference.on_delete}"')
    if reference.on_update:
        args.append(f'onupdate="{reference.on_update}"')
    return f"ForeignKey({', '.join(args)})"


def generate_column_definition(
    column: ColumnMeta,
    family: DatabaseFamily,
    relation: Relation | None,
    imports: Imports,
) -> str:
    """Generate mapped_column definition for a column."""
    source = column.field
    sql_type = field_to_sql(source, family)
    type_info = sql_to_python(sql_type)
    if type_info.module != "builtins":
        imports[type_info.module].add(type_info.name)

    python_type = (
        f"{type_info.expression} | None"
        if is_nullable(source)
        else type_info.expression
    )

    imports["sqlalchemy"].add(sql_type.__class__.__name__)
    args = [f'"{column.name}"', sql_to_string(sql_type)]

    if relation is not None:
        args.append(render_foreign_key(relation, imports))
    if is_primary(source):
        args.append("primary_key=True")
    if source.get("autoIncrement"):
        args.append("autoincrement=True")
    if source.get("unique"):
        args.append("unique=True")
    if source.get("index") and not is_primary(source) and not source.get("unique"):
        args.append("index=True")
    if default := field_default(source):
        args.append(render_default(default, imports))

    imports["sqlalchemy.orm"].update(("Mapped", "mapped_column"))
    name = attribute_name(column.member)
    return f"{INDENT}{name}: Mapped[{python_type}] = mapped_column({', '.join(args)})"


def generate_relationship_definition(relation: Relation, imports: Imports) -> str:
    """Generate the many-to-one side of a relation."""
    imports["sqlalchemy.orm"].update(("Mapped", "relationship"))
    target = relation.target.model_name
    type_def = f"{target} | None" if is_nullable(relation.column.field) else target
    column = attribute_name(relation.column.member)
    back = attribute_name(relation.inverse_name)
    return (
        f"{INDENT}{attribute_name(relation.name)}: Mapped[{type_def}] = relationship("
        f'back_populates="{back}", foreign_keys=[{column}])'
    )


def generate_inverse_definition(relation: Relation, imports: Imports) -> str:
    """Generate the one-to-many back-reference of a relation."""
    imports["sqlalchemy.orm"].update(("Mapped", "relationship"))
    source = relation.source.model_name
    column = attribute_name(relation.column.member)
    back = attribute_name(relation.name)
    return (
        f"{INDENT}{attribute_name(relation.inverse_name)}: Mapped[list[{source}]] = "
        f'relationship(back_populates="{back}", foreign_keys="[{source}.{column}]")'
    )


def generate_class_definition(
    meta: EntityMeta,
    family: DatabaseFamily,
    owned: list[Relation],
    inverse: list[Relation],
    imports: Imports,
) -> str:
    """Generate complete SQLAlchemy class definition for a table."""
    by_column = {relation.column.name: relation for relation in owned}
    lines = [
        f"class {meta.model_name}({BASE_CLASS}):",
        f'{INDENT}"""Model for the {meta.table_name} table."""',
        "",
        f'{INDENT}__tablename__ = "{meta.table_name}"',
        "",
    ]
    lines.extend(
        generate_column_definition(column, family, by_column.get(column.name), imports)
        for column in meta.columns
    )

    relationships = [generate_relationship_definition(r, imports) for r in owned]
    relationships.extend(generate_inverse_definition(r, imports) for r in inverse)
    if relationships:
        lines.append("")
        lines.extend(relationships)
    return "\n".join(lines)


def generate_table_definition(meta: EntityMeta, family: DatabaseFamily, imports: Imports) -> str:
    """Generate SQLAlchemy Table definition for tables without primary keys."""
    args = [f'"{meta.table_name}"', f"{BASE_CLASS}.metadata"]

    for column in meta.columns:
        sql_type = field_to_sql(column.field, family)
        imports["sqlalchemy"].update(("Column", sql_type.__class__.__name__))
        nullable = is_nullable(column.field)
        args.append(
            f'Column("{column.name}", {sql_to_string(sql_type)}, nullable={nullable})',
        )

    imports["sqlalchemy"].add("Table")
    args_str = f",\n{INDENT}".join(args)
    return f"{meta.model_name} = Table(\n{INDENT}{args_str},\n)"


def generate_imports(imports: Imports) -> str:
    """Generate import statements from collected imports."""
    lines = [
        f"from {module} import {', '.join(sorted(names))}" if names else f"import {module}"
        for module, names in imports.items()
    ]
    return "\n".join(lines)


def generate_base_class() -> str:
    """Generate the declarative base class definition."""
    return f'class {BASE_CLASS}(DeclarativeBase):\n{INDENT}"""Base class for all models."""'


def generate_sqlalchemy(
    schema: SchemaInput,
    family: DatabaseFamily = DatabaseFamily.POSTGRESQL,
) -> str:
    """Generate a SQLAlchemy models module for every entity of the schema.

    Entities without a primary key cannot be mapped, so they become plain
    ``Table`` definitions and take part in no relationship.
    """
    collections = schema.get("collections") or []
    if not collections:
        return ""

    metas = build_entity_metas(collections)
    mapped = [meta for meta in metas if has_primary_key(meta)]
    relations = plan_relations(mapped, index_labels(mapped), Casing.SNAKE)
    owned, inverse = group_relations(relations)

    imports: Imports = defaultdict(set)
    imports["__future__"].add("annotations")
    imports["sqlalchemy.orm"].add("DeclarativeBase")

    # Force evaluation to populate imports before rendering them
    models = [
        (
            generate_class_definition(
                meta,
                family,
                owned[meta.table_name],
                inverse[meta.table_name],
                imports,
            )
            if has_primary_key(meta)
            else generate_table_definition(meta, family, imports)
        )
        for meta in metas
    ]

    parts = (
        '"""SQLAlchemy models generated by Schema Architect."""',
        generate_imports(imports),
        generate_base_class(),
        *models,
    )
    return "\n\n\n".join(parts) + "\n"
