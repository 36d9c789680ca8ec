"""Prisma schema generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codegen.naming import pascal_case
from codegen.relations import (
    build_entity_metas,
    group_relations,
    index_labels,
    plan_relations,
)
from codegen.types import (
    field_default,
    is_nullable,
    is_primary,
    js_string,
    parse_type,
    render_default,
)
from model.types import DatabaseFamily

if TYPE_CHECKING:
    from codegen.relations import ColumnMeta, EntityMeta, Relation
    from model.types import SchemaInput

PRISMA_TYPES = {
    "INT": "Int",
    "INTEGER": "Int",
    "SMALLINT": "Int",
    "TINYINT": "Int",
    "SERIAL": "Int",
    "YEAR": "Int",
    "BIGINT": "BigInt",
    "BIGSERIAL": "BigInt",
    "DECIMAL": "Decimal",
    "NUMERIC": "Decimal",
    "FLOAT": "Float",
    "DOUBLE": "Float",
    "DOUBLE PRECISION": "Float",
    "REAL": "Float",
    "NUMBER": "Float",
    "BOOLEAN": "Boolean",
    "BOOL": "Boolean",
    "DATE": "DateTime",
    "DATETIME": "DateTime",
    "TIMESTAMP": "DateTime",
    "TIME": "DateTime",
    "JSON": "Json",
    "JSONB": "Json",
    "ARRAY": "Json",
    "OBJECT": "Json",
    "MAP": "Json",
    "MIXED": "Json",
    "BLOB": "Bytes",
    "BYTEA": "Bytes",
    "BUFFER": "Bytes",
}
PROVIDERS = {
    DatabaseFamily.MYSQL: "mysql",
    DatabaseFamily.POSTGRESQL: "postgresql",
    DatabaseFamily.MONGODB: "mongodb",
}
ACTIONS = {
    "CASCADE": "Cascade",
    "RESTRICT": "Restrict",
    "SET NULL": "SetNull",
    "NO ACTION": "NoAction",
    "SET DEFAULT": "SetDefault",
}

GENERATOR_BLOCK = 'generator client {\n  provider = "prisma-client-js"\n}'


def datasource_block(family: DatabaseFamily) -> str:
    """Render the datasource block for the family's provider."""
    provider = PROVIDERS.get(family, "mongodb")
    return "\n".join(
        (
            "datasource db {",
            f"  provider = {js_string(provider)}",
            '  url      = env("DATABASE_URL")',
            "}",
        ),
    )


def scalar_line(
    column: ColumnMeta,
    family: DatabaseFamily,
    *,
    single_id: bool,
) -> str:
    """Render one scalar field with its attributes."""
    source = column.field
    type_name = parse_type(source).name
    prisma_type = PRISMA_TYPES.get(type_name, "String")
    mongo = family == DatabaseFamily.MONGODB
    object_id = mongo and type_name == "OBJECTID"

    attributes: list[str] = []
    if single_id and is_primary(source):
        attributes.append("@id")
    if source.get("autoIncrement"):
        attributes.append("@default(autoincrement())")
    elif object_id and is_primary(source):
        attributes.append("@default(auto())")
    elif default := field_default(source):
        value = render_default(default, now="now()", string=js_string)
        attributes.append(f"@default({value})")
    if source.get("unique") and not is_primary(source):
        attributes.append("@unique")
    if mongo and source.get("name") == "_id":
        attributes.append('@map("_id")')
    if object_id:
        attributes.append("@db.ObjectId")

    optional = "?" if is_nullable(source) else ""
    line = f"  {column.member} {prisma_type}{optional}"
    return f"{line} {' '.join(attributes)}" if attributes else line


def forward_line(relation: Relation) -> str:
    """Render the relation field on the referencing model."""
    reference = relation.reference
    arguments = [
        js_string(relation_name(relation)),
        f"fields: [{relation.column.member}]",
        f"references: [{relation.referenced_member}]",
    ]
    if action := ACTIONS.get(reference.on_delete):
        arguments.append(f"onDelete: {action}")
    if action := ACTIONS.get(reference.on_update):
        arguments.append(f"onUpdate: {action}")

    optional = "?" if is_nullable(relation.column.field) else ""
    target = relation.target.model_name
    return f"  {relation.name} {target}{optional} @relation({', '.join(arguments)})"


def inverse_line(relation: Relation) -> str:
    """Render the back-reference on the referenced model."""
    cardinality = "?" if relation.column.field.get("unique") else "[]"
    source = relation.source.model_name
    return (
        f"  {relation.inverse_name} {source}{cardinality} "
        f"@relation({js_string(relation_name(relation))})"
    )


def relation_name(relation: Relation) -> str:
    """Name shared by both sides of a relation."""
    return pascal_case(
        f"{relation.source.model_name}_{relation.target.model_name}_{relation.column.name}",
        "Relation",
    )


def render_model(
    meta: EntityMeta,
    family: DatabaseFamily,
    forwards: list[Relation],
    inverses: list[Relation],
) -> str:
    """Render one model block."""
    primaries = [column.member for column in meta.columns if is_primary(column.field)]
    single_id = len(primaries) == 1

    lines = [scalar_line(column, family, single_id=single_id) for column in meta.columns]
    lines.extend(forward_line(relation) for relation in forwards)
    lines.extend(inverse_line(relation) for relation in inverses)
    lines.append("")
    if len(primaries) > 1:
        lines.append(f"  @@id([{', '.join(primaries)}])")
    lines.append(f"  @@map({js_string(meta.table_name)})")

    body = "\n".join(lines)
    return f"model {meta.model_name} {{\n{body}\n}}"


def generate_prisma(
    schema: SchemaInput,
    family: DatabaseFamily = DatabaseFamily.POSTGRESQL,
) -> str:
    """Generate a complete ``schema.prisma`` for every entity of the schema."""
    collections = schema.get("collections") or []
    if not collections:
        return ""

    metas = build_entity_metas(collections)
    owned, inverse = group_relations(plan_relations(metas, index_labels(metas)))
    models = [
        render_model(meta, family, owned[meta.table_name], inverse[meta.table_name])
        for meta in metas
    ]
    return "\n\n".join((GENERATOR_BLOCK, datasource_block(family), *models)) + "\n"
