"""Relational DDL generation for MySQL and PostgreSQL.

Output is ordered so that every table exists before any foreign key is added:
all CREATE TABLE statements, then CREATE INDEX statements, then one
ALTER TABLE ... ADD CONSTRAINT ... FOREIGN KEY per resolved reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from codegen.naming import snake_case, unique_name
from codegen.relations import build_entity_metas, index_labels, reference_of, resolve
from codegen.types import (
    enum_values,
    field_default,
    is_nullable,
    is_primary,
    parse_type,
    render_default,
    sql_string,
)
from model.types import DatabaseFamily

if TYPE_CHECKING:
    from codegen.relations import ColumnMeta, EntityMeta, LabelIndex
    from model.types import Field, SchemaInput

PHYSICAL_TYPES = frozenset(
    {
        "VARCHAR",
        "CHAR",
        "TEXT",
        "LONGTEXT",
        "INT",
        "BIGINT",
        "TINYINT",
        "SMALLINT",
        "DECIMAL",
        "FLOAT",
        "DOUBLE",
        "REAL",
        "DOUBLE PRECISION",
        "SERIAL",
        "BIGSERIAL",
        "BOOLEAN",
        "DATE",
        "DATETIME",
        "TIMESTAMP",
        "TIME",
        "YEAR",
        "INTERVAL",
        "JSON",
        "JSONB",
        "BLOB",
        "BYTEA",
        "XML",
        "ENUM",
        "UUID",
    },
)
NUMERIC_TYPES = ("INT", "BIGINT", "TINYINT", "SMALLINT", "DECIMAL", "FLOAT", "DOUBLE")
SERIAL_TYPES = frozenset({"SERIAL", "BIGSERIAL"})

# Generic (document) type name -> (MySQL, PostgreSQL)
GENERIC_TYPES: dict[str, tuple[str, str]] = {
    "STRING": ("VARCHAR(255)", "VARCHAR(255)"),
    "NUMBER": ("INT", "INT"),
    "BOOLEAN": ("BOOLEAN", "BOOLEAN"),
    "DATE": ("DATETIME", "TIMESTAMP"),
    "OBJECTID": ("VARCHAR(24)", "UUID"),
    "ARRAY": ("JSON", "JSONB"),
    "OBJECT": ("JSON", "JSONB"),
    "MAP": ("JSON", "JSONB"),
    "MIXED": ("JSON", "JSONB"),
    "BUFFER": ("BLOB", "BYTEA"),
}
FALLBACK_TYPE = "VARCHAR(255)"


@dataclass
class ColumnDefinition:
    """Everything needed to render one column line."""

    name: str
    type: str
    unsigned: bool = False
    not_null: bool = False
    identity: str = ""
    unique: bool = False
    default: str | None = None


@dataclass
class TableDefinition:
    """A table with its columns, key, checks and index statements."""

    name: str
    columns: list[ColumnDefinition] = field(default_factory=list)
    primary_keys: list[str] = field(default_factory=list)
    checks: list[str] = field(default_factory=list)
    indexes: list[str] = field(default_factory=list)


def map_type(field: Field, family: DatabaseFamily) -> str:
    """Map a field type to SQL, keeping physical types chosen by the user."""
    parsed = parse_type(field)
    if parsed.name in PHYSICAL_TYPES:
        if parsed.name == "ENUM" and (values := enum_values(field)):
            return f"ENUM({', '.join(sql_string(value) for value in values)})"
        return f"{parsed.name}({parsed.params})" if parsed.params else parsed.name

    mysql, postgres = GENERIC_TYPES.get(parsed.name, (FALLBACK_TYPE, FALLBACK_TYPE))
    return postgres if family == DatabaseFamily.POSTGRESQL else mysql


def is_numeric_type(sql_type: str) -> bool:
    """Check whether a rendered SQL type accepts UNSIGNED."""
    return sql_type.upper().startswith(NUMERIC_TYPES)


def column_definition(
    column: ColumnMeta,
    family: DatabaseFamily,
) -> ColumnDefinition:
    """Build the typed column options for one field."""
    source = column.field
    sql_type = map_type(source, family)
    postgres = family == DatabaseFamily.POSTGRESQL

    identity = ""
    if source.get("autoIncrement"):
        if not postgres:
            identity = "AUTO_INCREMENT"
        elif parse_type(source).name not in SERIAL_TYPES:
            identity = "GENERATED BY DEFAULT AS IDENTITY"

    default = field_default(source)
    return ColumnDefinition(
        name=column.name,
        type=sql_type,
        unsigned=bool(source.get("unsigned"))
        and not postgres
        and is_numeric_type(sql_type),
        not_null=not is_nullable(source) and not is_primary(source),
        identity=identity,
        unique=bool(source.get("unique")),
        default=render_default(
            default,
            now="CURRENT_TIMESTAMP",
            string=sql_string,
            boolean=str.upper,
        )
        if default
        else None,
    )


def render_column(column: ColumnDefinition) -> str:
    """Render a column definition line."""
    parts = [column.name, column.type]
    if column.unsigned:
        parts.append("UNSIGNED")
    if column.not_null:
        parts.append("NOT NULL")
    if column.identity:
        parts.append(column.identity)
    if column.unique:
        parts.append("UNIQUE")
    if column.default is not None:
        parts.append(f"DEFAULT {column.default}")
    return " ".join(parts)


def constraint_name(name: object, fallback: str, used: set[str]) -> str:
    """Normalize a user-supplied or fallback constraint name and reserve it."""
    base = snake_case(str(name or "").strip() or fallback, fallback)
    return unique_name(base, used)


def table_definition(
    meta: EntityMeta,
    family: DatabaseFamily,
    names: set[str],
) -> TableDefinition:
    """Collect the definition of one table, reserving constraint names."""
    table = TableDefinition(meta.table_name)

    for column in meta.columns:
        source = column.field
        table.columns.append(column_definition(column, family))
        if is_primary(source):
            table.primary_keys.append(column.name)

        if expression := str(source.get("checkExpression") or "").strip():
            check = f"CHECK ({expression})"
            if str(source.get("checkConstraintName") or "").strip():
                name = constraint_name(
                    source.get("checkConstraintName"),
                    f"chk_{table.name}_{column.name}",
                    names,
                )
                check = f"CONSTRAINT {name} {check}"
            table.checks.append(check)

        if source.get("index") and not is_primary(source) and not source.get("unique"):
            name = constraint_name(
                source.get("indexName"),
                f"idx_{table.name}_{column.name}",
                names,
            )
            table.indexes.append(f"CREATE INDEX {name} ON {table.name} ({column.name});")

    return table


def render_table(table: TableDefinition) -> str:
    """Render a CREATE TABLE statement."""
    if not table.columns:
        return f"-- Table {table.name} has no fields"

    lines = [render_column(column) for column in table.columns]
    if table.primary_keys:
        lines.append(f"PRIMARY KEY ({', '.join(table.primary_keys)})")
    lines.extend(table.checks)
    body = ",\n".join(f"  {line}" for line in lines)
    return f"CREATE TABLE {table.name} (\n{body}\n);"


def foreign_keys(meta: EntityMeta, index: LabelIndex, names: set[str]) -> list[str]:
    """Render the ALTER TABLE statements for every resolved reference of a table."""
    declared = [column for column in meta.columns if reference_of(column.field)]
    statements: list[str] = []

    for position, column in enumerate(declared, start=1):
        resolved = resolve(column.field, index)
        if resolved is None:
            continue
        reference = resolved.reference
        name = constraint_name(
            reference.constraint_name,
            f"fk_{meta.table_name}_{column.name}_{position}",
            names,
        )
        statement = (
            f"ALTER TABLE {meta.table_name} ADD CONSTRAINT {name} "
            f"FOREIGN KEY ({column.name}) "
            f"REFERENCES {resolved.target.table_name} ({resolved.column})"
        )
        if reference.on_delete:
            statement += f" ON DELETE {reference.on_delete}"
        if reference.on_update:
            statement += f" ON UPDATE {reference.on_update}"
        statements.append(f"{statement};")

    return statements


def generate_sql(
    schema: SchemaInput,
    family: DatabaseFamily = DatabaseFamily.MYSQL,
) -> str:
    """Generate DDL for every entity of the schema."""
    collections = schema.get("collections") or []
    if not collections:
        return ""

    metas = build_entity_metas(collections)
    index = index_labels(metas)
    names: set[str] = set()

    tables = [table_definition(meta, family, names) for meta in metas]
    statements = [render_table(table) for table in tables]
    statements.extend(statement for table in tables for statement in table.indexes)
    statements.extend(
        statement for meta in metas for statement in foreign_keys(meta, index, names)
    )
    return "\n\n".join(statements)
