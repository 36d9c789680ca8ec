"""Laravel migration generation.

One ``create_<table>_table`` migration per entity, followed by a single
migration adding every foreign key, so referenced tables always exist before
their constraints are declared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from codegen.relations import (
    build_entity_metas,
    group_relations,
    index_labels,
    plan_relations,
)
from codegen.sql import constraint_name, is_numeric_type, map_type
from codegen.templating import render
from codegen.types import (
    DefaultKind,
    DefaultValue,
    enum_values,
    field_default,
    is_nullable,
    is_primary,
    parse_type,
    php_string,
)
from model.types import DatabaseFamily

if TYPE_CHECKING:
    from codegen.relations import ColumnMeta, EntityMeta, Relation
    from model.types import SchemaInput

DEFAULT_DATE_PREFIX = "0001_01_01"

COLUMN_METHODS = {
    "INT": "integer",
    "INTEGER": "integer",
    "SERIAL": "integer",
    "YEAR": "year",
    "BIGINT": "bigInteger",
    "BIGSERIAL": "bigInteger",
    "SMALLINT": "smallInteger",
    "TINYINT": "tinyInteger",
    "CHAR": "char",
    "TEXT": "text",
    "LONGTEXT": "longText",
    "FLOAT": "double",
    "DOUBLE": "double",
    "DOUBLE PRECISION": "double",
    "REAL": "double",
    "BOOLEAN": "boolean",
    "DATE": "date",
    "DATETIME": "dateTime",
    "TIMESTAMP": "timestamp",
    "TIME": "time",
    "JSON": "json",
    "JSONB": "jsonb",
    "UUID": "uuid",
    "BLOB": "binary",
    "BYTEA": "binary",
}


@dataclass
class ForeignKey:
    """A named foreign key statement."""

    name: str
    statement: str


@dataclass
class ForeignKeyTable:
    """Foreign keys added to one table."""

    name: str
    keys: list[ForeignKey] = field(default_factory=list)


def column_call(column: ColumnMeta, family: DatabaseFamily) -> str:
    """Render the ``$table->type('column', ...)`` call of a field."""
    source = column.field
    name = php_string(column.name)

    if is_primary(source) and source.get("autoIncrement"):
        return "$table->id()" if column.name == "id" else f"$table->id({name})"

    parsed = parse_type({"type": map_type(source, family)})
    numbers = parsed.int_params()
    match parsed.name:
        case "VARCHAR":
            return f"$table->string({name}, {numbers[0] if numbers else 255})"
        case "DECIMAL":
            precision = numbers[0] if numbers else 10
            scale = numbers[1] if len(numbers) > 1 else 2
            return f"$table->decimal({name}, {precision}, {scale})"
        case "ENUM" if enum_values(source):
            values = ", ".join(php_string(value) for value in enum_values(source))
            return f"$table->enum({name}, [{values}])"
    return f"$table->{COLUMN_METHODS.get(parsed.name, 'string')}({name})"


def column_line(column: ColumnMeta, family: DatabaseFamily) -> str:
    """Render a full column statement with its modifiers."""
    source = column.field
    line = column_call(column, family)
    if line.startswith("$table->id("):
        return f"{line};"

    if (
        source.get("unsigned")
        and family == DatabaseFamily.MYSQL
        and is_numeric_type(parse_type(source).name)
    ):
        line += "->unsigned()"
    if is_nullable(source):
        line += "->nullable()"
    if source.get("unique"):
        line += "->unique()"
    if source.get("index") and not is_primary(source) and not source.get("unique"):
        line += "->index()"
    match field_default(source):
        case DefaultValue(kind=DefaultKind.NOW):
            line += "->useCurrent()"
        case DefaultValue(kind=DefaultKind.STRING, text=text):
            line += f"->default({php_string(text)})"
        case DefaultValue(text=text):
            line += f"->default({text})"
    return f"{line};"


def table_lines(meta: EntityMeta, family: DatabaseFamily) -> list[str]:
    """Render the body of a create-table migration."""
    lines = [column_line(column, family) for column in meta.columns]
    keys = [
        php_string(column.name)
        for column in meta.columns
        if is_primary(column.field) and not column.field.get("autoIncrement")
    ]
    if len(keys) == 1:
        lines.append(f"$table->primary({keys[0]});")
    elif keys:
        lines.append(f"$table->primary([{', '.join(keys)}]);")
    return lines


def foreign_key(relation: Relation, position: int, names: set[str]) -> ForeignKey:
    """Render one ``$table->foreign(...)`` chain."""
    reference = relation.reference
    table = relation.source.table_name
    column = relation.column.name
    name = constraint_name(
        reference.constraint_name,
        f"fk_{table}_{column}_{position}",
        names,
    )
    statement = (
        f"$table->foreign({php_string(column)}, {php_string(name)})"
        f"->references({php_string(relation.referenced_column)})"
        f"->on({php_string(relation.target.table_name)})"
    )
    if reference.on_delete:
        statement += f"->onDelete({php_string(reference.on_delete.lower())})"
    if reference.on_update:
        statement += f"->onUpdate({php_string(reference.on_update.lower())})"
    return ForeignKey(name, f"{statement};")


def generate_laravel(
    schema: SchemaInput,
    family: DatabaseFamily = DatabaseFamily.MYSQL,
    date_prefix: str = DEFAULT_DATE_PREFIX,
) -> str:
    """Generate Laravel migrations for every entity of the schema.

    ``date_prefix`` starts every migration file name; the default keeps the
    output identical across runs.
    """
    collections = schema.get("collections") or []
    if not collections:
        return ""

    metas = build_entity_metas(collections)
    owned, _ = group_relations(plan_relations(metas, index_labels(metas)))

    files = [
        render(
            "laravel_create_table.php.j2",
            file_name=f"{date_prefix}_{position:06d}_create_{meta.table_name}_table.php",
            table_name=meta.table_name,
            lines=table_lines(meta, family),
        )
        for position, meta in enumerate(metas, start=1)
    ]

    names: set[str] = set()
    tables: list[ForeignKeyTable] = []
    for meta in metas:
        if relations := owned[meta.table_name]:
            table = ForeignKeyTable(meta.table_name)
            table.keys.extend(
                foreign_key(relation, position, names)
                for position, relation in enumerate(relations, start=1)
            )
            tables.append(table)

    if tables:
        position = len(metas) + 1
        files.append(
            render(
                "laravel_foreign_keys.php.j2",
                file_name=f"{date_prefix}_{position:06d}_add_foreign_keys.php",
                tables=tables,
            ),
        )
    return "\n".join(files)
