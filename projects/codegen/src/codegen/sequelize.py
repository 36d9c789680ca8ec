"""Sequelize model definition generation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from codegen.relations import (
    build_entity_metas,
    group_relations,
    index_labels,
    plan_relations,
)
from codegen.sql import map_type
from codegen.templating import render
from codegen.types import (
    enum_values,
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


class SequelizeMode(StrEnum):
    """Output layouts of the Sequelize generator."""

    INIT = "init"
    PER_MODEL = "per_model"


DATA_TYPES = {
    "TEXT": "DataTypes.TEXT",
    "LONGTEXT": "DataTypes.TEXT",
    "INT": "DataTypes.INTEGER",
    "INTEGER": "DataTypes.INTEGER",
    "SERIAL": "DataTypes.INTEGER",
    "BIGINT": "DataTypes.BIGINT",
    "BIGSERIAL": "DataTypes.BIGINT",
    "SMALLINT": "DataTypes.SMALLINT",
    "TINYINT": "DataTypes.TINYINT",
    "YEAR": "DataTypes.INTEGER",
    "BOOLEAN": "DataTypes.BOOLEAN",
    "BOOL": "DataTypes.BOOLEAN",
    "DATE": "DataTypes.DATEONLY",
    "DATETIME": "DataTypes.DATE",
    "TIMESTAMP": "DataTypes.DATE",
    "TIME": "DataTypes.TIME",
    "JSON": "DataTypes.JSON",
    "JSONB": "DataTypes.JSONB",
    "UUID": "DataTypes.UUID",
    "BLOB": "DataTypes.BLOB",
    "BYTEA": "DataTypes.BLOB",
    "REAL": "DataTypes.REAL",
    "DOUBLE": "DataTypes.DOUBLE",
    "DOUBLE PRECISION": "DataTypes.DOUBLE",
    "FLOAT": "DataTypes.FLOAT",
}
SERIAL_TYPES = frozenset({"SERIAL", "BIGSERIAL"})


@dataclass
class Attribute:
    """One model attribute and its rendered option entries."""

    name: str
    options: list[str]


@dataclass
class Model:
    """One ``sequelize.define`` call."""

    name: str
    table_name: str
    attributes: list[Attribute]


def data_type(column: ColumnMeta, family: DatabaseFamily) -> str:
    """Map a field to a ``DataTypes`` expression."""
    parsed = parse_type({"type": map_type(column.field, family)})
    numbers = parsed.int_params()

    match parsed.name:
        case "VARCHAR":
            return f"DataTypes.STRING({numbers[0] if numbers else 255})"
        case "CHAR":
            return f"DataTypes.CHAR({numbers[0] if numbers else 1})"
        case "DECIMAL" if len(numbers) > 1:
            return f"DataTypes.DECIMAL({numbers[0]}, {numbers[1]})"
        case "DECIMAL" if numbers:
            return f"DataTypes.DECIMAL({numbers[0]})"
        case "DECIMAL":
            return "DataTypes.DECIMAL"
        case "ENUM" if values := enum_values(column.field):
            return f"DataTypes.ENUM({', '.join(js_string(value) for value in values)})"
    return DATA_TYPES.get(parsed.name, "DataTypes.STRING")


def attribute(column: ColumnMeta, family: DatabaseFamily) -> Attribute:
    """Build the option entries of one attribute."""
    source = column.field
    options = [
        f"type: {data_type(column, family)}",
        f"field: {js_string(column.name)}",
    ]
    primary = is_primary(source)
    if primary:
        options.append("primaryKey: true")
    if source.get("autoIncrement") or (
        primary and parse_type(source).name in SERIAL_TYPES
    ):
        options.append("autoIncrement: true")
    if not primary:
        options.append(f"allowNull: {str(is_nullable(source)).lower()}")
    if source.get("unique"):
        options.append("unique: true")
    if default := field_default(source):
        value = render_default(default, now="DataTypes.NOW", string=js_string)
        options.append(f"defaultValue: {value}")
    return Attribute(column.member, options)


def association_lines(relation: Relation) -> list[str]:
    """Render the ``belongsTo``/``hasMany`` pair of a relation."""
    source = relation.source.model_name
    target = relation.target.model_name
    foreign_key = js_string(relation.column.member)
    key = js_string(relation.referenced_member)

    forward = [
        f"foreignKey: {foreign_key}",
        f"targetKey: {key}",
        f"as: {js_string(relation.name)}",
    ]
    if relation.reference.on_delete:
        forward.append(f"onDelete: {js_string(relation.reference.on_delete)}")
    if relation.reference.on_update:
        forward.append(f"onUpdate: {js_string(relation.reference.on_update)}")
    inverse = [
        f"foreignKey: {foreign_key}",
        f"sourceKey: {key}",
        f"as: {js_string(relation.inverse_name)}",
    ]
    return [
        f"{source}.belongsTo({target}, {{ {', '.join(forward)} }});",
        f"{target}.hasMany({source}, {{ {', '.join(inverse)} }});",
    ]


def build_model(meta: EntityMeta, family: DatabaseFamily) -> Model:
    """Collect the attributes of one model."""
    attributes = [attribute(column, family) for column in meta.columns]
    return Model(meta.model_name, meta.table_name, attributes)


def generate_sequelize(
    schema: SchemaInput,
    family: DatabaseFamily = DatabaseFamily.POSTGRESQL,
    mode: str = SequelizeMode.INIT,
) -> str:
    """Generate Sequelize models as one initializer or one file per model.

    Unknown modes fall back to the single initializer.
    """
    collections = schema.get("collections") or []
    if not collections:
        return ""

    metas = build_entity_metas(collections)
    owned, _ = group_relations(plan_relations(metas, index_labels(metas)))
    models = [build_model(meta, family) for meta in metas]
    associations = [
        line
        for meta in metas
        for relation in owned[meta.table_name]
        for line in association_lines(relation)
    ]

    template = (
        "sequelize_per_model.js.j2"
        if mode == SequelizeMode.PER_MODEL
        else "sequelize_init.js.j2"
    )
    return render(template, models=models, associations=associations)
