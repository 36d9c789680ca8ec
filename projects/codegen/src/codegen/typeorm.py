"""TypeORM entity class generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from codegen.naming import Casing, camel_case
from codegen.relations import (
    build_entity_metas,
    group_relations,
    index_labels,
    plan_relations,
)
from codegen.sql import is_numeric_type, map_type
from codegen.templating import render
from codegen.types import (
    DefaultKind,
    enum_values,
    field_default,
    is_nullable,
    is_primary,
    parse_type,
    sql_string,
)
from model.types import DatabaseFamily

if TYPE_CHECKING:
    from codegen.relations import ColumnMeta, EntityMeta, Relation
    from model.types import SchemaInput

TS_TYPES = {
    **dict.fromkeys(
        (
            "INT",
            "INTEGER",
            "BIGINT",
            "SMALLINT",
            "TINYINT",
            "SERIAL",
            "BIGSERIAL",
            "DECIMAL",
            "FLOAT",
            "DOUBLE",
            "DOUBLE PRECISION",
            "REAL",
            "YEAR",
            "NUMBER",
        ),
        "number",
    ),
    **dict.fromkeys(("BOOLEAN", "BOOL"), "boolean"),
    **dict.fromkeys(("BLOB", "BYTEA", "BUFFER"), "Buffer"),
    **dict.fromkeys(("DATE", "DATETIME", "TIMESTAMP", "TIME"), "Date"),
    **dict.fromkeys(("JSON", "JSONB", "OBJECT", "MAP", "MIXED"), "Record<string, unknown>"),
    "ARRAY": "unknown[]",
}
LENGTH_TYPES = frozenset({"VARCHAR", "CHAR"})
IMPORT_ORDER = (
    "Entity",
    "Column",
    "PrimaryColumn",
    "PrimaryGeneratedColumn",
    "Index",
    "ManyToOne",
    "OneToMany",
    "JoinColumn",
)


@dataclass
class Member:
    """A class member: its decorators and its property declaration."""

    decorators: list[str]
    declaration: str


@dataclass
class EntityFile:
    """Everything rendered into one entity file."""

    class_name: str
    table_name: str
    imports: set[str] = field(default_factory=lambda: {"Entity"})
    related: list[str] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)


def object_literal(options: list[tuple[str, str]]) -> str:
    """Render ``key: value`` pairs as a TypeScript object literal."""
    return "{ " + ", ".join(f"{key}: {value}" for key, value in options) + " }"


def column_options(column: ColumnMeta, family: DatabaseFamily) -> list[tuple[str, str]]:
    """Build the ``@Column`` options of a field."""
    source = column.field
    sql_type = parse_type({"type": map_type(source, family)})
    options = [("name", sql_string(column.name))]

    if sql_type.name == "ENUM" and (values := enum_values(source)):
        options.append(("type", "'enum'"))
        options.append(("enum", f"[{', '.join(sql_string(v) for v in values)}]"))
    else:
        options.append(("type", sql_string(sql_type.name.lower())))
        numbers = sql_type.int_params()
        if sql_type.name in LENGTH_TYPES and numbers and numbers[0] > 0:
            options.append(("length", str(numbers[0])))
        if sql_type.name == "DECIMAL" and numbers:
            options.append(("precision", str(numbers[0])))
            if len(numbers) > 1:
                options.append(("scale", str(numbers[1])))

    if (
        source.get("unsigned")
        and family == DatabaseFamily.MYSQL
        and is_numeric_type(sql_type.name)
    ):
        options.append(("unsigned", "true"))
    if is_nullable(source):
        options.append(("nullable", "true"))
    if source.get("unique"):
        options.append(("unique", "true"))

    if default := field_default(source):
        match default.kind:
            case DefaultKind.NOW:
                options.append(("default", "() => 'CURRENT_TIMESTAMP'"))
            case DefaultKind.STRING:
                options.append(("default", sql_string(default.text)))
            case _:
                options.append(("default", default.text))
    return options


def column_member(
    column: ColumnMeta,
    family: DatabaseFamily,
    entity: EntityFile,
) -> Member:
    """Build the decorated property of one field."""
    source = column.field
    decorators: list[str] = []

    if is_primary(source) and source.get("autoIncrement"):
        entity.imports.add("PrimaryGeneratedColumn")
        name = sql_string(column.name)
        decorators.append(f"@PrimaryGeneratedColumn({object_literal([('name', name)])})")
    elif is_primary(source):
        entity.imports.add("PrimaryColumn")
        options = column_options(column, family)[:2]
        decorators.append(f"@PrimaryColumn({object_literal(options)})")
    else:
        if source.get("index"):
            entity.imports.add("Index")
            decorators.append("@Index()")
        entity.imports.add("Column")
        decorators.append(f"@Column({object_literal(column_options(column, family))})")

    ts_type = TS_TYPES.get(parse_type(source).name, "string")
    optional = "?" if is_nullable(source) else ""
    return Member(decorators, f"{column.member}{optional}: {ts_type};")


def forward_member(relation: Relation, entity: EntityFile) -> Member:
    """Build the ``@ManyToOne`` side of a relation."""
    entity.imports.update(("ManyToOne", "JoinColumn"))
    target = relation.target.model_name
    parameter = camel_case(target, "item")
    options = [
        ("onDelete", sql_string(relation.reference.on_delete or "NO ACTION")),
        ("onUpdate", sql_string(relation.reference.on_update or "NO ACTION")),
    ]
    join = [
        ("name", sql_string(relation.column.name)),
        ("referencedColumnName", sql_string(relation.referenced_member)),
    ]
    optional = "?" if is_nullable(relation.column.field) else ""
    return Member(
        [
            f"@ManyToOne(() => {target}, ({parameter}) => "
            f"{parameter}.{relation.inverse_name}, {object_literal(options)})",
            f"@JoinColumn({object_literal(join)})",
        ],
        f"{relation.name}{optional}: {target};",
    )


def inverse_member(relation: Relation, entity: EntityFile) -> Member:
    """Build the ``@OneToMany`` back-reference on the referenced entity."""
    entity.imports.add("OneToMany")
    source = relation.source.model_name
    parameter = camel_case(source, "item")
    return Member(
        [f"@OneToMany(() => {source}, ({parameter}) => {parameter}.{relation.name})"],
        f"{relation.inverse_name}: {source}[];",
    )


def render_entity(
    meta: EntityMeta,
    family: DatabaseFamily,
    forwards: list[Relation],
    inverses: list[Relation],
) -> str:
    """Render one entity file."""
    entity = EntityFile(meta.model_name, meta.table_name)
    entity.members.extend(column_member(column, family, entity) for column in meta.columns)
    entity.members.extend(forward_member(relation, entity) for relation in forwards)
    entity.members.extend(inverse_member(relation, entity) for relation in inverses)

    related = [relation.target.model_name for relation in forwards]
    related.extend(relation.source.model_name for relation in inverses)
    entity.related = [
        name for name in dict.fromkeys(related) if name != entity.class_name
    ]

    return render(
        "typeorm_entity.ts.j2",
        class_name=entity.class_name,
        table_name=entity.table_name,
        imports=[name for name in IMPORT_ORDER if name in entity.imports],
        related=entity.related,
        members=entity.members,
    )


def generate_typeorm(
    schema: SchemaInput,
    family: DatabaseFamily = DatabaseFamily.POSTGRESQL,
) -> str:
    """Generate one TypeORM entity file per entity of the schema."""
    collections = schema.get("collections") or []
    if not collections:
        return ""

    metas = build_entity_metas(
        collections,
        member_casing=Casing.CAMEL,
        model_prefix="E",
        model_fallback="Entity",
    )
    owned, inverse = group_relations(plan_relations(metas, index_labels(metas)))
    files = [
        render_entity(meta, family, owned[meta.table_name], inverse[meta.table_name])
        for meta in metas
    ]
    return "\n".join(files)
