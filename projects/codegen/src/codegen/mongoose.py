"""Mongoose schema generation for document databases."""

from __future__ import annotations

from json import dumps
from math import isfinite
from re import sub
from typing import TYPE_CHECKING, Any

from codegen.naming import label_key, snake_case, unique_name
from codegen.relations import build_entity_metas, index_labels
from codegen.types import enum_values, field_default, js_string, render_default
from model.types import DatabaseFamily

if TYPE_CHECKING:
    from codegen.relations import EntityMeta, LabelIndex
    from model.types import EntityData, Field, SchemaInput

INDENT = "  "
HEADER = "const mongoose = require('mongoose');\nconst { Schema } = mongoose;"

SCHEMA_TYPES = {
    "String": "String",
    "Number": "Number",
    "Date": "Date",
    "Boolean": "Boolean",
    "Buffer": "Buffer",
    "Map": "Map",
    "Array": "Array",
    "Object": "Object",
    "ObjectId": "Schema.Types.ObjectId",
    "Mixed": "Schema.Types.Mixed",
    "Decimal128": "Schema.Types.Decimal128",
    "UUID": "Schema.Types.UUID",
}
FLAGS = ("required", "unique", "index", "sparse", "immutable")
STRING_FLAGS = ("trim", "lowercase", "uppercase")

# Tri-state schema options: EntityData key -> option name
TRI_STATE_OPTIONS = (
    ("schemaStrictQueryMode", "strictQuery"),
    ("schemaAutoIndexMode", "autoIndex"),
    ("schemaAutoCreateMode", "autoCreate"),
    ("schemaIdVirtualMode", "id"),
    ("schemaUnderscoreIdMode", "_id"),
    ("schemaMinimizeMode", "minimize"),
    ("schemaSkipVersioningMode", "skipVersioning"),
    ("schemaOptimisticConcurrencyMode", "optimisticConcurrency"),
)


def schema_type(type_name: object) -> str:
    """Map a field type to its Mongoose schema type expression."""
    return SCHEMA_TYPES.get(str(type_name or "").strip(), "String")


def tri_state(value: object) -> bool | None:
    """Read ``True``/``False``/``"true"``/``"false"``; anything else is unset."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value in {"true", "false"}:
        return value == "true"
    return None


def optional_number(value: object) -> int | float | None:
    """Parse an optional numeric option; blanks and garbage are unset."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def text(value: object) -> str:
    """Trimmed string form of an optional option."""
    return str(value or "").strip()


def string_options(field: Field) -> list[str]:
    """Options that only apply to String fields."""
    options = [f"{flag}: true" for flag in STRING_FLAGS if field.get(flag)]

    min_length = optional_number(field.get("minLength"))
    if min_length is not None and min_length >= 0:
        options.append(f"minLength: {min_length}")
    max_length = optional_number(field.get("maxLength"))
    if max_length is not None and max_length >= 0:
        options.append(f"maxLength: {max_length}")

    if pattern := text(field.get("matchPattern")):
        flags = str(field.get("matchFlags") or "")
        options.append(f"match: new RegExp({js_string(pattern)}, {js_string(flags)})")

    if values := enum_values(field):
        options.append(f"enum: [{', '.join(js_string(value) for value in values)}]")
    if default := text(field.get("defaultString")):
        options.append(f"default: {js_string(default)}")
    return options


def number_options(field: Field) -> list[str]:
    """Options that only apply to Number fields."""
    options: list[str] = []
    for key, option in (("min", "min"), ("max", "max"), ("defaultNumber", "default")):
        if (number := optional_number(field.get(key))) is not None:
            options.append(f"{option}: {number}")
    return options


def date_options(field: Field) -> list[str]:
    """Options that only apply to Date fields."""
    options: list[str] = []
    match field.get("defaultDateMode"):
        case "now":
            options.append("default: Date.now")
        case "custom" if value := text(field.get("defaultDateValue")):
            options.append(f"default: new Date({js_string(value)})")

    if value := text(field.get("minDate")):
        options.append(f"min: new Date({js_string(value)})")
    if value := text(field.get("maxDate")):
        options.append(f"max: new Date({js_string(value)})")

    expires = optional_number(field.get("expiresSeconds"))
    if expires is not None and expires >= 0:
        options.append(f"expires: {expires}")
    return options


def field_options(field: Field, index: LabelIndex) -> list[str]:
    """Build the ``key: value`` option entries of a leaf field."""
    kind = text(field.get("type"))
    options = [f"type: {schema_type(kind)}"]

    if kind == "ObjectId" and (ref := text(field.get("ref"))):
        target = index.get(label_key(ref))
        options.append(f"ref: {js_string(target.model_name if target else ref)}")
    options.extend(f"{flag}: true" for flag in FLAGS if field.get(flag))

    if alias := text(field.get("alias")):
        options.append(f"alias: {js_string(alias)}")
    if (select := tri_state(field.get("selectMode"))) is not None:
        options.append(f"select: {str(select).lower()}")

    match kind:
        case "String":
            options.extend(string_options(field))
        case "Number":
            options.extend(number_options(field))
        case "Boolean":
            if (default := tri_state(field.get("defaultBooleanMode"))) is not None:
                options.append(f"default: {str(default).lower()}")
        case "Date":
            options.extend(date_options(field))
        case "ObjectId":
            if default := text(field.get("defaultObjectId")):
                options.append(f"default: {js_string(default)}")
        case "Map":
            if of := text(field.get("mapOfType")):
                options.append(f"of: {schema_type(of)}")
        case "Array":
            if of := text(field.get("arrayOfType")):
                options.append(f"of: {schema_type(of)}")

    has_default = any(option.startswith("default:") for option in options)
    if not has_default and (default := field_default(field)):
        value = render_default(default, now="Date.now", string=js_string)
        options.append(f"default: {value}")
    return options


def render_fields(fields: list[Field], index: LabelIndex, depth: int = 1) -> list[str]:
    """Render a field list, recursing into nested children."""
    indent = INDENT * depth
    used: set[str] = set()
    lines: list[str] = []

    for position, field in enumerate(fields, start=1):
        if field.get("name") == "_id":
            continue
        key = unique_name(snake_case(field.get("name"), f"field_{position}"), used)

        if (children := field.get("children")) and isinstance(children, list):
            opening, closing = ("[{", "}]") if field.get("type") == "Array" else ("{", "}")
            lines.append(f"{indent}{key}: {opening}")
            lines.extend(render_fields(children, index, depth + 1))
            lines.append(f"{indent}{closing},")
            continue

        lines.append(f"{indent}{key}: {{ {', '.join(field_options(field, index))} }},")

    return lines


def schema_options(data: EntityData) -> dict[str, Any]:
    """Collect the schema-level options of an entity."""
    options: dict[str, Any] = {}

    if data.get("timestampsEnabled"):
        created, updated = text(data.get("createdAtName")), text(data.get("updatedAtName"))
        if created or updated:
            options["timestamps"] = {
                key: value
                for key, value in (("createdAt", created), ("updatedAt", updated))
                if value
            }
        else:
            options["timestamps"] = True

    if collection := text(data.get("schemaCollectionName")):
        options["collection"] = collection

    strict = data.get("schemaStrictMode")
    if strict == "throw":
        options["strict"] = "throw"
    elif (flag := tri_state(strict)) is not None:
        options["strict"] = flag

    for key, option in TRI_STATE_OPTIONS:
        if (flag := tri_state(data.get(key))) is not None:
            options[option] = flag

    match data.get("schemaVersionKeyMode"):
        case "disable":
            options["versionKey"] = False
        case "custom" if name := text(data.get("schemaVersionKeyName")):
            options["versionKey"] = name

    if data.get("schemaCappedEnabled"):
        capped: dict[str, Any] = {}
        for key, option in (("schemaCappedSize", "size"), ("schemaCappedMax", "max")):
            if (number := optional_number(data.get(key))) and number > 0:
                capped[option] = number
        if (flag := tri_state(data.get("schemaCappedAutoIndexIdMode"))) is not None:
            capped["autoIndexId"] = flag
        options["capped"] = capped or True

    if read := text(data.get("schemaReadPreference")):
        options["read"] = read

    write_concern: dict[str, Any] = {}
    if w := text(data.get("schemaWriteConcernW")):
        number = optional_number(w)
        write_concern["w"] = w if number is None else number
    if (flag := tri_state(data.get("schemaWriteConcernJMode"))) is not None:
        write_concern["j"] = flag
    if (timeout := optional_number(data.get("schemaWriteConcernWtimeout"))) and timeout > 0:
        write_concern["wtimeout"] = timeout
    if write_concern:
        options["writeConcern"] = write_concern

    if locale := text(data.get("schemaCollationLocale")):
        collation: dict[str, Any] = {"locale": locale}
        strength = optional_number(data.get("schemaCollationStrength"))
        if strength is not None and 1 <= strength <= 5:
            collation["strength"] = strength
        if (flag := tri_state(data.get("schemaCollationCaseLevelMode"))) is not None:
            collation["caseLevel"] = flag
        if case_first := text(data.get("schemaCollationCaseFirst")):
            collation["caseFirst"] = case_first
        flag = tri_state(data.get("schemaCollationNumericOrderingMode"))
        if flag is not None:
            collation["numericOrdering"] = flag
        options["collation"] = collation

    return options


def render_schema_options(options: dict[str, Any]) -> str:
    """Render schema options as a JS object literal argument."""
    if not options:
        return ""
    literal = dumps(options, indent=2, ensure_ascii=False)
    return ", " + sub(r'"([A-Za-z_$][\w$]*)":', r"\1:", literal)


def render_model(meta: EntityMeta, index: LabelIndex) -> str:
    """Render the schema and model declarations of one entity."""
    data = meta.entity.get("data") or {}
    model = meta.model_name
    lines = [
        f"const {model}Schema = new Schema({{",
        *render_fields(data.get("fields") or [], index),
        f"}}{render_schema_options(schema_options(data))});",
        "",
        f"const {model} = mongoose.model('{model}', {model}Schema);",
    ]
    return "\n".join(lines)


def generate_mongoose(
    schema: SchemaInput,
    family: DatabaseFamily = DatabaseFamily.MONGODB,
) -> str:
    """Generate a Mongoose module declaring every entity as a model.

    Document schemas look the same for every family, so ``family`` is unused.
    """
    collections = schema.get("collections") or []
    if not collections:
        return ""

    metas = build_entity_metas(collections)
    index = index_labels(metas)
    exports = ", ".join(meta.model_name for meta in metas)
    parts = [
        HEADER,
        *(render_model(meta, index) for meta in metas),
        f"module.exports = {{ {exports} }};",
    ]
    return "\n\n".join(parts) + "\n"
