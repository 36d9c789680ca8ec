"""Map field types onto SQLAlchemy TypeEngines for code generation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

from sqlalchemy.types import (
    JSON,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    Integer,
    Interval,
    LargeBinary,
    Numeric,
    SmallInteger,
    String,
    Text,
    Time,
    TypeEngine,
    Uuid,
)

from codegen.sql import map_type
from codegen.types import enum_values, parse_type, python_string

if TYPE_CHECKING:
    from model.types import DatabaseFamily, Field


class TypeInfo(NamedTuple):
    """Holds information about a SQLAlchemy type for code generation."""

    module: str
    name: str
    expression: str


SIMPLE_TYPES: dict[str, type[TypeEngine[Any]]] = {
    "INT": Integer,
    "INTEGER": Integer,
    "SERIAL": Integer,
    "YEAR": Integer,
    "BIGINT": BigInteger,
    "BIGSERIAL": BigInteger,
    "SMALLINT": SmallInteger,
    "TINYINT": SmallInteger,
    "FLOAT": Float,
    "DOUBLE": Float,
    "DOUBLE PRECISION": Float,
    "REAL": Float,
    "TEXT": Text,
    "LONGTEXT": Text,
    "XML": Text,
    "BOOLEAN": Boolean,
    "DATE": Date,
    "DATETIME": DateTime,
    "TIMESTAMP": DateTime,
    "TIME": Time,
    "INTERVAL": Interval,
    "JSON": JSON,
    "JSONB": JSON,
    "UUID": Uuid,
    "BLOB": LargeBinary,
    "BYTEA": LargeBinary,
}


def field_to_sql(field: Field, family: DatabaseFamily) -> TypeEngine[Any]:
    """Convert a field's type to a SQLAlchemy TypeEngine.

    Generic document types are first mapped to the family's SQL type, so
    ``String`` becomes ``VARCHAR(255)`` and then ``String(255)``.
    """
    parsed = parse_type({"type": map_type(field, family)})
    numbers = parsed.int_params()
    sql_type: TypeEngine[Any]

    match parsed.name:
        case "VARCHAR" | "CHAR":
            sql_type = String(numbers[0] if numbers else None)
        case "DECIMAL" | "NUMERIC":
            sql_type = Numeric(
                precision=numbers[0] if numbers else None,
                scale=numbers[1] if len(numbers) > 1 else None,
            )
        case "ENUM" if values := enum_values(field):
            sql_type = Enum(*values)
        case name if name in SIMPLE_TYPES:
            sql_type = SIMPLE_TYPES[name]()
        case _:
            sql_type = String()

    return sql_type


def sql_to_string(sql_type: TypeEngine[Any]) -> str:
    """Convert a SQLAlchemy type to its string representation for code generation."""
    match sql_type:
        case Enum():
            values: list[str] = (
                sql_type.enums
            )  # pyright: ignore [reportUnknownMemberType]
            values_string = ", ".join(python_string(v) for v in values)
            return f"Enum({values_string})"
        case String() if sql_type.length:
            return f"String({sql_type.length})"
        case Numeric() if sql_type.precision and sql_type.scale:
            return f"Numeric({sql_type.precision}, {sql_type.scale})"
        case Numeric() if sql_type.precision:
            return f"Numeric({sql_type.precision})"
        case _:
            return sql_type.__class__.__name__


def sql_to_python(sql_type: TypeEngine[Any]) -> TypeInfo:
    """Get the module, import name and annotation expression of a SQLAlchemy type."""
    match sql_type:
        # Enum types become Literal type hints
        case Enum():
            values: list[str] = (
                sql_type.enums
            )  # pyright: ignore [reportUnknownMemberType]
            values_string = ", ".join(python_string(v) for v in values)
            return TypeInfo(
                module="typing",
                name="Literal",
                expression=f"Literal[{values_string}]",
            )
        case JSON():
            return TypeInfo(module="typing", name="Any", expression="dict[str, Any]")
        case _:
            py_type = sql_type.python_type
            return TypeInfo(
                module=py_type.__module__,
                name=py_type.__name__,
                expression=py_type.__name__,
            )
