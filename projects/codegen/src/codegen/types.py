"""Field attribute helpers shared by every generator.

Generators never read raw field attributes for types, defaults or referential
actions directly; they go through the helpers here so that missing or
malformed attributes degrade to "not set" instead of failing.
"""

from __future__ import annotations

from enum import StrEnum, auto
from json import dumps
from math import isfinite
from re import compile as compile_pattern
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Callable

    from model.types import Field

TYPE_PATTERN = compile_pattern(r"^\s*([A-Za-z][A-Za-z0-9 ]*?)\s*(?:\(([^)]*)\))?\s*$")
NUMBER_PATTERN = compile_pattern(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
INTEGER_PATTERN = compile_pattern(r"^[+-]?\d+$")
NOW_SENTINELS = frozenset({"current_timestamp", "now()", "date.now"})
REFERENTIAL_ACTIONS = ("CASCADE", "RESTRICT", "SET NULL", "NO ACTION", "SET DEFAULT")


class TypeSpec(NamedTuple):
    """A field type split into its upper-cased name and raw parameters."""

    name: str
    params: str

    def int_params(self) -> list[int]:
        """Return the numeric parameters, skipping anything unparsable."""
        return [
            int(part) for part in self.params.split(",") if part.strip().isdigit()
        ]


class DefaultKind(StrEnum):
    """Default value categories, in classification priority order."""

    NOW = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    STRING = auto()


class DefaultValue(NamedTuple):
    """A classified default value with its normalized text."""

    kind: DefaultKind
    text: str


def parse_type(field: Field) -> TypeSpec:
    """Parse ``VARCHAR(255)`` or ``VARCHAR`` plus ``typeParams`` into a TypeSpec.

    Explicit ``typeParams`` win over parameters embedded in the type string.
    """
    raw = str(field.get("type") or "").strip()
    if match := TYPE_PATTERN.match(raw):
        base, embedded = match[1], match[2] or ""
    else:
        base, embedded = raw, ""
    explicit = field.get("typeParams")
    if not isinstance(explicit, str | int) or isinstance(explicit, bool):
        explicit = ""
    params = str(explicit).strip() or embedded.strip()
    return TypeSpec(" ".join(base.upper().split()), params)


def number_text(value: int | float | str) -> str | None:
    """Canonical literal of a number, legal in every target language.

    Leading zeros are dropped and non-finite floats have no literal.
    """
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and INTEGER_PATTERN.match(value):
        return str(int(value))
    number = float(value)
    return repr(number) if isfinite(number) else None


def classify_default(value: Any) -> DefaultValue | None:
    """Classify a default value as now, number, boolean or string."""
    if value is None:
        return None
    if isinstance(value, bool):
        return DefaultValue(DefaultKind.BOOLEAN, "true" if value else "false")
    if isinstance(value, int | float):
        text = number_text(value)
        return DefaultValue(DefaultKind.NUMBER, text) if text is not None else None

    text = str(value).strip()
    if not text:
        return None
    if text.lower() in NOW_SENTINELS:
        return DefaultValue(DefaultKind.NOW, text)
    if NUMBER_PATTERN.match(text) and (number := number_text(text)) is not None:
        return DefaultValue(DefaultKind.NUMBER, number)
    if text.lower() in {"true", "false"}:
        return DefaultValue(DefaultKind.BOOLEAN, text.lower())
    return DefaultValue(DefaultKind.STRING, text)


def field_default(field: Field) -> DefaultValue | None:
    """Classify a field's ``defaultValue``, falling back to ``default``."""
    return classify_default(field.get("defaultValue")) or classify_default(
        field.get("default"),
    )


def render_default(
    default: DefaultValue,
    *,
    now: str,
    string: Callable[[str], str],
    boolean: Callable[[str], str] = str,
) -> str:
    """Format a classified default with per-target renderers."""
    match default.kind:
        case DefaultKind.NOW:
            return now
        case DefaultKind.NUMBER:
            return default.text
        case DefaultKind.BOOLEAN:
            return boolean(default.text)
        case _:
            return string(default.text)


def referential_action(value: object) -> str:
    """Normalize an ON DELETE/ON UPDATE action, or return "" when unsupported."""
    action = " ".join(str(value or "").upper().split())
    return action if action in REFERENTIAL_ACTIONS else ""


def is_primary(field: Field) -> bool:
    """Check whether the field is the entity's primary key."""
    return bool(field.get("primaryKey") or field.get("key"))


def is_nullable(field: Field) -> bool:
    """Check whether the field explicitly allows NULL."""
    return field.get("nullable") is True


def enum_values(field: Field) -> list[str]:
    """Return the non-empty enum values of a field."""
    values = field.get("enumValues") or []
    if isinstance(values, str):
        values = values.split(",")
    elif not isinstance(values, list | tuple):
        return []
    return [text for value in values if (text := str(value).strip())]


def sql_string(text: str) -> str:
    """Quote text as an SQL string literal."""
    escaped = text.replace("'", "''")
    return f"'{escaped}'"


def js_string(text: str) -> str:
    """Quote text as a JavaScript string literal."""
    return dumps(text, ensure_ascii=False)


def php_string(text: str) -> str:
    """Quote text as a single-quoted PHP string literal."""
    escaped = text.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def python_string(text: str) -> str:
    """Quote text as a Python string literal."""
    return dumps(text, ensure_ascii=False)
