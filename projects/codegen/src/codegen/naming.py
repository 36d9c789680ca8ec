"""Identifier normalization for generated code.

Every table, model, column and property name that ends up in generated code
goes through :func:`to_identifier`, so user labels with spaces, punctuation,
accents or leading digits still produce legal identifiers.
"""

from enum import StrEnum, auto
from re import split, sub
from unicodedata import combining, normalize

# Lower/digit followed by upper, or an acronym followed by a capitalised word
WORD_BOUNDARY = r"([a-z0-9])([A-Z])|([A-Z])([A-Z][a-z])"
SEPARATORS = r"[^a-zA-Z0-9]+"


class Casing(StrEnum):
    """Identifier casing styles."""

    SNAKE = auto()
    PASCAL = auto()
    CAMEL = auto()


DIGIT_PREFIXES = {
    Casing.SNAKE: "n_",
    Casing.PASCAL: "M",
    Casing.CAMEL: "M",
}


def strip_accents(value: object) -> str:
    """Decompose unicode characters and drop the combining marks."""
    text = "" if value is None else str(value)
    return "".join(char for char in normalize("NFKD", text) if not combining(char))


def words(value: object) -> list[str]:
    """Split a raw label into its alphanumeric words."""
    text = sub(WORD_BOUNDARY, r"\1\3 \2\4", strip_accents(value))
    return [word for word in split(SEPARATORS, text) if word]


def to_identifier(
    raw: object,
    fallback: str,
    casing: Casing = Casing.SNAKE,
    *,
    prefix: str | None = None,
) -> str:
    """Turn an arbitrary string into an identifier in the requested casing.

    The result is never empty: ``fallback`` is used when nothing alphanumeric
    survives. Identifiers that would start with a digit get ``prefix`` (or the
    casing's default prefix) prepended.
    """
    parts = words(raw)
    if casing == Casing.SNAKE:
        identifier = "_".join(word.lower() for word in parts)
    else:
        identifier = "".join(word[0].upper() + word[1:].lower() for word in parts)

    identifier = identifier or fallback or "unnamed"
    if identifier[0].isdigit():
        identifier = f"{prefix if prefix is not None else DIGIT_PREFIXES[casing]}{identifier}"

    if casing == Casing.CAMEL:
        identifier = identifier[0].lower() + identifier[1:]
    return identifier


def snake_case(raw: object, fallback: str) -> str:
    """Convert to snake_case."""
    return to_identifier(raw, fallback, Casing.SNAKE)


def pascal_case(raw: object, fallback: str = "Model", *, prefix: str = "M") -> str:
    """Convert to PascalCase."""
    return to_identifier(raw, fallback, Casing.PASCAL, prefix=prefix)


def camel_case(raw: object, fallback: str = "field") -> str:
    """Convert to camelCase."""
    return to_identifier(raw, fallback, Casing.CAMEL)


def unique_name(base: str, used: set[str], separator: str = "_") -> str:
    """Reserve ``base`` in ``used``, appending 2, 3, ... until it is free."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}{separator}{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def label_key(label: object) -> str:
    """Key used to match entity labels: trimmed and case-insensitive."""
    return str(label or "").strip().lower()
