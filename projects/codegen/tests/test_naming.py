"""Tests for identifier normalization."""

import pytest

from codegen.naming import (
    Casing,
    camel_case,
    label_key,
    pascal_case,
    snake_case,
    to_identifier,
    unique_name,
)

RAW_LABELS = [
    "User Name",
    "HTTPServer",
    "  leading spaces",
    "9lives",
    "Ünïcödé Lábel",
    "a-b_c",
    "",
    "already_snake",
    "CamelCase",
    "x1Y2",
    "!!!",
]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("User Name", "user_name"),
        ("HTTPServer", "http_server"),
        ("userId", "user_id"),
        ("Café au lait", "cafe_au_lait"),
        ("123abc", "n_123abc"),
        ("  Order--Items  ", "order_items"),
    ],
)
def test_snake_case(raw: str, expected: str) -> None:
    """Test snake_case splits words on case changes and separators."""
    assert snake_case(raw, "fallback") == expected


def test_fallback_when_nothing_survives() -> None:
    """Test that labels without alphanumerics use the fallback."""
    assert snake_case("!!!", "table_1") == "table_1"
    assert snake_case(None, "column_2") == "column_2"
    assert pascal_case("", "Model3") == "Model3"
    assert to_identifier("***", "") == "unnamed"


def test_pascal_case() -> None:
    """Test PascalCase conversion and digit prefixes."""
    assert pascal_case("user accounts") == "UserAccounts"
    assert pascal_case("HTTPServer") == "HttpServer"
    assert pascal_case("3d model") == "M3dModel"
    assert pascal_case("3d", prefix="E") == "E3d"


def test_camel_case() -> None:
    """Test camelCase conversion lowercases the first character."""
    assert camel_case("User Name") == "userName"
    assert camel_case("author_id") == "authorId"
    assert camel_case("9lives") == "m9lives"


@pytest.mark.parametrize("casing", list(Casing))
@pytest.mark.parametrize("raw", RAW_LABELS)
def test_normalization_is_idempotent(raw: str, casing: Casing) -> None:
    """Test that normalizing an identifier again leaves it unchanged."""
    once = to_identifier(raw, "fallback", casing)
    assert to_identifier(once, "fallback", casing) == once


@pytest.mark.parametrize("casing", list(Casing))
@pytest.mark.parametrize("raw", RAW_LABELS)
def test_identifiers_are_legal(raw: str, casing: Casing) -> None:
    """Test that identifiers never start with a digit and use only safe characters."""
    identifier = to_identifier(raw, "fallback", casing)
    assert identifier
    assert not identifier[0].isdigit()
    assert identifier.replace("_", "").isalnum()
    assert identifier.isascii()


def test_unique_name_appends_suffixes() -> None:
    """Test that repeated names get increasing suffixes."""
    used: set[str] = set()
    assert unique_name("name", used) == "name"
    assert unique_name("name", used) == "name_2"
    assert unique_name("name", used) == "name_3"
    assert used == {"name", "name_2", "name_3"}


def test_unique_name_separator() -> None:
    """Test suffixing without a separator for Pascal and camel names."""
    used = {"Users"}
    assert unique_name("Users", used, separator="") == "Users2"


def test_label_key() -> None:
    """Test that label keys are trimmed and case-insensitive."""
    assert label_key("  Users ") == "users"
    assert label_key(None) == ""
