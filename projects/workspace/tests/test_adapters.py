"""Tests for the database adapters."""

import pytest

from codegen import Target
from model.types import DatabaseFamily, Entity
from workspace.adapters import (
    create_database_adapter,
    entity_terms,
    next_default_entity_name,
)


def entity(entity_id: str, label: str) -> Entity:
    """Build a relational entity with a single key column."""
    return {
        "id": entity_id,
        "databaseId": "db",
        "data": {
            "label": label,
            "fields": [{"id": f"{entity_id}-id", "name": "id", "type": "INT", "primaryKey": True}],
        },
    }


@pytest.mark.parametrize(
    ("family", "language", "singular", "primary"),
    [
        (DatabaseFamily.MONGODB, "javascript", "Collection", Target.MONGOOSE),
        (DatabaseFamily.MYSQL, "sql", "Table", Target.SQL),
        (DatabaseFamily.POSTGRESQL, "sql", "Table", Target.SQL),
    ],
)
def test_adapter_properties(
    family: DatabaseFamily,
    language: str,
    singular: str,
    primary: Target,
) -> None:
    """Test the per-family terms, language and primary target."""
    adapter = create_database_adapter(family)

    assert adapter.family == family
    assert adapter.language == language
    assert adapter.entity_terms.singular == singular
    assert adapter.primary_target == primary
    assert primary in adapter.targets


def test_unknown_family_falls_back_to_mongodb() -> None:
    """Test that unrecognized families behave like MongoDB."""
    assert create_database_adapter("cassandra").family == DatabaseFamily.MONGODB
    assert entity_terms(None).plural_lower == "collections"


def test_default_field_is_a_fresh_copy() -> None:
    """Test that callers cannot alter the adapter's default field."""
    adapter = create_database_adapter(DatabaseFamily.MYSQL)
    field = adapter.create_default_field()
    field["name"] = "changed"

    assert adapter.create_default_field() == {
        "name": "id",
        "type": "INT",
        "primaryKey": True,
        "autoIncrement": True,
    }
    assert adapter.new_field_type == "VARCHAR"


def test_next_default_entity_name() -> None:
    """Test that names skip taken numbers case-insensitively."""
    existing = ["New_Table_1", "new_table_3", None, "  "]
    assert next_default_entity_name(DatabaseFamily.MYSQL, existing) == "new_table_2"
    assert next_default_entity_name(DatabaseFamily.MONGODB, []) == "new_collection_1"


def test_generate_scopes() -> None:
    """Test generation of every entity, one entity and a subset."""
    adapter = create_database_adapter(DatabaseFamily.MYSQL)
    collections = [entity("a", "Users"), entity("b", "Posts")]

    everything = adapter.generate(collections)
    assert "CREATE TABLE users" in everything
    assert "CREATE TABLE posts" in everything

    single = adapter.generate(collections, collection_id="b")
    assert "CREATE TABLE posts" in single
    assert "users" not in single

    subset = adapter.generate(collections, Target.PRISMA, collection_ids=["a"], collection_id="b")
    assert "model Users {" in subset
    assert "Posts" not in subset

    assert adapter.generate(collections, collection_ids=[]) == ""
    assert adapter.generate([]) == ""
