"""Tests for project state repair."""

from model.consistency import repair_project
from model.constants import default_project, to_family
from model.types import DatabaseFamily, ProjectState


def test_repair_creates_default_database() -> None:
    """Test that a state without databases gets the default one."""
    state: ProjectState = {
        "databases": [],
        "activeDatabaseId": "",
        "collections": [],
        "edges": [],
    }
    repair_project(state)
    assert state["databases"] == [{"id": "db-main", "name": "MainDB"}]
    assert state["activeDatabaseId"] == "db-main"


def test_repair_fixes_active_database() -> None:
    """Test that an unknown active id falls back to the first database."""
    state: ProjectState = {
        "databases": [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
        "activeDatabaseId": "zzz",
        "collections": [],
        "edges": [],
    }
    repair_project(state)
    assert state["activeDatabaseId"] == "a"


def test_repair_moves_orphan_entities() -> None:
    """Test that entities of unknown databases move to the active one."""
    state: ProjectState = {
        "databases": [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
        "activeDatabaseId": "b",
        "collections": [
            {"id": "1", "databaseId": "gone", "data": {"label": "Users"}},
            {"id": "2", "databaseId": "a", "data": {"label": "Posts", "fields": []}},
        ],
        "edges": [],
    }
    repair_project(state)
    assert state["collections"][0]["databaseId"] == "b"
    assert state["collections"][0]["data"]["fields"] == []
    assert state["collections"][1]["databaseId"] == "a"


def test_repair_rekeys_orphan_edges() -> None:
    """Test that edges follow their source entity's database."""
    state: ProjectState = {
        "databases": [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
        "activeDatabaseId": "b",
        "collections": [
            {"id": "1", "databaseId": "a", "data": {"fields": []}},
            {"id": "2", "databaseId": "a", "data": {"fields": []}},
        ],
        "edges": [
            {"id": "e1", "databaseId": "missing", "source": "1", "target": "2"},
            {"id": "e2", "databaseId": "a", "source": "1", "target": "404"},
        ],
    }
    repair_project(state)
    assert state["edges"] == [
        {"id": "e1", "databaseId": "a", "source": "1", "target": "2"},
    ]


def test_starter_project_is_consistent() -> None:
    """Test that the starter project survives repair unchanged."""
    state = default_project()
    assert repair_project(default_project()) == state


def test_default_project_is_fresh_copy() -> None:
    """Test that callers cannot mutate the shared starter project."""
    first = default_project()
    first["collections"].clear()
    assert default_project()["collections"]


def test_to_family_fallback() -> None:
    """Test that unknown family names fall back to MongoDB."""
    assert to_family("PostgreSQL") is DatabaseFamily.POSTGRESQL
    assert to_family("Oracle") is DatabaseFamily.MONGODB
    assert to_family(None) is DatabaseFamily.MONGODB
