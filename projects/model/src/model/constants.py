"""Per-family field types, default fields and starter project."""

from __future__ import annotations

from copy import deepcopy
from typing import TYPE_CHECKING

from model.types import DatabaseFamily

if TYPE_CHECKING:
    from model.types import Field, ProjectState

DEFAULT_DATABASE_ID = "db-main"
DEFAULT_DATABASE_NAME = "MainDB"

FIELD_TYPES: dict[DatabaseFamily, tuple[str, ...]] = {
    DatabaseFamily.MONGODB: (
        "String",
        "Number",
        "ObjectId",
        "Date",
        "Boolean",
        "Array",
        "Object",
        "Map",
        "Buffer",
        "Mixed",
    ),
    DatabaseFamily.MYSQL: (
        "INT",
        "BIGINT",
        "TINYINT",
        "SMALLINT",
        "DECIMAL",
        "FLOAT",
        "DOUBLE",
        "VARCHAR",
        "TEXT",
        "CHAR",
        "LONGTEXT",
        "DATE",
        "DATETIME",
        "TIMESTAMP",
        "TIME",
        "YEAR",
        "BOOLEAN",
        "JSON",
        "ENUM",
        "BLOB",
    ),
    DatabaseFamily.POSTGRESQL: (
        "INT",
        "BIGINT",
        "SMALLINT",
        "DECIMAL",
        "REAL",
        "DOUBLE PRECISION",
        "SERIAL",
        "BIGSERIAL",
        "VARCHAR",
        "TEXT",
        "CHAR",
        "DATE",
        "TIMESTAMP",
        "TIME",
        "INTERVAL",
        "BOOLEAN",
        "JSON",
        "JSONB",
        "UUID",
        "BYTEA",
        "XML",
    ),
}

DEFAULT_FIELDS: dict[DatabaseFamily, Field] = {
    DatabaseFamily.MONGODB: {"name": "_id", "type": "ObjectId", "key": True},
    DatabaseFamily.MYSQL: {
        "name": "id",
        "type": "INT",
        "primaryKey": True,
        "autoIncrement": True,
    },
    DatabaseFamily.POSTGRESQL: {"name": "id", "type": "SERIAL", "primaryKey": True},
}

NEW_FIELD_TYPES: dict[DatabaseFamily, str] = {
    DatabaseFamily.MONGODB: "String",
    DatabaseFamily.MYSQL: "VARCHAR",
    DatabaseFamily.POSTGRESQL: "VARCHAR",
}


def to_family(value: str | None) -> DatabaseFamily:
    """Return the family named by value, falling back to MongoDB."""
    try:
        return DatabaseFamily(value)
    except ValueError:
        return DatabaseFamily.MONGODB


_STARTER_PROJECT: ProjectState = {
    "databases": [{"id": DEFAULT_DATABASE_ID, "name": DEFAULT_DATABASE_NAME}],
    "activeDatabaseId": DEFAULT_DATABASE_ID,
    "collections": [
        {
            "id": "1",
            "databaseId": DEFAULT_DATABASE_ID,
            "type": "collection",
            "position": {"x": 250, "y": 5},
            "data": {
                "label": "Users",
                "fields": [
                    {"id": "f1", "name": "_id", "type": "ObjectId", "key": True},
                    {"id": "f2", "name": "username", "type": "String"},
                    {"id": "f3", "name": "email", "type": "String"},
                    {
                        "id": "f-addr",
                        "name": "address",
                        "type": "Object",
                        "children": [
                            {"id": "f-city", "name": "city", "type": "String"},
                            {"id": "f-zip", "name": "zip", "type": "Number"},
                        ],
                    },
                ],
            },
        },
        {
            "id": "2",
            "databaseId": DEFAULT_DATABASE_ID,
            "type": "collection",
            "position": {"x": 100, "y": 250},
            "data": {
                "label": "Posts",
                "fields": [
                    {"id": "f4", "name": "_id", "type": "ObjectId", "key": True},
                    {"id": "f5", "name": "title", "type": "String"},
                    {"id": "f6", "name": "author_id", "type": "ObjectId", "ref": "Users"},
                ],
            },
        },
    ],
    "edges": [
        {
            "id": "e1-2",
            "databaseId": DEFAULT_DATABASE_ID,
            "source": "1",
            "target": "2",
            "sourceHandle": "f1",
            "targetHandle": "f6",
        },
    ],
}


def default_project() -> ProjectState:
    """Return a fresh copy of the starter project."""
    return deepcopy(_STARTER_PROJECT)
