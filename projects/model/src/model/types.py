"""TypedDict schemas for the project document and its schema graph.

Key names match the exported JSON document so that a project file loads into
these structures without translation.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, NotRequired, TypedDict


class DatabaseFamily(StrEnum):
    """Supported database families."""

    MONGODB = "MongoDB"
    MYSQL = "MySQL"
    POSTGRESQL = "PostgreSQL"


class Database(TypedDict):
    """A named database inside a project."""

    id: str
    name: str
    type: NotRequired[str]


class Position(TypedDict):
    """Canvas position of an entity."""

    x: float
    y: float


class Field(TypedDict, total=False):
    """A typed attribute of an entity, possibly owning nested children.

    Only ``id``, ``name`` and ``type`` are always present; everything else is
    an optional, type-specific attribute set by the editor.
    """

    id: str
    name: str
    type: str
    children: list[Field]

    # Relational attributes
    primaryKey: bool
    key: bool
    autoIncrement: bool
    nullable: bool
    unique: bool
    index: bool
    unsigned: bool
    typeParams: str
    enumValues: list[str]
    defaultValue: Any
    default: Any
    checkExpression: str
    checkConstraintName: str
    indexName: str

    # Foreign keys
    foreignKey: bool
    referencesTable: str
    referencesColumn: str
    referencesColumnId: str
    fkConstraintName: str
    onDelete: str
    onUpdate: str

    # Document attributes
    ref: str
    required: bool
    sparse: bool
    immutable: bool
    alias: str
    selectMode: bool | str
    trim: bool
    lowercase: bool
    uppercase: bool
    minLength: int | str
    maxLength: int | str
    matchPattern: str
    matchFlags: str
    defaultString: str
    min: float | str
    max: float | str
    defaultNumber: float | str
    defaultBooleanMode: bool | str
    defaultDateMode: str
    defaultDateValue: str
    minDate: str
    maxDate: str
    expiresSeconds: int | str
    defaultObjectId: str
    mapOfType: str
    arrayOfType: str


class EntityData(TypedDict, total=False):
    """Editable payload of an entity: its label, fields and schema options.

    The ``schema*`` keys are document-model options; tri-state options hold
    ``True``, ``False``, ``"true"``, ``"false"`` or nothing.
    """

    label: str
    fields: list[Field]

    timestampsEnabled: bool
    createdAtName: str
    updatedAtName: str
    schemaCollectionName: str
    schemaStrictMode: bool | str
    schemaStrictQueryMode: bool | str
    schemaAutoIndexMode: bool | str
    schemaAutoCreateMode: bool | str
    schemaIdVirtualMode: bool | str
    schemaUnderscoreIdMode: bool | str
    schemaMinimizeMode: bool | str
    schemaSkipVersioningMode: bool | str
    schemaOptimisticConcurrencyMode: bool | str
    schemaVersionKeyMode: str
    schemaVersionKeyName: str
    schemaCappedEnabled: bool
    schemaCappedSize: int | str
    schemaCappedMax: int | str
    schemaCappedAutoIndexIdMode: bool | str
    schemaReadPreference: str
    schemaWriteConcernW: int | str
    schemaWriteConcernJMode: bool | str
    schemaWriteConcernWtimeout: int | str
    schemaCollationLocale: str
    schemaCollationStrength: int | str
    schemaCollationCaseLevelMode: bool | str
    schemaCollationCaseFirst: str
    schemaCollationNumericOrderingMode: bool | str


class Entity(TypedDict):
    """A table or collection node."""

    id: str
    databaseId: str
    type: NotRequired[str]
    position: NotRequired[Position]
    data: EntityData


class Edge(TypedDict):
    """A visual relation between two entities, optionally pinned to fields."""

    id: str
    databaseId: str
    source: str
    target: str
    sourceHandle: NotRequired[str | None]
    targetHandle: NotRequired[str | None]


class ProjectState(TypedDict):
    """The whole schema graph owned by a project."""

    databases: list[Database]
    activeDatabaseId: str
    collections: list[Entity]
    edges: list[Edge]


class ProjectDocument(ProjectState):
    """Versioned export document."""

    version: int
    exportedAt: str


class SchemaInput(TypedDict):
    """Input consumed by every code generator."""

    collections: list[Entity]
