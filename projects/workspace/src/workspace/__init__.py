"""Project store, database adapters and persistence for Schema Architect."""

from workspace.adapters import (
    DatabaseAdapter,
    EntityTerms,
    create_database_adapter,
    entity_terms,
    next_default_entity_name,
)
from workspace.config import Settings, create_history, create_storage, load_settings
from workspace.persistence import (
    JsonFileStorage,
    MemoryStorage,
    SaveResult,
    StorageAdapter,
    is_project_payload,
    is_quota_exceeded,
)
from workspace.store import ItemType, OperationResult, ProjectStore, Selection

__all__ = [
    "DatabaseAdapter",
    "EntityTerms",
    "ItemType",
    "JsonFileStorage",
    "MemoryStorage",
    "OperationResult",
    "ProjectStore",
    "SaveResult",
    "Selection",
    "Settings",
    "StorageAdapter",
    "create_database_adapter",
    "create_history",
    "create_storage",
    "entity_terms",
    "is_project_payload",
    "is_quota_exceeded",
    "load_settings",
    "next_default_entity_name",
]
