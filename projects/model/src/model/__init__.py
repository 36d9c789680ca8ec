"""Schema graph (databases, entities, fields and edges) for Schema Architect."""

from model.consistency import repair_project
from model.constants import (
    DEFAULT_FIELDS,
    FIELD_TYPES,
    NEW_FIELD_TYPES,
    default_project,
    to_family,
)
from model.edges import is_edge_valid, prune_invalid_edges
from model.fields import (
    FieldLocation,
    entity_fields,
    field_exists,
    iter_fields,
    locate,
    reassign_field_ids,
    remove_field,
)
from model.types import (
    Database,
    DatabaseFamily,
    Edge,
    Entity,
    EntityData,
    Field,
    Position,
    ProjectDocument,
    ProjectState,
    SchemaInput,
)

__all__ = [
    "DEFAULT_FIELDS",
    "FIELD_TYPES",
    "NEW_FIELD_TYPES",
    "Database",
    "DatabaseFamily",
    "Edge",
    "Entity",
    "EntityData",
    "Field",
    "FieldLocation",
    "Position",
    "ProjectDocument",
    "ProjectState",
    "SchemaInput",
    "default_project",
    "entity_fields",
    "field_exists",
    "is_edge_valid",
    "iter_fields",
    "locate",
    "prune_invalid_edges",
    "reassign_field_ids",
    "remove_field",
    "repair_project",
    "to_family",
]
