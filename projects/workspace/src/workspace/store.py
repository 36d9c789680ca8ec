"""The project store: sole owner of the schema graph.

Every change goes through a :class:`ProjectStore` method, which records the
previous state in the history engine, applies the change, repairs edges that
it may have invalidated and saves the result through the storage adapter.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextlib import contextmanager
from copy import deepcopy
from datetime import UTC, datetime
from enum import StrEnum, auto
from json import JSONDecodeError, dumps, loads
from logging import getLogger
from typing import TYPE_CHECKING, Any, NamedTuple
from uuid import uuid4

from history import HistoryEngine, Snapshot
from model.consistency import repair_project
from model.constants import default_project, to_family
from model.edges import is_edge_valid, prune_invalid_edges
from model.fields import entity_fields, locate, reassign_field_ids
from model.fields import remove_field as detach_field
from workspace.adapters import create_database_adapter, next_default_entity_name
from workspace.persistence import is_project_payload, is_quota_exceeded

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from codegen import Target
    from model.types import (
        Database,
        DatabaseFamily,
        Edge,
        Entity,
        Field,
        Position,
        ProjectState,
    )
    from workspace.adapters import DatabaseAdapter
    from workspace.persistence import StorageAdapter

logger = getLogger(__name__)

EXPORT_VERSION = 1
DEFAULT_DATABASE_NAME = "New Database"
PASTE_OFFSET = 20


class ItemType(StrEnum):
    """Kinds of selectable items."""

    COLLECTION = auto()
    FIELD = auto()
    EDGE = auto()


class Selection(NamedTuple):
    """The item currently shown in the property panel."""

    item_id: str | None = None
    item_type: ItemType | None = None
    collection_id: str | None = None


class OperationResult(NamedTuple):
    """Outcome of an operation that can be rejected."""

    success: bool
    message: str | None = None


def make_id(prefix: str) -> str:
    """Generate a unique id such as ``col-3f2a...``."""
    return f"{prefix}-{uuid4().hex[:12]}"


class ProjectStore:
    """Owns a project state and exposes every operation on it."""

    def __init__(
        self,
        state: ProjectState | None = None,
        *,
        family: DatabaseFamily | str | None = None,
        history: HistoryEngine | None = None,
        storage: StorageAdapter | None = None,
        on_storage_full: Callable[[Exception | None], None] | None = None,
    ) -> None:
        self.default_family = to_family(family)
        self.history = history if history is not None else HistoryEngine()
        self.storage = storage
        self.on_storage_full = on_storage_full
        self.storage_full = False

        if state is None and storage is not None:
            state = storage.load()
        self._state = repair_project(
            deepcopy(state) if state is not None else default_project(),
        )
        self.selection = Selection()
        self.selected_collection_ids: set[str] = set()
        self.clipboard: Entity | None = None

    # Getters

    @property
    def state(self) -> ProjectState:
        """Deep copy of the current project state."""
        return deepcopy(self._state)

    @property
    def databases(self) -> list[Database]:
        return self._state["databases"]

    @property
    def active_database_id(self) -> str:
        return self._state["activeDatabaseId"]

    @property
    def active_database(self) -> Database | None:
        return self.find_database(self.active_database_id)

    @property
    def collections(self) -> list[Entity]:
        return self._state["collections"]

    @property
    def edges(self) -> list[Edge]:
        return self._state["edges"]

    @property
    def active_collections(self) -> list[Entity]:
        return self.database_collections(self.active_database_id)

    @property
    def active_edges(self) -> list[Edge]:
        return [edge for edge in self.edges if edge["databaseId"] == self.active_database_id]

    @property
    def selected_item(self) -> Entity | Field | Edge | None:
        """The selected entity, field or edge, if it still exists."""
        selection = self.selection
        match selection.item_type:
            case ItemType.COLLECTION:
                return self.find_collection(selection.item_id)
            case ItemType.FIELD:
                entity = self.find_collection(selection.collection_id)
                if entity is None:
                    return None
                location = locate(entity_fields(entity), selection.item_id)
                return location.node if location else None
            case ItemType.EDGE:
                return self.find_edge(selection.item_id)
        return None

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    @property
    def is_dirty(self) -> bool:
        return self.history.is_dirty

    @property
    def family(self) -> DatabaseFamily:
        """Family of the active database."""
        return self.family_of(self.active_database_id)

    @property
    def adapter(self) -> DatabaseAdapter:
        """Adapter of the active database's family."""
        return create_database_adapter(self.family)

    def family_of(self, database_id: str | None) -> DatabaseFamily:
        """Family declared by a database, else the store's default family."""
        database = self.find_database(database_id)
        if database is not None and database.get("type"):
            return to_family(database.get("type"))
        return self.default_family

    def find_database(self, database_id: str | None) -> Database | None:
        return next((db for db in self.databases if db["id"] == database_id), None)

    def find_collection(self, collection_id: str | None) -> Entity | None:
        return next((c for c in self.collections if c["id"] == collection_id), None)

    def find_edge(self, edge_id: str | None) -> Edge | None:
        return next((edge for edge in self.edges if edge["id"] == edge_id), None)

    def database_collections(self, database_id: str) -> list[Entity]:
        return [c for c in self.collections if c["databaseId"] == database_id]

    # Databases

    def add_database(
        self,
        name: str = DEFAULT_DATABASE_NAME,
        family: DatabaseFamily | str | None = None,
    ) -> str:
        """Create a database, make it active and return its id."""
        database: Database = {
            "id": make_id("db"),
            "name": str(name or "").strip() or DEFAULT_DATABASE_NAME,
        }
        if family is not None:
            database["type"] = to_family(family)

        with self._mutation():
            self.databases.append(database)
            self._state["activeDatabaseId"] = database["id"]
            self._clear_selection()
        return database["id"]

    def set_active_database(self, database_id: str) -> bool:
        """Switch the active database; unknown ids are ignored."""
        if self.find_database(database_id) is None:
            return False
        self._state["activeDatabaseId"] = database_id
        self._prune_edges(database_id)
        self._clear_selection()
        self._persist()
        return True

    def update_database_name(self, database_id: str, name: str) -> bool:
        """Rename a database; blank names keep the current one."""
        database = self.find_database(database_id)
        if database is None or not (name := str(name or "").strip()):
            return False
        with self._mutation():
            database["name"] = name
        return True

    def remove_database(self, database_id: str) -> OperationResult:
        """Delete a database with all of its entities and edges."""
        if len(self.databases) <= 1:
            return OperationResult(success=False, message="At least one database is required.")
        if self.find_database(database_id) is None:
            return OperationResult(success=False, message="Database not found.")

        with self._mutation():
            state = self._state
            state["databases"] = [db for db in self.databases if db["id"] != database_id]
            state["collections"] = [
                c for c in self.collections if c["databaseId"] != database_id
            ]
            state["edges"] = [e for e in self.edges if e["databaseId"] != database_id]
            if state["activeDatabaseId"] == database_id:
                state["activeDatabaseId"] = state["databases"][0]["id"]
            self._clear_selection()
        return OperationResult(success=True)

    # Entities

    def add_collection(self, entity: Entity) -> Entity:
        """Add an entity, placing it in the active database unless it names one."""
        entity = deepcopy(entity)
        if not entity.get("databaseId") or self.find_database(entity["databaseId"]) is None:
            entity["databaseId"] = self.active_database_id
        entity.setdefault("id", make_id("col"))
        entity.setdefault("data", {}).setdefault("fields", [])

        with self._mutation():
            self.collections.append(entity)
            self._prune_edges(entity["databaseId"])
        return deepcopy(entity)

    def new_collection(
        self,
        label: str | None = None,
        position: Position | None = None,
    ) -> Entity:
        """Add an entity holding only the family's default primary field."""
        adapter = self.adapter
        existing = (c["data"].get("label") for c in self.active_collections)
        field = adapter.create_default_field()
        field["id"] = make_id("f")
        entity: Entity = {
            "id": make_id("col"),
            "databaseId": self.active_database_id,
            "type": "collection",
            "position": position or {"x": 100, "y": 100},
            "data": {
                "label": label or next_default_entity_name(adapter.family, existing),
                "fields": [field],
            },
        }
        return self.add_collection(entity)

    def update_collection_props(self, collection_id: str, props: Mapping[str, Any]) -> bool:
        """Merge ``props`` into an entity's data."""
        entity = self.find_collection(collection_id)
        if entity is None:
            return False
        with self._mutation():
            entity["data"].update(deepcopy(dict(props)))  # type: ignore[typeddict-item]
            self._prune_edges(entity["databaseId"])
        return True

    def update_collection_position(self, collection_id: str, position: Position) -> bool:
        entity = self.find_collection(collection_id)
        if entity is None:
            return False
        with self._mutation():
            entity["position"] = {"x": position["x"], "y": position["y"]}
        return True

    def remove_collection(self, collection_id: str) -> bool:
        """Delete an entity and every edge touching it."""
        return self.remove_collections([collection_id]) > 0

    def remove_collections(self, collection_ids: Iterable[str]) -> int:
        """Delete several entities at once and return how many were removed."""
        ids = set(collection_ids)
        removed = [c for c in self.collections if c["id"] in ids]
        if not removed:
            return 0

        with self._mutation():
            state = self._state
            state["collections"] = [c for c in self.collections if c["id"] not in ids]
            state["edges"] = [
                edge
                for edge in self.edges
                if edge["source"] not in ids and edge["target"] not in ids
            ]
            for database_id in {entity["databaseId"] for entity in removed}:
                self._prune_edges(database_id)
            self.selected_collection_ids -= ids
            if self.selection.item_id in ids or self.selection.collection_id in ids:
                self._clear_selection()
        return len(removed)

    def copy_node(self, collection_id: str) -> bool:
        """Put a deep copy of an entity on the clipboard."""
        entity = self.find_collection(collection_id)
        if entity is None:
            return False
        self.clipboard = deepcopy(entity)
        return True

    def paste_node(self) -> Entity | None:
        """Add a copy of the clipboard with fresh ids into the active database."""
        if self.clipboard is None:
            return None

        entity = deepcopy(self.clipboard)
        entity["id"] = make_id("col")
        entity["databaseId"] = self.active_database_id
        position = entity.get("position") or {"x": 0, "y": 0}
        entity["position"] = {
            "x": position["x"] + PASTE_OFFSET,
            "y": position["y"] + PASTE_OFFSET,
        }
        reassign_field_ids(entity_fields(entity), lambda: make_id("f"))

        with self._mutation():
            self.collections.append(entity)
            self.selection = Selection(entity["id"], ItemType.COLLECTION)
        return deepcopy(entity)

    # Fields

    def add_field(self, collection_id: str, field: Field | None = None) -> Field | None:
        """Append a top-level field; a blank one of the family's new-field type by default."""
        entity = self.find_collection(collection_id)
        if entity is None:
            return None
        field = self._prepare_field(field, entity)
        with self._mutation():
            entity_fields(entity).append(field)
        return deepcopy(field)

    def add_child_field(
        self,
        collection_id: str,
        parent_field_id: str,
        field: Field | None = None,
    ) -> Field | None:
        """Append a nested field under ``parent_field_id``."""
        entity = self.find_collection(collection_id)
        if entity is None:
            return None
        location = locate(entity_fields(entity), parent_field_id)
        if location is None:
            return None
        field = self._prepare_field(field, entity)
        with self._mutation():
            location.node.setdefault("children", []).append(field)
        return deepcopy(field)

    def update_field_props(
        self,
        collection_id: str,
        field_id: str,
        props: Mapping[str, Any],
    ) -> bool:
        """Merge ``props`` into a field anywhere in the entity's tree."""
        entity = self.find_collection(collection_id)
        location = locate(entity_fields(entity), field_id) if entity else None
        if entity is None or location is None:
            return False
        with self._mutation():
            location.node.update(deepcopy(dict(props)))  # type: ignore[typeddict-item]
            self._prune_edges(entity["databaseId"])
        return True

    def remove_field(self, collection_id: str, field_id: str) -> bool:
        """Delete a field and its subtree, dropping edges pinned to it."""
        entity = self.find_collection(collection_id)
        if entity is None or locate(entity_fields(entity), field_id) is None:
            return False
        with self._mutation():
            detach_field(entity_fields(entity), field_id)
            self._prune_edges(entity["databaseId"])
            if self.selection.item_id == field_id:
                self._clear_selection()
        return True

    def reorder_field(
        self,
        collection_id: str,
        parent_field_id: str | None,
        old_index: int,
        new_index: int,
    ) -> bool:
        """Move a field within its sibling list."""
        entity = self.find_collection(collection_id)
        if entity is None:
            return False

        siblings = entity_fields(entity)
        if parent_field_id:
            location = locate(siblings, parent_field_id)
            if location is None or not location.node.get("children"):
                return False
            siblings = location.node["children"]

        if not (0 <= old_index < len(siblings) and 0 <= new_index < len(siblings)):
            return False
        if old_index == new_index:
            return True
        with self._mutation():
            siblings.insert(new_index, siblings.pop(old_index))
        return True

    # Edges

    def add_edge(self, edge: Edge) -> OperationResult:
        """Add an edge after checking its endpoints and handles resolve."""
        edge = deepcopy(edge)
        edge.setdefault("id", make_id("e"))
        if self.find_edge(edge["id"]) is not None:
            return OperationResult(success=False, message="Edge already exists.")

        source = self.find_collection(edge.get("source"))
        if not edge.get("databaseId"):
            edge["databaseId"] = source["databaseId"] if source else self.active_database_id
        entities = {c["id"]: c for c in self.database_collections(edge["databaseId"])}
        if not is_edge_valid(edge, entities):
            return OperationResult(success=False, message="Edge endpoints do not resolve.")

        with self._mutation():
            self.edges.append(edge)
        return OperationResult(success=True)

    def remove_edge(self, edge_id: str) -> bool:
        if self.find_edge(edge_id) is None:
            return False
        with self._mutation():
            self._state["edges"] = [edge for edge in self.edges if edge["id"] != edge_id]
            if self.selection.item_id == edge_id:
                self._clear_selection()
        return True

    # Selection

    def select_item(
        self,
        item_id: str | None,
        item_type: ItemType | str | None = None,
        collection_id: str | None = None,
    ) -> None:
        """Show an item in the property panel; ``None`` clears it."""
        if item_id is None:
            self.selection = Selection()
            return
        self.selection = Selection(
            item_id,
            ItemType(item_type) if item_type else None,
            collection_id,
        )

    def set_collection_selection(self, collection_id: str, *, multi: bool = False) -> None:
        """Select an entity of the active database, toggling it in multi mode."""
        entity = self.find_collection(collection_id)
        if entity is None or entity["databaseId"] != self.active_database_id:
            return

        if not multi:
            self.selected_collection_ids = {collection_id}
            self.select_item(collection_id, ItemType.COLLECTION)
            return

        selected = self.selected_collection_ids & {c["id"] for c in self.active_collections}
        if selected == {collection_id}:
            self.select_item(collection_id, ItemType.COLLECTION)
            return

        selected ^= {collection_id}
        self.selected_collection_ids = selected
        if len(selected) == 1:
            self.select_item(next(iter(selected)), ItemType.COLLECTION)
        else:
            self.select_item(None)

    def clear_selections(self) -> None:
        self._clear_selection()

    # Import and export

    def export_project(self) -> str:
        """Serialize the project as a versioned JSON document."""
        document = {
            "version": EXPORT_VERSION,
            "exportedAt": datetime.now(UTC).isoformat(),
            **self._state,
        }
        return dumps(document, indent=2, ensure_ascii=False)

    def import_project(self, payload: str | Mapping[str, Any]) -> OperationResult:
        """Replace the project with an exported document.

        Malformed payloads are rejected before anything changes.
        """
        if isinstance(payload, str):
            try:
                payload = loads(payload)
            except JSONDecodeError:
                return OperationResult(success=False, message="Invalid JSON format.")
        if not is_project_payload(payload):
            logger.warning("Rejected project import with invalid structure")
            return OperationResult(success=False, message="Invalid project file structure.")

        document: dict[str, Any] = deepcopy(dict(payload))  # type: ignore[arg-type]
        databases = document.get("databases")
        if not isinstance(databases, list) or not databases:
            databases = deepcopy(self.databases)
        candidate: ProjectState = {
            "databases": databases,
            "activeDatabaseId": document.get("activeDatabaseId") or "",
            "collections": document["collections"],
            "edges": document["edges"],
        }
        try:
            repair_project(candidate)
        except (KeyError, TypeError, AttributeError) as err:
            logger.warning("Rejected project import with malformed items: %s", err)
            return OperationResult(success=False, message="Invalid project file structure.")

        with self._mutation():
            self._state = candidate
            self._clear_selection()
            self.selected_collection_ids.clear()
            self.clipboard = None
        return OperationResult(success=True)

    # History

    def undo(self) -> bool:
        """Return to the state before the last change."""
        if not self.history.undo(self._snapshot(), self._apply_snapshot):
            return False
        self._sync()
        return True

    def redo(self) -> bool:
        """Reapply the last undone change."""
        if not self.history.redo(self._snapshot(), self._apply_snapshot):
            return False
        self._sync()
        return True

    # Code generation

    def generate(
        self,
        target: Target | str | None = None,
        *,
        database_id: str | None = None,
        collection_id: str | None = None,
        collection_ids: Iterable[str] | None = None,
        **options: Any,
    ) -> str:
        """Generate code for a database (the active one by default).

        Only entities of that database take part, so references resolve
        within the database they are declared in.
        """
        database_id = database_id or self.active_database_id
        adapter = create_database_adapter(self.family_of(database_id))
        return adapter.generate(
            self.database_collections(database_id),
            target,
            collection_id=collection_id,
            collection_ids=collection_ids,
            **options,
        )

    # Internals

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        before = self._snapshot()
        try:
            yield
        except Exception:
            self._state = before.restore()
            raise
        self.history.record(before)
        self._sync()

    def _snapshot(self) -> Snapshot:
        return Snapshot.capture(self._state)

    def _apply_snapshot(self, snapshot: Snapshot) -> None:
        self._state = repair_project(snapshot.restore())
        self.selected_collection_ids.clear()
        self._clear_selection()

    def _sync(self) -> None:
        self.history.prune()
        self._persist()

    def _prune_edges(self, database_id: str | None = None) -> None:
        self._state["edges"] = prune_invalid_edges(self.collections, self.edges, database_id)

    def _clear_selection(self) -> None:
        self.selection = Selection()

    def _prepare_field(self, field: Field | None, entity: Entity) -> Field:
        if field is not None:
            field = deepcopy(field)
        else:
            family = self.family_of(entity["databaseId"])
            field = {
                "name": "new_field",
                "type": create_database_adapter(family).new_field_type,
            }
        field.setdefault("id", make_id("f"))
        return field

    def _persist(self) -> bool:
        if self.storage is None:
            return True

        result = self.storage.save(self._state)
        if result.ok:
            self.storage_full = False
            return True

        if not is_quota_exceeded(result.error):
            logger.warning("Could not save project: %s", result.error)
        elif not self.storage_full:
            self.storage_full = True
            logger.warning("Project storage is full, export the project to avoid data loss")
            if self.on_storage_full is not None:
                self.on_storage_full(result.error)
        return False
