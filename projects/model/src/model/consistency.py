"""Repair rules that keep a project state within its invariants."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from model.constants import DEFAULT_DATABASE_ID, DEFAULT_DATABASE_NAME
from model.edges import prune_invalid_edges

if TYPE_CHECKING:
    from model.types import ProjectState

logger = getLogger(__name__)


def repair_project(state: ProjectState) -> ProjectState:
    """Bring a (possibly stale or hand-edited) state back to a valid shape.

    The state is repaired in place and returned:

    - at least one database exists and the active id names one of them
    - entities with a missing or unknown database move to the active database
    - edges with a missing or unknown database follow their source entity
    - edges whose endpoints or handles no longer resolve are dropped
    """
    if not state.get("databases"):
        state["databases"] = [{"id": DEFAULT_DATABASE_ID, "name": DEFAULT_DATABASE_NAME}]

    known = {database["id"] for database in state["databases"]}
    if state.get("activeDatabaseId") not in known:
        state["activeDatabaseId"] = state["databases"][0]["id"]
    fallback = state["activeDatabaseId"]

    collections = state.setdefault("collections", [])
    for entity in collections:
        if entity.get("databaseId") not in known:
            logger.warning(
                "Entity %s has no valid database, moving it to %s",
                entity.get("id"),
                fallback,
            )
            entity["databaseId"] = fallback
        entity.setdefault("data", {}).setdefault("fields", [])

    owners = {entity["id"]: entity["databaseId"] for entity in collections}
    edges = state.setdefault("edges", [])
    for edge in edges:
        if edge.get("databaseId") not in known:
            edge["databaseId"] = owners.get(edge.get("source", ""), fallback)

    state["edges"] = prune_invalid_edges(collections, edges)
    return state
