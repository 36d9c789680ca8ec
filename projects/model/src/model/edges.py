"""Edge validation and pruning."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from model.fields import field_exists

if TYPE_CHECKING:
    from collections.abc import Mapping

    from model.types import Edge, Entity

logger = getLogger(__name__)


def is_edge_valid(edge: Edge, entities: Mapping[str, Entity]) -> bool:
    """Check that both endpoints exist and any pinned handles resolve to fields.

    ``entities`` must only contain entities of the edge's database, so an edge
    spanning two databases is rejected as well.
    """
    source = entities.get(edge.get("source", ""))
    target = entities.get(edge.get("target", ""))
    if source is None or target is None:
        return False
    if (handle := edge.get("sourceHandle")) and not field_exists(source, handle):
        return False
    if (handle := edge.get("targetHandle")) and not field_exists(target, handle):
        return False
    return True


def prune_invalid_edges(
    collections: list[Entity],
    edges: list[Edge],
    database_id: str | None = None,
) -> list[Edge]:
    """Drop edges whose endpoints or handles no longer resolve.

    When ``database_id`` is given only edges of that database are checked and
    all others pass through. The input list is returned unchanged when nothing
    was dropped.
    """
    by_database: dict[str, dict[str, Entity]] = {}
    for entity in collections:
        by_database.setdefault(entity.get("databaseId", ""), {})[entity["id"]] = entity

    kept: list[Edge] = []
    for edge in edges:
        edge_database = edge.get("databaseId", "")
        if database_id is not None and edge_database != database_id:
            kept.append(edge)
        elif is_edge_valid(edge, by_database.get(edge_database, {})):
            kept.append(edge)
        else:
            logger.debug("Pruning edge %s", edge.get("id"))

    return edges if len(kept) == len(edges) else kept
