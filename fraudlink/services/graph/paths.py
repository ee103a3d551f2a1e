"""Shortest money-flow path between two persons.

Only SENT / RECEIVED_BY edges are traversed, so every path alternates
Person -> Transfer -> Person. Traversal is undirected; edges walked against their stored
direction are reported in path order with the logical type flipped, so that SENT always
points Person -> Transfer and RECEIVED_BY always points Transfer -> Person.
"""
import logging
from typing import Any, Dict, List, Optional

from fraudlink.db.neo4j_connector import read_session, run_in
from fraudlink.errors import IntegrityError, NotFoundError, ValidationError, storage_errors
from fraudlink.models.relationships import PathDetail, PathNode, PathRelationship, ShortestPathResult
from .persons import missing_person_ids

logger = logging.getLogger(__name__)

PUBLIC_FIELDS = {
    "Person": ("id", "firstName", "lastName", "email"),
    "Transfer": ("id", "transferType", "status", "amount", "currency", "timestamp", "deviceId"),
}

# Which node kinds each edge type may connect, in (start, end) order
EDGE_ENDPOINTS = {
    "SENT": ("Person", "Transfer"),
    "RECEIVED_BY": ("Transfer", "Person"),
}

FLIPPED = {"SENT": "RECEIVED_BY", "RECEIVED_BY": "SENT"}

SHORTEST_PATH_QUERY = (
    "MATCH (a:Person {id: $startId}) "
    "MATCH (b:Person {id: $targetId}) "
    "MATCH path = shortestPath((a)-[:SENT|RECEIVED_BY*]-(b)) "
    "RETURN [n IN nodes(path) | {labels: labels(n), properties: properties(n)}] AS nodes, "
    "[r IN relationships(path) | {type: type(r), startId: startNode(r).id, endId: endNode(r).id}] AS rels, "
    "length(path) AS length"
)


def align_path_edge(
    edge_type: str,
    start_id: str,
    end_id: str,
    prev_id: str,
    next_id: str,
    prev_kind: str,
    next_kind: str,
) -> Optional[PathRelationship]:
    """Map a stored edge onto the step prev -> next of a path.

    Returns the edge in path order, or None when it cannot be mapped: the endpoints do
    not match the step in either direction, or the resulting type does not fit the node
    kinds on either side.
    """
    if edge_type not in EDGE_ENDPOINTS:
        return None
    if start_id == prev_id and end_id == next_id:
        final_type = edge_type
    elif start_id == next_id and end_id == prev_id:
        final_type = FLIPPED[edge_type]
    else:
        return None
    if EDGE_ENDPOINTS[final_type] != (prev_kind, next_kind):
        return None
    return PathRelationship(type=final_type, start_node_id=prev_id, end_node_id=next_id)


def _node_kind(labels: List[str]) -> Optional[str]:
    if "Person" in labels:
        return "Person"
    if "Transfer" in labels:
        return "Transfer"
    return None


def _path_node(raw: Dict[str, Any]) -> PathNode:
    kind = _node_kind(raw.get("labels") or [])
    if kind is None:
        raise IntegrityError("Path contains a node that is neither Person nor Transfer", {"labels": raw.get("labels")})
    props = raw.get("properties") or {}
    return PathNode(type=kind, properties={k: props[k] for k in PUBLIC_FIELDS[kind] if k in props})


def build_path(raw_nodes: List[Dict[str, Any]], raw_rels: List[Dict[str, Any]], length: int) -> ShortestPathResult:
    """Turn ordered node/edge lists from the store into a ShortestPathResult.

    Unmappable edges are dropped with a warning. If the surviving edge count differs from
    the path length the result is inconsistent and IntegrityError is raised.
    """
    nodes = [_path_node(n) for n in raw_nodes]
    relationships: List[PathRelationship] = []
    for index, rel in enumerate(raw_rels):
        if index + 1 >= len(nodes):
            logger.warning("Dropping path edge %d: no node pair at this position", index)
            continue
        prev_node, next_node = nodes[index], nodes[index + 1]
        aligned = align_path_edge(
            rel.get("type"),
            rel.get("startId"),
            rel.get("endId"),
            prev_node.properties.get("id"),
            next_node.properties.get("id"),
            prev_node.type,
            next_node.type,
        )
        if aligned is None:
            logger.warning(
                "Dropping path edge %d: type=%s start=%s end=%s does not align with %s -> %s",
                index,
                rel.get("type"),
                rel.get("startId"),
                rel.get("endId"),
                prev_node.properties.get("id"),
                next_node.properties.get("id"),
            )
            continue
        relationships.append(aligned)

    if len(relationships) != length:
        logger.error("Path has %d usable edges but length %d", len(relationships), length)
        raise IntegrityError(
            f"Path relationship count ({len(relationships)}) does not match path length ({length})",
            {"edges": len(relationships), "length": length},
        )
    return ShortestPathResult(path=PathDetail(nodes=nodes, relationships=relationships), length=length)


def find_shortest_path(start_person_id: str, target_person_id: str) -> ShortestPathResult:
    with storage_errors(
        "find_shortest_path", start_id=start_person_id, target_id=target_person_id
    ), read_session() as session:
        missing = missing_person_ids(session, list(dict.fromkeys([start_person_id, target_person_id])))
        if missing:
            raise NotFoundError("Person", missing)
        if start_person_id == target_person_id:
            raise ValidationError(
                "Start and target person must be different", {"person_id": start_person_id}
            )
        rows = run_in(
            session,
            SHORTEST_PATH_QUERY,
            {"startId": start_person_id, "targetId": target_person_id},
        )

    if not rows:
        raise NotFoundError(
            "Path",
            [start_person_id, target_person_id],
            f"No path exists between persons {start_person_id} and {target_person_id}",
        )
    row = rows[0]
    return build_path(row.get("nodes") or [], row.get("rels") or [], int(row.get("length") or 0))
