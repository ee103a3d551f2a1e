"""Derived links between entities that share an attribute value.

The set of SHARED_* edges touching an entity is treated as a materialized view over the
entity's stored attributes. After every write the view is refreshed inside the same
transaction: all derived edges touching the entity are removed, then every rule is
evaluated against the entity's *stored* state (not the request payload).

Rules are independent; one write can produce several edge types. Matching is global,
exact and case-sensitive, and a missing or empty attribute never matches anything. Edges are
symmetric: they are created with an undirected MERGE, so each pair gets at most one edge
per rule (per shared instrument for SHARED_PAYMENT_METHOD).
"""
import logging
from typing import Dict, NamedTuple, Tuple

from fraudlink.db.neo4j_connector import run_in
from fraudlink.models.enums import LinkType, PERSON_LINK_TYPES, TRANSFER_LINK_TYPES

logger = logging.getLogger(__name__)


class LinkRule(NamedTuple):
    link_type: LinkType
    query: str


PERSON_RULES: Tuple[LinkRule, ...] = (
    LinkRule(
        LinkType.SHARED_EMAIL,
        (
            "MATCH (p:Person {id: $id}) WHERE p.email IS NOT NULL AND p.email <> '' "
            "MATCH (o:Person) WHERE o.id <> p.id AND o.email = p.email "
            "MERGE (p)-[:SHARED_EMAIL]-(o) "
            "RETURN count(DISTINCT o) AS linked"
        ),
    ),
    LinkRule(
        LinkType.SHARED_PHONE,
        (
            "MATCH (p:Person {id: $id}) WHERE p.phone IS NOT NULL AND p.phone <> '' "
            "MATCH (o:Person) WHERE o.id <> p.id AND o.phone = p.phone "
            "MERGE (p)-[:SHARED_PHONE]-(o) "
            "RETURN count(DISTINCT o) AS linked"
        ),
    ),
    LinkRule(
        LinkType.SHARED_ADDRESS,
        (
            "MATCH (p:Person {id: $id})-[:HAS_ADDRESS]->(a1:Address) "
            "WHERE a1.street IS NOT NULL AND a1.city IS NOT NULL AND a1.street <> '' AND a1.city <> '' "
            "MATCH (o:Person)-[:HAS_ADDRESS]->(a2:Address) "
            "WHERE o.id <> p.id AND a2.street = a1.street AND a2.city = a1.city "
            "MERGE (p)-[:SHARED_ADDRESS]-(o) "
            "RETURN count(DISTINCT o) AS linked"
        ),
    ),
    LinkRule(
        LinkType.SHARED_PAYMENT_METHOD,
        (
            "MATCH (p:Person {id: $id})-[:HAS_PAYMENT_METHOD]->(m1:PaymentMethod) "
            "WHERE m1.id IS NOT NULL AND m1.id <> '' "
            "MATCH (o:Person)-[:HAS_PAYMENT_METHOD]->(m2:PaymentMethod) "
            "WHERE o.id <> p.id AND m2.id = m1.id "
            "MERGE (p)-[:SHARED_PAYMENT_METHOD {paymentMethodId: m1.id}]-(o) "
            "RETURN count(DISTINCT o) AS linked"
        ),
    ),
)

TRANSFER_RULES: Tuple[LinkRule, ...] = (
    LinkRule(
        LinkType.SHARED_IP,
        (
            "MATCH (t:Transfer {id: $id})-[:FROM_DEVICE]->(d1:DeviceInfo) "
            "WHERE d1.ipAddress IS NOT NULL AND d1.ipAddress <> '' "
            "MATCH (o:Transfer)-[:FROM_DEVICE]->(d2:DeviceInfo) "
            "WHERE o.id <> t.id AND d2.ipAddress = d1.ipAddress "
            "MERGE (t)-[:SHARED_IP]-(o) "
            "RETURN count(DISTINCT o) AS linked"
        ),
    ),
    LinkRule(
        LinkType.SHARED_DEVICE,
        (
            "MATCH (t:Transfer {id: $id}) WHERE t.deviceId IS NOT NULL AND t.deviceId <> '' "
            "MATCH (o:Transfer) WHERE o.id <> t.id AND o.deviceId = t.deviceId "
            "MERGE (t)-[:SHARED_DEVICE]-(o) "
            "RETURN count(DISTINCT o) AS linked"
        ),
    ),
)


def _type_union(link_types) -> str:
    return "|".join(lt.value for lt in link_types)


def clear_links(tx, label: str, entity_id: str, link_types) -> int:
    """Delete every derived edge of the given types touching the entity, in either direction."""
    if label not in ("Person", "Transfer"):
        raise ValueError(f"Unsupported label: {label}")
    rows = run_in(
        tx,
        f"MATCH (n:{label} {{id: $id}})-[r:{_type_union(link_types)}]-() DELETE r RETURN count(r) AS removed",
        {"id": entity_id},
    )
    return int(rows[0].get("removed") or 0) if rows else 0


def apply_rules(tx, entity_id: str, rules: Tuple[LinkRule, ...]) -> Dict[str, int]:
    """Evaluate each rule for the entity; returns counterpart counts per link type."""
    counts: Dict[str, int] = {}
    for rule in rules:
        rows = run_in(tx, rule.query, {"id": entity_id})
        counts[rule.link_type.value] = int(rows[0].get("linked") or 0) if rows else 0
    return counts


def refresh_person_links(tx, person_id: str) -> Dict[str, int]:
    removed = clear_links(tx, "Person", person_id, PERSON_LINK_TYPES)
    counts = apply_rules(tx, person_id, PERSON_RULES)
    logger.debug("Person %s links refreshed: removed=%d linked=%s", person_id, removed, counts)
    return counts


def refresh_transfer_links(tx, transfer_id: str) -> Dict[str, int]:
    removed = clear_links(tx, "Transfer", transfer_id, TRANSFER_LINK_TYPES)
    counts = apply_rules(tx, transfer_id, TRANSFER_RULES)
    logger.debug("Transfer %s links refreshed: removed=%d linked=%s", transfer_id, removed, counts)
    return counts
