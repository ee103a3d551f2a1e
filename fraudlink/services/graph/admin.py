import logging
from typing import Dict, Any

from fraudlink.db.neo4j_connector import run_cypher

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    "CREATE CONSTRAINT person_id_unique IF NOT EXISTS FOR (p:Person) REQUIRE p.id IS UNIQUE",
    "CREATE CONSTRAINT transfer_id_unique IF NOT EXISTS FOR (t:Transfer) REQUIRE t.id IS UNIQUE",
    "CREATE INDEX person_email IF NOT EXISTS FOR (p:Person) ON (p.email)",
)


def ensure_schema() -> int:
    """Create id uniqueness constraints and the email index if they are missing.

    Returns the number of statements executed.
    """
    for statement in SCHEMA_STATEMENTS:
        run_cypher(statement)
    logger.info("Schema ensured (%d statements)", len(SCHEMA_STATEMENTS))
    return len(SCHEMA_STATEMENTS)


def clear_database() -> Dict[str, Any]:
    """Delete all nodes and relationships from the Neo4j database.

    Returns a small stats dict with counts observed before deletion.
    """
    nb = run_cypher("MATCH (n) RETURN count(n) AS cnt")
    nodes_before = (nb[0].get("cnt") if nb else 0) or 0
    rb = run_cypher("MATCH ()-[r]->() RETURN count(r) AS cnt")
    rels_before = (rb[0].get("cnt") if rb else 0) or 0

    run_cypher("MATCH (n) DETACH DELETE n")
    logger.warning("Database cleared: %d nodes, %d relationships", nodes_before, rels_before)

    return {"deleted_nodes": nodes_before, "deleted_relationships": rels_before}
