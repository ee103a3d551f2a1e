"""Person nodes and their satellites (Address, PaymentMethod)."""
from typing import Any, Dict, List, Optional

from fraudlink.db.neo4j_connector import read_session, run_in
from fraudlink.errors import NotFoundError, storage_errors
from fraudlink.models.person import Address, PaymentMethod, PersonOut

# Scalar attributes stored directly on the :Person node
PERSON_FIELDS = ("first_name", "last_name", "email", "phone")

PERSON_DETAIL_RETURN = (
    "OPTIONAL MATCH (p)-[:HAS_ADDRESS]->(a:Address) "
    "OPTIONAL MATCH (p)-[:HAS_PAYMENT_METHOD]->(pm:PaymentMethod) "
    "RETURN p, a, collect(DISTINCT pm) AS payment_methods"
)


def person_from_row(row: Dict[str, Any]) -> PersonOut:
    """Build a PersonOut from a row shaped like PERSON_DETAIL_RETURN."""
    props = dict(row.get("p") or {})
    address = row.get("a")
    props["address"] = Address.model_validate(address) if address is not None else None
    props["paymentMethods"] = [
        PaymentMethod.model_validate(pm) for pm in (row.get("payment_methods") or []) if pm
    ]
    return PersonOut.model_validate(props)


def person_exists(runner, person_id: str) -> bool:
    rows = run_in(runner, "MATCH (p:Person {id: $id}) RETURN p.id AS id", {"id": person_id})
    return bool(rows)


def missing_person_ids(runner, person_ids: List[str]) -> List[str]:
    """Return the subset of ids with no :Person node, preserving input order."""
    rows = run_in(
        runner,
        "MATCH (p:Person) WHERE p.id IN $ids RETURN p.id AS id",
        {"ids": list(person_ids)},
    )
    found = {r.get("id") for r in rows}
    return [pid for pid in person_ids if pid not in found]


def fetch_person(runner, person_id: str) -> Optional[PersonOut]:
    rows = run_in(runner, "MATCH (p:Person {id: $id}) " + PERSON_DETAIL_RETURN, {"id": person_id})
    if not rows or not rows[0].get("p"):
        return None
    return person_from_row(rows[0])


def get_person(person_id: str) -> PersonOut:
    """Fetch a person with address and payment methods; NotFoundError if absent."""
    with storage_errors("get_person", id=person_id), read_session() as session:
        person = fetch_person(session, person_id)
    if person is None:
        raise NotFoundError("Person", [person_id])
    return person


def find_person_by_email(runner, email: str) -> Optional[str]:
    """Return the id of a person holding exactly this email, if any."""
    rows = run_in(
        runner,
        "MATCH (p:Person {email: $email}) RETURN p.id AS id ORDER BY p.createdAt LIMIT 1",
        {"email": email},
    )
    return rows[0].get("id") if rows else None


def create_person(tx, props: Dict[str, Any], now: str) -> str:
    """Create a :Person node with a storage-generated id and return the id."""
    rows = run_in(
        tx,
        (
            "CREATE (p:Person) "
            "SET p = $props, p.id = randomUUID(), p.createdAt = $now, p.updatedAt = $now "
            "RETURN p.id AS id"
        ),
        {"props": props, "now": now},
    )
    return rows[0]["id"]


def update_person(tx, person_id: str, props: Dict[str, Any], now: str) -> None:
    """Apply the supplied properties; a None value removes the property."""
    run_in(
        tx,
        "MATCH (p:Person {id: $id}) SET p += $props, p.updatedAt = $now",
        {"id": person_id, "props": props, "now": now},
    )


def replace_address(tx, person_id: str, address: Optional[Address]) -> None:
    run_in(
        tx,
        "MATCH (p:Person {id: $id})-[:HAS_ADDRESS]->(a:Address) DETACH DELETE a",
        {"id": person_id},
    )
    if address is None:
        return
    run_in(
        tx,
        (
            "MATCH (p:Person {id: $id}) "
            "CREATE (a:Address) SET a = $props "
            "CREATE (p)-[:HAS_ADDRESS]->(a)"
        ),
        {"id": person_id, "props": address.to_graph()},
    )


def replace_payment_methods(tx, person_id: str, methods: List[PaymentMethod]) -> None:
    run_in(
        tx,
        "MATCH (p:Person {id: $id})-[:HAS_PAYMENT_METHOD]->(pm:PaymentMethod) DETACH DELETE pm",
        {"id": person_id},
    )
    if not methods:
        return
    run_in(
        tx,
        (
            "MATCH (p:Person {id: $id}) "
            "UNWIND $methods AS m "
            "CREATE (pm:PaymentMethod {id: m.id, type: m.type}) "
            "CREATE (p)-[:HAS_PAYMENT_METHOD]->(pm)"
        ),
        {"id": person_id, "methods": [m.to_graph() for m in methods]},
    )
