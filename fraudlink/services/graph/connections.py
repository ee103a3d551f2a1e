from typing import Any, Dict, List

from fraudlink.db.neo4j_connector import read_session, run_in
from fraudlink.errors import IntegrityError, NotFoundError, storage_errors
from fraudlink.models.person import PersonPublic
from fraudlink.models.relationships import (
    ConnectedTransfer,
    DirectRelationship,
    LinkedTransfer,
    PersonConnections,
    SharedTransferRelationship,
    TransferConnections,
)
from fraudlink.models.transfer import TransferSummary
from .persons import person_exists
from .transfers import transfer_exists, transfer_from_row

# Only these person fields ever leave the node when shown next to another record
PUBLIC_PERSON = "{.id, .firstName, .lastName, .email}"
TRANSFER_SUMMARY = "{.id, .transferType, .status, .amount, .currency, .timestamp, .deviceId}"

DIRECT_LINKS_QUERY = (
    "MATCH (p:Person {id: $id})-[r:SHARED_EMAIL|SHARED_PHONE|SHARED_ADDRESS|SHARED_PAYMENT_METHOD]-(o:Person) "
    f"RETURN type(r) AS relationship_type, r.paymentMethodId AS payment_method_id, o {PUBLIC_PERSON} AS person "
    "ORDER BY relationship_type, person.id"
)

PERSON_TRANSFERS_QUERY = (
    "MATCH (p:Person {id: $id})-[:SENT]->(t:Transfer)-[:RECEIVED_BY]->(o:Person) "
    "OPTIONAL MATCH (t)-[:FROM_DEVICE]->(d:DeviceInfo) "
    "OPTIONAL MATCH (d)-[:LOCATED_AT]->(g:Geolocation) "
    "OPTIONAL MATCH (t)-[:USED_PAYMENT]->(pt:PaymentType) "
    f"RETURN 'SENT' AS direction, t, d, g, pt, o {PUBLIC_PERSON} AS counterpart "
    "UNION ALL "
    "MATCH (o:Person)-[:SENT]->(t:Transfer)-[:RECEIVED_BY]->(p:Person {id: $id}) "
    "OPTIONAL MATCH (t)-[:FROM_DEVICE]->(d:DeviceInfo) "
    "OPTIONAL MATCH (d)-[:LOCATED_AT]->(g:Geolocation) "
    "OPTIONAL MATCH (t)-[:USED_PAYMENT]->(pt:PaymentType) "
    f"RETURN 'RECEIVED' AS direction, t, d, g, pt, o {PUBLIC_PERSON} AS counterpart"
)

SHARED_TRANSFER_LINKS_QUERY = (
    "MATCH (p:Person {id: $id})-[:SENT|RECEIVED_BY]-(t1:Transfer)"
    "-[r:SHARED_IP|SHARED_DEVICE]-(t2:Transfer)-[:SENT|RECEIVED_BY]-(o:Person) "
    "WHERE o.id <> p.id "
    f"RETURN type(r) AS relationship_type, o {PUBLIC_PERSON} AS person, "
    "count(DISTINCT t2) AS transfer_count "
    "ORDER BY transfer_count DESC, person.id"
)

TRANSFER_PARTIES_QUERY = (
    "MATCH (payer:Person)-[:SENT]->(t:Transfer {id: $id})-[:RECEIVED_BY]->(payee:Person) "
    f"RETURN payer {PUBLIC_PERSON} AS payer, payee {PUBLIC_PERSON} AS payee"
)

LINKED_TRANSFERS_QUERY = (
    "MATCH (t:Transfer {id: $id})-[r:SHARED_DEVICE|SHARED_IP]-(o:Transfer) "
    f"RETURN type(r) AS relationship_type, o {TRANSFER_SUMMARY} AS transfer "
    "ORDER BY transfer.timestamp DESC"
)


def _timestamp_key(item: ConnectedTransfer) -> str:
    return item.transfer.timestamp or ""


def get_person_connections(person_id: str) -> PersonConnections:
    """Everything one hop (or one shared fingerprint) away from a person.

    - direct_relationships: SHARED_EMAIL / PHONE / ADDRESS / PAYMENT_METHOD edges
    - sent_transfers / received_transfers: with the counterpart and device, geo and
      payment-type satellites, newest first
    - transfer_relationships: other persons on transfers that share an IP or device with
      one of this person's transfers, with the number of such transfers
    """
    with storage_errors("get_person_connections", id=person_id), read_session() as session:
        if not person_exists(session, person_id):
            raise NotFoundError("Person", [person_id])
        direct_rows = run_in(session, DIRECT_LINKS_QUERY, {"id": person_id})
        transfer_rows = run_in(session, PERSON_TRANSFERS_QUERY, {"id": person_id})
        shared_rows = run_in(session, SHARED_TRANSFER_LINKS_QUERY, {"id": person_id})

    direct = [
        DirectRelationship(
            relationship_type=r["relationship_type"],
            person=PersonPublic.model_validate(r["person"]),
            payment_method_id=r.get("payment_method_id"),
        )
        for r in direct_rows
    ]

    sent: List[ConnectedTransfer] = []
    received: List[ConnectedTransfer] = []
    for r in transfer_rows:
        item = ConnectedTransfer(
            transfer=transfer_from_row(r),
            counterpart=PersonPublic.model_validate(r["counterpart"]),
        )
        (sent if r.get("direction") == "SENT" else received).append(item)
    sent.sort(key=_timestamp_key, reverse=True)
    received.sort(key=_timestamp_key, reverse=True)

    shared = [
        SharedTransferRelationship(
            relationship_type=r["relationship_type"],
            person=PersonPublic.model_validate(r["person"]),
            transfer_count=int(r.get("transfer_count") or 0),
        )
        for r in shared_rows
    ]

    return PersonConnections(
        person_id=person_id,
        direct_relationships=direct,
        transfer_relationships=shared,
        sent_transfers=sent,
        received_transfers=received,
    )


def get_transfer_connections(transfer_id: str) -> TransferConnections:
    """Payer, payee and the transfers sharing a device id or IP address with this one."""
    with storage_errors("get_transfer_connections", id=transfer_id), read_session() as session:
        party_rows = run_in(session, TRANSFER_PARTIES_QUERY, {"id": transfer_id})
        if not party_rows:
            if transfer_exists(session, transfer_id):
                raise IntegrityError(
                    f"Transfer {transfer_id} has no payer/payee pair", {"id": transfer_id}
                )
            raise NotFoundError("Transfer", [transfer_id])
        linked_rows = run_in(session, LINKED_TRANSFERS_QUERY, {"id": transfer_id})

    parties: Dict[str, Any] = party_rows[0]
    by_device: List[LinkedTransfer] = []
    by_ip: List[LinkedTransfer] = []
    for r in linked_rows:
        item = LinkedTransfer(
            relationship_type=r["relationship_type"],
            transfer=TransferSummary.model_validate(r["transfer"]),
        )
        (by_device if item.relationship_type == "SHARED_DEVICE" else by_ip).append(item)

    return TransferConnections(
        transfer_id=transfer_id,
        payer=PersonPublic.model_validate(parties["payer"]),
        payee=PersonPublic.model_validate(parties["payee"]),
        shared_device_transfers=by_device,
        shared_ip_transfers=by_ip,
    )
