"""Transfer nodes, their payer/payee edges and satellites (DeviceInfo, Geolocation, PaymentType)."""
from typing import Any, Dict, Optional, Tuple

from fraudlink.db.neo4j_connector import read_session, run_in
from fraudlink.errors import NotFoundError, storage_errors
from fraudlink.models.enums import PaymentMethodType
from fraudlink.models.transfer import DeviceInfo, GeoHint, TransferOut

TRANSFER_FIELDS = (
    "transfer_type",
    "status",
    "amount",
    "currency",
    "destination_amount",
    "destination_currency",
    "timestamp",
    "description",
    "device_id",
)

TRANSFER_DETAIL_RETURN = (
    "OPTIONAL MATCH (t)-[:FROM_DEVICE]->(d:DeviceInfo) "
    "OPTIONAL MATCH (d)-[:LOCATED_AT]->(g:Geolocation) "
    "OPTIONAL MATCH (t)-[:USED_PAYMENT]->(pt:PaymentType) "
    "RETURN t, d, g, pt"
)


def device_info_from_nodes(device: Optional[Dict[str, Any]], geo: Optional[Dict[str, Any]]) -> Optional[DeviceInfo]:
    if device is None:
        return None
    geolocation = GeoHint.model_validate(geo) if geo is not None else None
    return DeviceInfo(ip_address=device.get("ipAddress"), geolocation=geolocation)


def transfer_from_row(row: Dict[str, Any]) -> TransferOut:
    """Build a TransferOut from a row with keys t, d, g, pt (satellites may be null)."""
    props = dict(row.get("t") or {})
    props["deviceInfo"] = device_info_from_nodes(row.get("d"), row.get("g"))
    payment_type = row.get("pt")
    props["paymentMethod"] = payment_type.get("type") if payment_type else None
    return TransferOut.model_validate(props)


def transfer_exists(runner, transfer_id: str) -> bool:
    rows = run_in(runner, "MATCH (t:Transfer {id: $id}) RETURN t.id AS id", {"id": transfer_id})
    return bool(rows)


def fetch_transfer(runner, transfer_id: str) -> Optional[TransferOut]:
    rows = run_in(runner, "MATCH (t:Transfer {id: $id}) " + TRANSFER_DETAIL_RETURN, {"id": transfer_id})
    if not rows or not rows[0].get("t"):
        return None
    return transfer_from_row(rows[0])


def get_transfer(transfer_id: str) -> TransferOut:
    """Fetch a transfer with its satellites; NotFoundError if absent."""
    with storage_errors("get_transfer", id=transfer_id), read_session() as session:
        transfer = fetch_transfer(session, transfer_id)
    if transfer is None:
        raise NotFoundError("Transfer", [transfer_id])
    return transfer


def get_parties(runner, transfer_id: str) -> Tuple[Optional[str], Optional[str]]:
    """Return the stored (payerId, payeeId) of a transfer."""
    rows = run_in(
        runner,
        "MATCH (t:Transfer {id: $id}) RETURN t.payerId AS payer_id, t.payeeId AS payee_id",
        {"id": transfer_id},
    )
    if not rows:
        raise NotFoundError("Transfer", [transfer_id])
    return rows[0].get("payer_id"), rows[0].get("payee_id")


def create_transfer(tx, props: Dict[str, Any], payer_id: str, payee_id: str) -> str:
    """Create the :Transfer node together with its SENT / RECEIVED_BY pair."""
    rows = run_in(
        tx,
        (
            "MATCH (payer:Person {id: $payerId}) "
            "MATCH (payee:Person {id: $payeeId}) "
            "CREATE (t:Transfer) "
            "SET t = $props, t.id = randomUUID(), t.payerId = $payerId, t.payeeId = $payeeId "
            "CREATE (payer)-[:SENT]->(t) "
            "CREATE (t)-[:RECEIVED_BY]->(payee) "
            "RETURN t.id AS id"
        ),
        {"props": props, "payerId": payer_id, "payeeId": payee_id},
    )
    return rows[0]["id"]


def update_transfer(tx, transfer_id: str, props: Dict[str, Any]) -> None:
    if not props:
        return
    run_in(
        tx,
        "MATCH (t:Transfer {id: $id}) SET t += $props",
        {"id": transfer_id, "props": props},
    )


def repoint_parties(tx, transfer_id: str, payer_id: str, payee_id: str) -> None:
    """Tear down the SENT / RECEIVED_BY pair and rebuild it for the given persons."""
    run_in(
        tx,
        "MATCH (t:Transfer {id: $id})-[r:SENT|RECEIVED_BY]-() DELETE r",
        {"id": transfer_id},
    )
    run_in(
        tx,
        (
            "MATCH (t:Transfer {id: $id}) "
            "MATCH (payer:Person {id: $payerId}) "
            "MATCH (payee:Person {id: $payeeId}) "
            "SET t.payerId = $payerId, t.payeeId = $payeeId "
            "CREATE (payer)-[:SENT]->(t) "
            "CREATE (t)-[:RECEIVED_BY]->(payee)"
        ),
        {"id": transfer_id, "payerId": payer_id, "payeeId": payee_id},
    )


def replace_device_info(tx, transfer_id: str, device_info: Optional[DeviceInfo]) -> None:
    run_in(
        tx,
        (
            "MATCH (t:Transfer {id: $id})-[:FROM_DEVICE]->(d:DeviceInfo) "
            "OPTIONAL MATCH (d)-[:LOCATED_AT]->(g:Geolocation) "
            "DETACH DELETE d, g"
        ),
        {"id": transfer_id},
    )
    if device_info is None:
        return
    run_in(
        tx,
        (
            "MATCH (t:Transfer {id: $id}) "
            "CREATE (d:DeviceInfo) SET d.ipAddress = $ipAddress "
            "CREATE (t)-[:FROM_DEVICE]->(d)"
        ),
        {"id": transfer_id, "ipAddress": str(device_info.ip_address) if device_info.ip_address is not None else None},
    )
    if device_info.geolocation is None:
        return
    run_in(
        tx,
        (
            "MATCH (t:Transfer {id: $id})-[:FROM_DEVICE]->(d:DeviceInfo) "
            "CREATE (g:Geolocation) SET g = $props "
            "CREATE (d)-[:LOCATED_AT]->(g)"
        ),
        {"id": transfer_id, "props": device_info.geolocation.to_graph()},
    )


def replace_payment_type(tx, transfer_id: str, payment_method: Optional[PaymentMethodType]) -> None:
    run_in(
        tx,
        "MATCH (t:Transfer {id: $id})-[:USED_PAYMENT]->(pt:PaymentType) DETACH DELETE pt",
        {"id": transfer_id},
    )
    if payment_method is None:
        return
    run_in(
        tx,
        (
            "MATCH (t:Transfer {id: $id}) "
            "CREATE (pt:PaymentType {type: $type}) "
            "CREATE (t)-[:USED_PAYMENT]->(pt)"
        ),
        {"id": transfer_id, "type": PaymentMethodType(payment_method).value},
    )
