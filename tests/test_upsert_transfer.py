import pytest

from conftest import transfer_row
from fraudlink.errors import NotFoundError, ValidationError
from fraudlink.models.transfer import TransferPatch
from fraudlink.services.graph.upsert import upsert_transfer

PERSONS_IN = "WHERE p.id IN $ids"
TRANSFER_EXISTS = "MATCH (t:Transfer {id: $id}) RETURN t.id AS id"
DETAIL = "RETURN t, d, g, pt"


def _new_transfer(**overrides):
    fields = dict(
        transfer_type="PAYMENT",
        status="COMPLETED",
        payer_id="P1",
        payee_id="P2",
        amount=120.5,
        currency="USD",
    )
    fields.update(overrides)
    return TransferPatch(**fields)


def _known_persons(*ids):
    def route(params):
        return [{"id": pid} for pid in params["ids"] if pid in ids]
    return route


def test_payer_equal_to_payee_is_rejected_before_any_write(fake_graph):
    with pytest.raises(ValidationError):
        upsert_transfer(_new_transfer(payee_id="P1"))
    assert fake_graph.calls == []


@pytest.mark.parametrize("amount", [0, -5, float("nan"), float("inf"), float("-inf")])
def test_non_positive_or_non_finite_amount_is_rejected(fake_graph, amount):
    with pytest.raises(ValidationError):
        upsert_transfer(_new_transfer(amount=amount))
    assert fake_graph.calls == []


def test_non_finite_destination_amount_is_rejected(fake_graph):
    with pytest.raises(ValidationError) as exc:
        upsert_transfer(_new_transfer(destination_amount=float("nan"), destination_currency="EUR"))
    assert "destination_amount" in exc.value.context
    assert fake_graph.calls == []


def test_create_requires_core_fields(fake_graph):
    with pytest.raises(ValidationError) as exc:
        upsert_transfer(TransferPatch(payer_id="P1", payee_id="P2", amount=10))
    assert "currency" in str(exc.value)


def test_update_unknown_transfer_raises_not_found_and_mutates_nothing(fake_graph):
    with pytest.raises(NotFoundError) as exc:
        upsert_transfer(TransferPatch(id="nonexistent-uuid", status="FAILED"))

    assert exc.value.kind == "Transfer"
    assert fake_graph.rolled_back and not fake_graph.committed
    assert not fake_graph.ran("CREATE")
    assert not fake_graph.ran("SET t +=")


def test_create_with_unknown_payee_names_the_missing_id(fake_graph):
    fake_graph.on(PERSONS_IN, _known_persons("P1"))

    with pytest.raises(NotFoundError) as exc:
        upsert_transfer(_new_transfer())

    assert exc.value.ids == ["P2"]
    assert not fake_graph.ran("CREATE (t:Transfer)")
    assert fake_graph.rolled_back


def test_create_transfer_wires_parties_satellites_and_links(fake_graph):
    fake_graph.on(PERSONS_IN, _known_persons("P1", "P2"))
    fake_graph.on("CREATE (t:Transfer)", [{"id": "T1"}])
    fake_graph.on(DETAIL, [transfer_row("T1", deviceId="dev-1")])

    result = upsert_transfer(
        _new_transfer(
            device_id="dev-1",
            device_info={"ip_address": "10.0.0.7", "geolocation": {"country": "US", "region": "CA"}},
            payment_method="DEBIT_CARD",
        )
    )

    assert result.is_new is True
    assert result.entity.id == "T1"
    assert fake_graph.committed

    params = fake_graph.params_for("CREATE (t:Transfer)")[0]
    assert params["payerId"] == "P1" and params["payeeId"] == "P2"
    assert params["props"]["transferType"] == "PAYMENT"
    assert params["props"]["deviceId"] == "dev-1"
    # timestamp defaults to now when not supplied
    assert params["props"]["timestamp"]

    assert fake_graph.params_for("CREATE (d:DeviceInfo)")[0]["ipAddress"] == "10.0.0.7"
    assert fake_graph.params_for("CREATE (g:Geolocation)")[0]["props"] == {"country": "US", "region": "CA"}
    assert fake_graph.params_for("CREATE (pt:PaymentType")[0]["type"] == "DEBIT_CARD"
    assert fake_graph.ran("MERGE (t)-[:SHARED_IP]-(o)")
    assert fake_graph.ran("MERGE (t)-[:SHARED_DEVICE]-(o)")


def test_repointing_payee_onto_payer_is_rejected(fake_graph):
    fake_graph.on(TRANSFER_EXISTS, [{"id": "T1"}])
    fake_graph.on("t.payerId AS payer_id", [{"payer_id": "P1", "payee_id": "P2"}])

    with pytest.raises(ValidationError):
        upsert_transfer(TransferPatch(id="T1", payee_id="P1"))

    assert fake_graph.rolled_back
    assert not fake_graph.ran("CREATE (payer)-[:SENT]->(t)")


def test_update_repoints_payee(fake_graph):
    fake_graph.on(TRANSFER_EXISTS, [{"id": "T1"}])
    fake_graph.on("t.payerId AS payer_id", [{"payer_id": "P1", "payee_id": "P2"}])
    fake_graph.on(PERSONS_IN, _known_persons("P3"))
    fake_graph.on(DETAIL, [transfer_row("T1", payee="P3")])

    result = upsert_transfer(TransferPatch(id="T1", payee_id="P3"))

    assert result.is_new is False
    assert result.entity.payee_id == "P3"
    repoint = fake_graph.params_for("CREATE (t)-[:RECEIVED_BY]->(payee)")[0]
    assert repoint == {"id": "T1", "payerId": "P1", "payeeId": "P3"}
    assert fake_graph.ran("MATCH (t:Transfer {id: $id})-[r:SENT|RECEIVED_BY]-() DELETE r")
