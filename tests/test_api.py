from fastapi.testclient import TestClient

from fraudlink.errors import NotFoundError, ValidationError
from fraudlink.main import app
from fraudlink.models.person import PersonOut, PersonUpsertResult
from fraudlink.models.relationships import PathDetail, ShortestPathResult
from fraudlink.models.search import TransferPage
from fraudlink.services.graph.search import build_pagination

client = TestClient(app)


def _person(pid="P1"):
    return PersonOut(
        id=pid,
        first_name="Alice",
        last_name="Smith",
        email="alice@example.com",
        created_at="2024-01-01T00:00:00+00:00",
        updated_at="2024-01-01T00:00:00+00:00",
    )


def test_create_person_returns_201_with_camel_case_body(monkeypatch):
    captured = {}

    def fake_upsert(patch, unique_email=False):
        captured["patch"] = patch
        return PersonUpsertResult(entity=_person(), is_new=True)

    monkeypatch.setattr("fraudlink.api.routers.persons.upsert_person", fake_upsert)

    resp = client.post("/persons", json={"firstName": "Alice", "lastName": "Smith", "email": "alice@example.com"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "success"
    assert body["data"]["firstName"] == "Alice"
    assert captured["patch"].supplied() == {"first_name", "last_name", "email"}


def test_update_person_returns_200(monkeypatch):
    monkeypatch.setattr(
        "fraudlink.api.routers.persons.upsert_person",
        lambda patch, unique_email=False: PersonUpsertResult(entity=_person(), is_new=False),
    )
    resp = client.post("/persons", json={"id": "P1", "phone": "+15550001"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Person updated successfully"


def test_malformed_email_is_rejected_by_the_model():
    resp = client.post("/persons", json={"firstName": "Alice", "lastName": "Smith", "email": "not-an-email"})
    assert resp.status_code == 422


def test_domain_validation_error_maps_to_400(monkeypatch):
    def fake_upsert(patch):
        raise ValidationError("Payer and payee cannot be the same person")

    monkeypatch.setattr("fraudlink.api.routers.transfers.upsert_transfer", fake_upsert)

    resp = client.post("/transfers", json={"payerId": "P1", "payeeId": "P1", "amount": 10})

    assert resp.status_code == 400
    assert "cannot be the same" in resp.json()["detail"]


def test_shortest_path_not_found_maps_to_404(monkeypatch):
    def fake_path(a, b):
        raise NotFoundError("Person", [b])

    monkeypatch.setattr("fraudlink.api.routers.relationships.find_shortest_path", fake_path)

    resp = client.get("/relationships/shortest-path", params={"start_person_id": "P1", "target_person_id": "P9"})

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Person with ID P9 not found"


def test_shortest_path_success(monkeypatch):
    monkeypatch.setattr(
        "fraudlink.api.routers.relationships.find_shortest_path",
        lambda a, b: ShortestPathResult(path=PathDetail(nodes=[], relationships=[]), length=0),
    )
    resp = client.get("/relationships/shortest-path", params={"start_person_id": "P1", "target_person_id": "P2"})
    assert resp.status_code == 200
    assert resp.json()["data"]["length"] == 0


def test_unexpected_failure_maps_to_500(monkeypatch):
    def broken(person_id):
        raise RuntimeError("driver gone")

    monkeypatch.setattr("fraudlink.api.routers.relationships.get_person_connections", broken)

    resp = client.get("/relationships/person/P1")

    assert resp.status_code == 500
    assert "driver gone" in resp.json()["detail"]


def test_search_query_string_is_mapped_to_filters(monkeypatch):
    captured = {}

    def fake_search(query):
        captured["query"] = query
        return TransferPage(items=[], pagination=build_pagination(1, query.limit, 0))

    monkeypatch.setattr("fraudlink.api.routers.transfers.search_transfers", fake_search)

    resp = client.get("/transfers/search", params={"status": "COMPLETED", "currency": "USD", "limit": 5})

    assert resp.status_code == 200
    assert resp.json()["data"]["pagination"]["totalPages"] == 1

    query = captured["query"]
    assert query.limit == 5
    assert query.filters.status.value == "COMPLETED"
    assert query.filters.currency == "USD"


def test_unknown_sort_field_is_rejected():
    resp = client.get("/persons/search", params={"sort_by": "password"})
    assert resp.status_code == 422
