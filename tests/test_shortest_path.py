import pytest

from fraudlink.errors import IntegrityError, NotFoundError, ValidationError
from fraudlink.services.graph.paths import build_path, find_shortest_path

PERSONS_IN = "WHERE p.id IN $ids"


def _person(pid, **extra):
    props = {"id": pid, "firstName": pid.title(), "lastName": "Doe", "email": f"{pid}@example.com"}
    props.update(extra)
    return {"labels": ["Person"], "properties": props}


def _transfer(tid):
    return {
        "labels": ["Transfer"],
        "properties": {"id": tid, "transferType": "PAYMENT", "status": "COMPLETED", "amount": 50.0, "currency": "EUR"},
    }


def _known(*ids):
    def route(params):
        return [{"id": pid} for pid in params["ids"] if pid in ids]
    return route


def test_two_hop_path_is_returned_in_order(fake_graph):
    fake_graph.on(PERSONS_IN, _known("a", "b"))
    fake_graph.on("shortestPath", [{
        "nodes": [_person("a", phone="+1555"), _transfer("t"), _person("b")],
        "rels": [
            {"type": "SENT", "startId": "a", "endId": "t"},
            {"type": "RECEIVED_BY", "startId": "t", "endId": "b"},
        ],
        "length": 2,
    }])

    result = find_shortest_path("a", "b")

    assert result.length == 2
    assert [n.properties["id"] for n in result.path.nodes] == ["a", "t", "b"]
    assert [n.type for n in result.path.nodes] == ["Person", "Transfer", "Person"]
    assert len(result.path.relationships) == result.length
    assert [(r.type, r.start_node_id, r.end_node_id) for r in result.path.relationships] == [
        ("SENT", "a", "t"),
        ("RECEIVED_BY", "t", "b"),
    ]
    # only public person fields are exposed
    assert "phone" not in result.path.nodes[0].properties
    assert fake_graph.params_for("shortestPath")[0] == {"startId": "a", "targetId": "b"}


def test_missing_person_is_reported_by_id(fake_graph):
    fake_graph.on(PERSONS_IN, _known("a"))

    with pytest.raises(NotFoundError) as exc:
        find_shortest_path("a", "ghost")

    assert exc.value.ids == ["ghost"]
    assert not fake_graph.ran("shortestPath")


def test_path_to_self_is_rejected(fake_graph):
    fake_graph.on(PERSONS_IN, _known("a"))

    with pytest.raises(ValidationError):
        find_shortest_path("a", "a")
    assert not fake_graph.ran("shortestPath")


def test_disconnected_persons_have_no_path(fake_graph):
    fake_graph.on(PERSONS_IN, _known("a", "b"))

    with pytest.raises(NotFoundError) as exc:
        find_shortest_path("a", "b")
    assert "No path exists" in str(exc.value)


def test_path_walked_against_stored_direction_is_reported_in_path_order():
    # b received from a; the path is walked from b back to a
    result = build_path(
        [_person("b"), _transfer("t"), _person("a")],
        [
            {"type": "RECEIVED_BY", "startId": "t", "endId": "b"},
            {"type": "SENT", "startId": "a", "endId": "t"},
        ],
        2,
    )
    assert [(r.type, r.start_node_id, r.end_node_id) for r in result.path.relationships] == [
        ("SENT", "b", "t"),
        ("RECEIVED_BY", "t", "a"),
    ]


def test_unmappable_edge_makes_the_path_inconsistent(caplog):
    with pytest.raises(IntegrityError):
        build_path(
            [_person("a"), _transfer("t"), _person("b")],
            [
                {"type": "SENT", "startId": "a", "endId": "t"},
                {"type": "SENT", "startId": "x", "endId": "y"},
            ],
            2,
        )
    assert any("Dropping path edge 1" in r.getMessage() for r in caplog.records)
