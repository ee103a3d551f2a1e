import json
import logging

import pytest

import fraudlink.db.neo4j_connector as connector
from fraudlink.logging_setup import JsonFormatter


def test_write_transaction_commits_on_success(fake_graph):
    with connector.write_transaction() as tx:
        connector.run_in(tx, "CREATE (n:Person)")
    assert fake_graph.committed
    assert not fake_graph.rolled_back
    assert fake_graph.closed


def test_write_transaction_rolls_back_and_reraises(fake_graph):
    with pytest.raises(KeyError):
        with connector.write_transaction():
            raise KeyError("x")
    assert fake_graph.rolled_back
    assert not fake_graph.committed
    assert fake_graph.closed


def test_run_cypher_returns_plain_dicts(fake_graph):
    fake_graph.on("RETURN 1 AS one", [{"one": 1}])
    assert connector.run_cypher("RETURN 1 AS one") == [{"one": 1}]
    assert fake_graph.closed


def test_sessions_target_configured_database(fake_graph, monkeypatch):
    monkeypatch.setenv("NEO4J_DATABASE", "fraud")
    connector.run_cypher("RETURN 1")
    assert connector.get_driver().session_kwargs[-1] == {"database": "fraud"}


def test_missing_password_raises_helpful_error(monkeypatch):
    monkeypatch.setattr(connector, "_load_env_from_file", lambda: None)
    monkeypatch.delenv("NEO4J_PASSWORD", raising=False)
    with pytest.raises(RuntimeError) as exc:
        connector._get_neo4j_config()
    assert "NEO4J_PASSWORD" in str(exc.value)


def test_json_formatter_emits_one_object():
    record = logging.LogRecord("fraudlink.test", logging.WARNING, __file__, 1, "edge %s dropped", ("e1",), None)
    data = json.loads(JsonFormatter().format(record))
    assert data["level"] == "WARNING"
    assert data["logger"] == "fraudlink.test"
    assert data["message"] == "edge e1 dropped"
