import pytest

import fraudlink.db.neo4j_connector as connector


class FakeRecord:
    def __init__(self, data: dict):
        self._data = data

    def data(self) -> dict:
        return dict(self._data)


class FakeRunner:
    """Stands in for a neo4j session and transaction at once.

    Statements are answered by the first route whose fragment occurs in the query
    text; a route may be a list of rows or a callable taking the parameters.
    """

    def __init__(self):
        self.routes = []
        self.calls = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def on(self, fragment: str, rows):
        self.routes.append((fragment, rows))
        return self

    def run(self, query: str, parameters: dict | None = None):
        params = parameters or {}
        self.calls.append((query, params))
        for fragment, rows in self.routes:
            if fragment in query:
                result = rows(params) if callable(rows) else rows
                return [FakeRecord(r) for r in result]
        return []

    def begin_transaction(self):
        return self

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def params_for(self, fragment: str) -> list:
        return [p for q, p in self.calls if fragment in q]

    def ran(self, fragment: str) -> bool:
        return any(fragment in q for q, _ in self.calls)


class FakeDriver:
    def __init__(self, runner: FakeRunner):
        self.runner = runner
        self.session_kwargs = []

    def session(self, **kwargs):
        self.session_kwargs.append(kwargs)
        return self.runner

    def close(self):
        pass


@pytest.fixture
def fake_graph(monkeypatch):
    """Route every driver session in fraudlink to a FakeRunner."""
    runner = FakeRunner()
    monkeypatch.setattr(connector, "_driver", FakeDriver(runner))
    return runner


def person_row(pid: str, first: str = "Alice", last: str = "Smith", email: str = "alice@example.com", **extra):
    node = {
        "id": pid,
        "firstName": first,
        "lastName": last,
        "email": email,
        "createdAt": "2024-01-01T00:00:00+00:00",
        "updatedAt": "2024-01-01T00:00:00+00:00",
    }
    node.update(extra)
    return {"p": node, "a": None, "payment_methods": []}


def transfer_row(tid: str, payer: str = "P1", payee: str = "P2", **extra):
    node = {
        "id": tid,
        "transferType": "PAYMENT",
        "status": "COMPLETED",
        "payerId": payer,
        "payeeId": payee,
        "amount": 120.5,
        "currency": "USD",
        "timestamp": "2024-03-01T10:00:00+00:00",
    }
    node.update(extra)
    return {"t": node, "d": None, "g": None, "pt": None}
