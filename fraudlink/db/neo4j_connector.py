import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from neo4j import GraphDatabase

_driver = None


def get_driver():
    """Return the shared Neo4j driver, creating it on first use."""
    global _driver
    if _driver is None:
        uri, user, pwd = _get_neo4j_config()
        try:
            _driver = GraphDatabase.driver(uri, auth=(user, pwd))
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create Neo4j driver for URI '{uri}'. Check that the database is running and the credentials are correct.\nError: {exc}"
            ) from exc
    return _driver


def close_driver():
    global _driver
    if _driver is not None:
        _driver.close()
        _driver = None


def _session_kwargs() -> Dict[str, Any]:
    database = os.getenv("NEO4J_DATABASE")
    return {"database": database} if database else {}


def run_in(runner, query: str, parameters: Optional[dict] = None) -> List[Dict[str, Any]]:
    """Run a Cypher statement on an open session or transaction and return rows as dicts.

    Node and relationship values come back as plain property maps (``record.data()``).
    """
    result = runner.run(query, parameters or {})
    return [record.data() for record in result]


def run_cypher(query: str, parameters: dict = None) -> List[Dict[str, Any]]:
    """Run a single Cypher statement in its own short-lived session."""
    driver = get_driver()
    with driver.session(**_session_kwargs()) as session:
        return run_in(session, query, parameters)


@contextmanager
def read_session() -> Iterator[Any]:
    """Yield a session for a multi-statement read; always closed on exit."""
    driver = get_driver()
    session = driver.session(**_session_kwargs())
    try:
        yield session
    finally:
        session.close()


@contextmanager
def write_transaction() -> Iterator[Any]:
    """Yield an explicit write transaction.

    Commits when the block exits normally, rolls back on any exception and re-raises it.
    No retry is attempted; the failure propagates to the caller.
    """
    driver = get_driver()
    session = driver.session(**_session_kwargs())
    try:
        tx = session.begin_transaction()
        try:
            yield tx
        except Exception:
            tx.rollback()
            raise
        else:
            tx.commit()
    finally:
        session.close()


def _load_env_from_file():
    """Load environment variables from a .env file at the project root if present.

    Only sets variables that aren't already present in the process environment.
    """
    root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    env_path = os.path.join(root_dir, ".env")
    if not os.path.isfile(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            if "=" not in s:
                continue
            key, val = s.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")
            # Allow space around '=' like KEY = value
            if key and (key not in os.environ or not os.environ[key]):
                os.environ[key] = val


def _get_neo4j_config():
    """Get Neo4j URI, user, and password, loading .env if necessary and applying defaults.

    Returns (uri, user, password). Raises a helpful RuntimeError when required values are missing.
    """
    _load_env_from_file()

    uri = os.getenv("NEO4J_URI") or "bolt://localhost:7687"
    user = os.getenv("NEO4J_USER") or "neo4j"
    pwd = os.getenv("NEO4J_PASSWORD")

    if not pwd:
        hint = (
            "NEO4J_PASSWORD is not set.\n"
            "Define it in your environment or in a .env file at the project root, e.g.\n"
            "export NEO4J_URI=bolt://localhost:7687 NEO4J_USER=neo4j NEO4J_PASSWORD=your_password"
        )
        raise RuntimeError(hint)

    return uri, user, pwd
