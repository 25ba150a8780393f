import pytest
from fastapi.testclient import TestClient

from app.db.neo4j import get_query_executor
from app.main import app


class FakeExecutor:
    """
    In-memory QueryExecutor.

    Canned results are registered against a Cypher fragment; the first
    registered fragment contained in the query text wins. An Exception
    instance as the result is raised instead of returned.
    """

    def __init__(self, connected: bool = True):
        self.connected = connected
        self.responses: list[tuple[str, object]] = []
        self.calls: list[tuple[str, dict]] = []

    def on(self, fragment: str, result) -> "FakeExecutor":
        self.responses.append((fragment, result))
        return self

    async def execute_read(self, query: str, params: dict | None = None) -> list[dict]:
        self.calls.append((query, dict(params or {})))
        for fragment, result in self.responses:
            if fragment in query:
                if isinstance(result, Exception):
                    raise result
                return list(result)
        return []

    async def test_connectivity(self) -> bool:
        return self.connected

    def params_for(self, fragment: str) -> dict:
        """Parameters of the last recorded query containing fragment."""
        for query, params in reversed(self.calls):
            if fragment in query:
                return params
        raise AssertionError(f"no query containing {fragment!r} was executed")


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def client(fake_executor):
    app.dependency_overrides[get_query_executor] = lambda: fake_executor
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_query_executor, None)
