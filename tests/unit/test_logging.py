"""
Tests for structured logging helpers and the request logging middleware.
"""

from unittest.mock import MagicMock

import pytest
import structlog

from app.infrastructure.observability import logging as app_logging


@pytest.fixture
def captured(monkeypatch):
    fake_logger = MagicMock()
    monkeypatch.setattr(app_logging, "get_logger", lambda name=None: fake_logger)
    return fake_logger


@pytest.mark.parametrize(
    "status_code, level",
    [(200, "info"), (304, "info"), (404, "info"), (400, "warning"), (503, "error")],
)
def test_log_request_level_follows_status(captured, status_code, level):
    app_logging.log_request("/api/users/{user_id}", status_code, 12.5)

    method = getattr(captured, level)
    method.assert_called_once()
    assert method.call_args.kwargs == {
        "route": "/api/users/{user_id}",
        "status_code": status_code,
        "duration_ms": 12.5,
    }


def test_log_query_collapses_and_trims_cypher(captured):
    query = "MATCH (c:Conversation)\n    WHERE c.title CONTAINS $query\n" + "x" * 500

    app_logging.log_query("execute_read", query, 3.2, 7)

    fields = captured.debug.call_args.kwargs
    assert fields["query"].startswith("MATCH (c:Conversation) WHERE c.title")
    assert len(fields["query"]) == app_logging.QUERY_PREVIEW_CHARS
    assert (fields["operation"], fields["rows"]) == ("execute_read", 7)


def test_log_readiness_names_failing_checks(captured):
    checks = {
        "neo4j": {"ok": False, "error": "Connection refused"},
        "configuration": {"ok": True},
    }

    app_logging.log_readiness(checks, overall_ok=False)

    fields = captured.error.call_args.kwargs
    assert fields == {"failing": ["neo4j"], "errors": {"neo4j": "Connection refused"}}


def test_request_context_is_bound_and_cleared():
    app_logging.bind_request_context("req-1", "GET", "/api/users")
    assert structlog.contextvars.get_contextvars() == {
        "request_id": "req-1",
        "method": "GET",
        "path": "/api/users",
    }

    app_logging.clear_request_context()
    assert structlog.contextvars.get_contextvars() == {}


def test_middleware_logs_route_template_and_echoes_request_id(client, monkeypatch):
    logged = []

    def _record(route, status_code, duration_ms):
        logged.append((route, status_code))

    monkeypatch.setattr("app.main.log_request", _record)

    response = client.get("/api/users/alice", headers={"X-Request-ID": "abc123"})

    assert response.headers["x-request-id"] == "abc123"
    assert logged == [("/api/users/{user_id}", response.status_code)]
