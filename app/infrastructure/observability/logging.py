"""
Structured logging for comms-analytics.

Every entry is a JSON line carrying the service name, the logger name and an
ISO timestamp. Request-scoped fields (request id, method, route) are bound
through structlog contextvars by the HTTP middleware, so repository and
executor logs emitted while serving a request carry them too.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

SERVICE_NAME = "comms-analytics"

# Third-party loggers that are only interesting when something goes wrong
QUIET_LOGGERS = ("neo4j", "uvicorn.access")

# Cypher text is trimmed to this many characters in query logs
QUERY_PREVIEW_CHARS = 120


def setup_logging(log_level: str = "INFO") -> None:
    """Route structlog through stdlib logging and render JSON lines to stdout."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_name,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _add_service_name(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(request_id: str, method: str, path: str) -> None:
    """Attach request fields to every log entry until the request ends."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def log_request(route: str, status_code: int, duration_ms: float) -> None:
    """
    One entry per served request.

    route is the matched path template (/api/users/{user_id}) when routing
    succeeded, so entries group by endpoint rather than by concrete id.
    Server errors log at error level, client errors other than 404 at warning.
    """
    logger = get_logger("http")
    fields = {"route": route, "status_code": status_code, "duration_ms": duration_ms}

    if status_code >= 500:
        logger.error("Request failed", **fields)
    elif status_code >= 400 and status_code != 404:
        logger.warning("Request rejected", **fields)
    else:
        logger.info("Request served", **fields)


def log_query(operation: str, query: str, duration_ms: float, rows: int) -> None:
    """Debug entry for a completed graph query."""
    get_logger("neo4j.executor").debug(
        "Graph query completed",
        operation=operation,
        query=" ".join(query.split())[:QUERY_PREVIEW_CHARS],
        duration_ms=duration_ms,
        rows=rows,
    )


def log_readiness(checks: dict[str, dict[str, Any]], overall_ok: bool) -> None:
    """Summarize a readiness probe; failing checks are listed by name."""
    logger = get_logger("health")
    failing = sorted(name for name, check in checks.items() if not check.get("ok"))

    if overall_ok:
        logger.info("Readiness check passed", checks=sorted(checks))
    else:
        errors = {name: checks[name]["error"] for name in failing if checks[name].get("error")}
        logger.error("Readiness check failed", failing=failing, errors=errors)
