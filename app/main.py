"""
Application entry point: lifespan management, routers and request logging.
"""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.db.neo4j import neo4j_driver
from app.errors import DatabaseError
from app.features.communications import communications_router
from app.features.conversations import conversations_router
from app.features.users import users_router
from app.infrastructure.observability.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    log_request,
    setup_logging,
)
from app.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared Neo4j driver on startup and close it on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        logger.info("Initializing Neo4j driver")
        await neo4j_driver.initialize()
        if settings.NEO4J_ENSURE_SCHEMA:
            await neo4j_driver.ensure_schema()
    except DatabaseError as e:
        # Requests retry the connection lazily and answer 503 until it succeeds.
        logger.error("Neo4j not available at startup", error=str(e), operation=e.operation)

    yield

    logger.info("Application shutting down")
    try:
        await neo4j_driver.close()
    except DatabaseError as e:
        logger.error("Error closing Neo4j driver", error=str(e))


app = FastAPI(
    title="Communication Analytics",
    description="Conversation, user and pairwise communication analytics over a Neo4j graph",
    version="0.1.0",
    lifespan=lifespan,
)

# Static /api/users/communications routes are registered before /api/users/{user_id}
app.include_router(health.router)
app.include_router(conversations_router)
app.include_router(communications_router)
app.include_router(users_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Bind request context for the duration of the request and log its timing."""
    request_id = (request.headers.get("x-request-id") or uuid.uuid4().hex)[:64]
    bind_request_context(request_id, request.method, request.url.path)
    start_time = time.time()
    try:
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000

        # FastAPI records the matched route in the scope; unmatched paths keep the raw path.
        route = getattr(request.scope.get("route"), "path", request.url.path)
        log_request(route, response.status_code, round(process_time, 2))
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        clear_request_context()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
