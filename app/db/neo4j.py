"""
Neo4j driver manager and query executor.

Owns driver lifecycle and exposes the two operations the rest of the
service relies on: run a read query and get plain rows back, and report
connectivity. Driver-specific value types never leave this module.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Protocol

from neo4j import AsyncGraphDatabase, basic_auth
from neo4j.exceptions import (
    AuthError,
    DriverError,
    Neo4jError,
    ServiceUnavailable,
    SessionExpired,
)

from app.config import settings
from app.db.values import normalize_value
from app.errors import DatabaseUnavailableError, QueryExecutionError
from app.infrastructure.observability.logging import get_logger, log_query

logger = get_logger(__name__)

SCHEMA_STATEMENTS = (
    "CREATE CONSTRAINT user_id_unique IF NOT EXISTS FOR (u:User) REQUIRE u.userId IS UNIQUE",
    "CREATE CONSTRAINT conversation_id_unique IF NOT EXISTS "
    "FOR (c:Conversation) REQUIRE c.conversationId IS UNIQUE",
    "CREATE CONSTRAINT message_id_unique IF NOT EXISTS FOR (m:Message) REQUIRE m.messageId IS UNIQUE",
    "CREATE INDEX message_timestamp_idx IF NOT EXISTS FOR (m:Message) ON (m.timestamp)",
    "CREATE INDEX message_sender_idx IF NOT EXISTS FOR (m:Message) ON (m.senderId)",
    "CREATE INDEX conversation_last_msg_idx IF NOT EXISTS "
    "FOR (c:Conversation) ON (c.lastMessageTimestamp)",
    "CREATE INDEX user_name_idx IF NOT EXISTS FOR (u:User) ON (u.name)",
)


class QueryExecutor(Protocol):
    """What repositories need from the graph store."""

    async def execute_read(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]: ...

    async def test_connectivity(self) -> bool: ...


class Neo4jDriverManager:
    """Manage a shared Neo4j driver instance for async usage."""

    def __init__(self) -> None:
        self._driver = None
        self._initialized = False
        self._closed = False
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the Neo4j driver and verify connectivity."""
        if self._initialized:
            return

        async with self._init_lock:
            # Another caller may have finished while this one waited.
            if self._initialized:
                return
            if self._closed:
                raise RuntimeError("Cannot reinitialize closed Neo4j driver")
            if not settings.NEO4J_URI or not settings.NEO4J_PASSWORD:
                raise DatabaseUnavailableError(
                    "Neo4j config missing: set NEO4J_URI and NEO4J_PASSWORD",
                    operation="initialize",
                    recoverable=False,
                )

            logger.info("Initializing Neo4j driver", uri=settings.NEO4J_URI)

            driver = AsyncGraphDatabase.driver(
                settings.NEO4J_URI,
                auth=basic_auth(settings.NEO4J_USERNAME, settings.NEO4J_PASSWORD),
                **settings.get_neo4j_driver_config(),
            )

            try:
                await driver.verify_connectivity()
            except (ServiceUnavailable, AuthError) as e:
                logger.error("Neo4j connectivity check failed", error=str(e))
                await driver.close()
                raise DatabaseUnavailableError(
                    f"Neo4j unreachable: {e}", operation="initialize"
                ) from e

            self._driver = driver
            self._initialized = True

        logger.info(
            "Neo4j driver initialized",
            database=settings.NEO4J_DATABASE,
        )

    async def close(self) -> None:
        """Close the driver cleanly."""
        if self._closed:
            return

        async with self._init_lock:
            try:
                if self._driver:
                    await self._driver.close()
            finally:
                self._driver = None
                self._initialized = False
                self._closed = True
                logger.info("Neo4j driver closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[Any, None]:
        """Provide a Neo4j session bound to the configured database."""
        if self._closed:
            raise RuntimeError("Neo4j driver is closed")
        if not self._initialized:
            await self.initialize()

        async with self._driver.session(database=settings.NEO4J_DATABASE) as session:
            yield session

    async def execute_read(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """
        Run a read query and return its rows as plain dicts.

        Temporal values are converted to ISO strings and nodes to property
        maps before the rows are returned.

        Raises:
            DatabaseUnavailableError: the database cannot be reached
            QueryExecutionError: the query itself failed
        """

        async def _work(tx):
            result = await tx.run(query, params or {})
            return await result.data()

        started = time.perf_counter()
        try:
            async with self.session() as session:
                rows = await session.execute_read(_work)
        except (ServiceUnavailable, SessionExpired, AuthError) as e:
            logger.error("Neo4j unavailable", query=query[:100], error=str(e))
            raise DatabaseUnavailableError(
                f"Neo4j unavailable: {e}", operation="execute_read"
            ) from e
        except (Neo4jError, DriverError) as e:
            logger.error(
                "Neo4j query error",
                query=query[:100],
                error=str(e),
                error_type=type(e).__name__,
            )
            raise QueryExecutionError(
                f"Query failed: {e}", operation="execute_read", recoverable=False
            ) from e

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        log_query("execute_read", query, duration_ms, len(rows))
        return [normalize_value(row) for row in rows]

    async def test_connectivity(self) -> bool:
        """Return True when the database answers, False otherwise."""
        try:
            if not self._initialized:
                await self.initialize()
            await self._driver.verify_connectivity()
            return True
        except (DatabaseUnavailableError, Neo4jError, DriverError) as e:
            logger.error("Neo4j connection test failed", error=str(e))
            return False

    async def ensure_schema(self) -> int:
        """Create the constraints and indexes the read queries rely on."""
        async with self.session() as session:
            for statement in SCHEMA_STATEMENTS:
                result = await session.run(statement)
                await result.consume()

        logger.info("Neo4j schema ensured", statements=len(SCHEMA_STATEMENTS))
        return len(SCHEMA_STATEMENTS)

    async def health_check(self) -> dict[str, Any]:
        """Return Neo4j driver health status."""
        if self._closed:
            return {
                "healthy": False,
                "service": "neo4j",
                "error": "Driver is closed",
            }

        try:
            if not self._initialized:
                await self.initialize()
            await self._driver.verify_connectivity()
            return {
                "healthy": True,
                "service": "neo4j",
                "database": settings.NEO4J_DATABASE,
            }
        except (DatabaseUnavailableError, Neo4jError, DriverError) as exc:
            return {
                "healthy": False,
                "service": "neo4j",
                "error": str(exc),
                "error_type": type(exc).__name__,
            }


neo4j_driver = Neo4jDriverManager()


def get_query_executor() -> QueryExecutor:
    """FastAPI dependency returning the shared executor."""
    return neo4j_driver


async def neo4j_health_check() -> dict[str, Any]:
    """Convenience wrapper for Neo4j health checks."""
    return await neo4j_driver.health_check()
