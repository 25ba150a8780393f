"""
Conversation repository.

Runs the conversation Cypher builders through a QueryExecutor and maps the
rows to response models. Contains no validation or HTTP concerns.
"""

import json
from collections import Counter
from typing import Any

from app.db.neo4j import QueryExecutor
from app.errors import ResourceNotFoundError
from app.features.conversations.repository import queries
from app.infrastructure.observability.logging import get_logger
from app.models.api.conversation_response import (
    ConversationDetail,
    ConversationMessage,
    ConversationSummary,
)
from app.utils.validated_params import PaginationParams, SearchParams

logger = get_logger(__name__)


def _first_int(rows: list[dict[str, Any]], key: str = "total") -> int:
    if not rows:
        return 0
    value = rows[0].get(key)
    return int(value) if value else 0


def _reaction_count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError, OverflowError):
        return 0


def normalize_reactions(raw: Any) -> dict[str, int]:
    """
    Coerce stored reactions into a symbol -> count mapping.

    Stored as a map, a JSON string, or a list of symbols (one per reaction).
    """
    if not raw:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return {}
    if isinstance(raw, dict):
        return {str(symbol): _reaction_count(count) for symbol, count in raw.items()}
    if isinstance(raw, list):
        return dict(Counter(str(symbol) for symbol in raw))
    return {}


class ConversationRepository:
    """Read-only conversation queries."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def count_conversations(self) -> int:
        query = queries.build_conversation_count_query()
        rows = await self.executor.execute_read(query.text, query.params)
        return _first_int(rows)

    async def list_conversations(self, pagination: PaginationParams) -> list[ConversationSummary]:
        query = queries.build_conversation_list_query(pagination.offset, pagination.limit)
        rows = await self.executor.execute_read(query.text, query.params)
        return [ConversationSummary.model_validate(row["conversation"]) for row in rows]

    async def search_conversations(self, search: SearchParams) -> tuple[list[ConversationSummary], int]:
        """Return (results page, total matches)."""
        count_query = queries.build_search_count_query(search)
        rows = await self.executor.execute_read(count_query.text, count_query.params)
        total = _first_int(rows)

        if total == 0:
            return [], 0

        data_query = queries.build_search_query(
            search, search.pagination.offset, search.pagination.limit
        )
        rows = await self.executor.execute_read(data_query.text, data_query.params)
        results = [ConversationSummary.model_validate(row["conversation"]) for row in rows]

        logger.debug(
            "Conversation search completed",
            total=total,
            returned=len(results),
            page=search.pagination.page,
        )
        return results, total

    async def get_conversation(self, conversation_id: str) -> ConversationDetail:
        query = queries.build_conversation_detail_query(conversation_id)
        rows = await self.executor.execute_read(query.text, query.params)
        if not rows or not rows[0].get("conversation"):
            raise ResourceNotFoundError("Conversation", conversation_id)

        record = dict(rows[0]["conversation"])
        record["participants"] = [p for p in record.get("participants") or [] if p]
        record["tags"] = record.get("tags") or []
        return ConversationDetail.model_validate(record)

    async def get_messages(
        self, conversation_id: str, pagination: PaginationParams
    ) -> tuple[list[ConversationMessage], int]:
        count_query = queries.build_conversation_messages_count_query(conversation_id)
        rows = await self.executor.execute_read(count_query.text, count_query.params)
        if not rows:
            raise ResourceNotFoundError("Conversation", conversation_id)
        total = _first_int(rows)

        if total == 0:
            return [], 0

        data_query = queries.build_conversation_messages_query(
            conversation_id, pagination.offset, pagination.limit
        )
        rows = await self.executor.execute_read(data_query.text, data_query.params)

        messages = []
        for row in rows:
            record = dict(row["message"])
            record["reactions"] = normalize_reactions(record.get("reactions"))
            messages.append(ConversationMessage.model_validate(record))
        return messages, total
