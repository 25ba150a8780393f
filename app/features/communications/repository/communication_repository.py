"""
Pair communication repository.

Fetches shared conversations, message timelines and the raw message rows
used by the aggregation engine. All methods take the pair in canonical order.
"""

from typing import Any

from app.db.neo4j import QueryExecutor
from app.errors import ResourceNotFoundError
from app.features.communications.pipeline.aggregation.service import (
    ConversationRow,
    MessageRow,
)
from app.features.communications.repository import queries
from app.features.users.repository.user_repository import UserRepository
from app.models.api.communication_response import (
    CommunicationStats,
    SharedConversation,
    TimelineMessage,
)
from app.models.api.user_response import UserSummary
from app.utils.validated_params import DateRange, PairParams, PaginationParams


def _count(value: Any) -> int:
    return int(value) if value else 0


class CommunicationRepository:
    def __init__(self, executor: QueryExecutor):
        self.executor = executor
        self.users = UserRepository(executor)

    async def get_pair_users(self, pair: PairParams) -> tuple[UserSummary, UserSummary]:
        """Both users of the pair; raises ResourceNotFoundError if either is missing."""
        summaries = await self.users.get_user_summaries([pair.user1_id, pair.user2_id])
        user1 = summaries.get(pair.user1_id)
        user2 = summaries.get(pair.user2_id)
        if user1 is None or user2 is None:
            missing = pair.user1_id if user1 is None else pair.user2_id
            raise ResourceNotFoundError("User", missing)
        return user1, user2

    async def get_shared_conversations(self, pair: PairParams) -> list[SharedConversation]:
        query = queries.build_shared_conversations_query(pair)
        rows = await self.executor.execute_read(query.text, query.params)
        return [
            SharedConversation(
                conversation_id=row["conversationId"],
                title=row.get("title") or "Untitled Conversation",
                type="direct" if row.get("type") == "direct" else "group",
                message_count=_count(row.get("totalMessages")),
                user1_message_count=_count(row.get("user1Messages")),
                user2_message_count=_count(row.get("user2Messages")),
                last_message_timestamp=row.get("lastMessageTimestamp"),
                participants=row.get("participants") or [],
            )
            for row in rows
        ]

    async def get_communication_stats(
        self, pair: PairParams, date_range: DateRange
    ) -> CommunicationStats:
        query = queries.build_pair_stats_query(pair, date_range)
        rows = await self.executor.execute_read(query.text, query.params)
        if not rows:
            return CommunicationStats()

        record = rows[0]
        return CommunicationStats(
            total_shared_conversations=_count(record.get("totalConversations")),
            total_messages=_count(record.get("totalMessages")),
            user1_messages=_count(record.get("user1Messages")),
            user2_messages=_count(record.get("user2Messages")),
            first_interaction=record.get("firstInteraction"),
            last_interaction=record.get("lastInteraction"),
        )

    async def get_message_timeline(
        self,
        pair: PairParams,
        date_range: DateRange,
        pagination: PaginationParams,
        conversation_id: str | None = None,
    ) -> tuple[list[TimelineMessage], int]:
        count_query = queries.build_timeline_count_query(pair, date_range, conversation_id)
        count_rows = await self.executor.execute_read(count_query.text, count_query.params)
        total = _count(count_rows[0].get("total")) if count_rows else 0
        if total == 0:
            return [], 0

        data_query = queries.build_timeline_query(
            pair, date_range, pagination.offset, pagination.limit, conversation_id
        )
        rows = await self.executor.execute_read(data_query.text, data_query.params)
        messages = [
            TimelineMessage(
                message_id=row["messageId"],
                content=row.get("content"),
                sender_id=row.get("senderId"),
                timestamp=row.get("timestamp"),
                conversation_id=row["conversationId"],
                conversation_title=row.get("conversationTitle") or "Untitled Conversation",
            )
            for row in rows
        ]
        return messages, total

    async def get_pair_messages(self, pair: PairParams, date_range: DateRange) -> list[MessageRow]:
        query = queries.build_pair_messages_query(pair, date_range)
        rows = await self.executor.execute_read(query.text, query.params)
        messages = (MessageRow.from_record(row) for row in rows)
        return [message for message in messages if message is not None]

    async def get_pair_conversations(self, pair: PairParams) -> list[ConversationRow]:
        query = queries.build_pair_conversations_query(pair)
        rows = await self.executor.execute_read(query.text, query.params)
        return [ConversationRow.from_record(row) for row in rows]
