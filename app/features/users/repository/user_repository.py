"""
User repository.

Runs the user Cypher builders through a QueryExecutor and maps rows to
response models.
"""

from typing import Any

from app.db.neo4j import QueryExecutor
from app.errors import ResourceNotFoundError
from app.features.users.repository import queries
from app.models.api.conversation_response import ConversationSummary
from app.models.api.user_response import (
    ContactStats,
    UserActivity,
    UserActivityStats,
    UserContact,
    UserProfile,
    UserSummary,
)
from app.utils.validated_params import PaginationParams

# Neo4j dayOfWeek numbering: Monday = 1 ... Sunday = 7
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _first_int(rows: list[dict[str, Any]], key: str = "total") -> int:
    if not rows:
        return 0
    value = rows[0].get(key)
    return int(value) if value else 0


def build_messages_by_day(rows: list[dict[str, Any]]) -> dict[str, int]:
    """Fold (dayOfWeek, messageCount) rows into a Monday..Sunday mapping."""
    counts = dict.fromkeys(WEEKDAY_NAMES, 0)
    for row in rows:
        day = row.get("dayOfWeek")
        if isinstance(day, int) and 1 <= day <= 7:
            counts[WEEKDAY_NAMES[day - 1]] += max(0, int(row.get("messageCount") or 0))
    return counts


def most_active_day(messages_by_day: dict[str, int]) -> str | None:
    """Busiest weekday; ties go to the earlier day, None without messages."""
    best_day = None
    best_count = 0
    for day in WEEKDAY_NAMES:
        count = messages_by_day.get(day, 0)
        if count > best_count:
            best_day, best_count = day, count
    return best_day


class UserRepository:
    """Read-only user queries."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def count_users(self) -> int:
        query = queries.build_user_count_query()
        return _first_int(await self.executor.execute_read(query.text, query.params))

    async def list_users(self, pagination: PaginationParams) -> list[UserSummary]:
        query = queries.build_user_list_query(pagination.offset, pagination.limit)
        rows = await self.executor.execute_read(query.text, query.params)
        return [UserSummary.model_validate(row["user"]) for row in rows]

    async def get_user_summaries(self, user_ids: list[str]) -> dict[str, UserSummary]:
        if not user_ids:
            return {}
        query = queries.build_user_summaries_query(user_ids)
        rows = await self.executor.execute_read(query.text, query.params)
        summaries = [UserSummary.model_validate(row["user"]) for row in rows]
        return {summary.user_id: summary for summary in summaries}

    async def search_users(
        self,
        query_text: str,
        pagination: PaginationParams,
        exclude_user_id: str | None = None,
    ) -> tuple[list[UserProfile], int]:
        count_query = queries.build_user_search_count_query(query_text, exclude_user_id)
        total = _first_int(await self.executor.execute_read(count_query.text, count_query.params))
        if total == 0:
            return [], 0

        data_query = queries.build_user_search_query(
            query_text, pagination.offset, pagination.limit, exclude_user_id
        )
        rows = await self.executor.execute_read(data_query.text, data_query.params)
        return [UserProfile.model_validate(row["user"]) for row in rows], total

    async def user_exists(self, user_id: str) -> bool:
        query = queries.build_user_exists_query(user_id)
        rows = await self.executor.execute_read(query.text, query.params)
        return bool(rows)

    async def get_user_detail(
        self, user_id: str
    ) -> tuple[UserProfile, UserActivityStats, list[ConversationSummary], list[UserActivity]]:
        profile_query = queries.build_user_profile_query(user_id)
        rows = await self.executor.execute_read(profile_query.text, profile_query.params)
        if not rows:
            raise ResourceNotFoundError("User", user_id)
        record = rows[0]

        weekday_query = queries.build_user_weekday_activity_query(user_id)
        weekday_rows = await self.executor.execute_read(weekday_query.text, weekday_query.params)

        conversations_query = queries.build_user_recent_conversations_query(user_id)
        conversation_rows = await self.executor.execute_read(
            conversations_query.text, conversations_query.params
        )

        activity_query = queries.build_user_recent_activity_query(user_id)
        activity_rows = await self.executor.execute_read(activity_query.text, activity_query.params)

        message_count = int(record.get("messageCount") or 0)
        conversation_count = int(record.get("conversationCount") or 0)
        messages_by_day = build_messages_by_day(weekday_rows)

        stats = UserActivityStats(
            total_messages=message_count,
            total_conversations=conversation_count,
            average_messages_per_conversation=(
                round(message_count / conversation_count, 2) if conversation_count > 0 else 0.0
            ),
            most_active_day=most_active_day(messages_by_day) if message_count > 0 else None,
            first_activity=record.get("firstActivity"),
            last_activity=record.get("lastActivity"),
            messages_by_day=messages_by_day,
        )

        return (
            UserProfile.model_validate(record["user"]),
            stats,
            [ConversationSummary.model_validate(row["conversation"]) for row in conversation_rows],
            [
                UserActivity.model_validate(row["activity"])
                for row in activity_rows
                if row.get("activity") and row["activity"].get("conversationId")
            ],
        )

    async def get_contacts(
        self,
        user_id: str,
        pagination: PaginationParams,
        query_text: str | None = None,
    ) -> tuple[list[UserContact], int]:
        if not await self.user_exists(user_id):
            raise ResourceNotFoundError("User", user_id)

        count_query = queries.build_contact_count_query(user_id, query_text)
        total = _first_int(await self.executor.execute_read(count_query.text, count_query.params))
        if total == 0:
            return [], 0

        data_query = queries.build_contacts_query(
            user_id, pagination.offset, pagination.limit, query_text
        )
        rows = await self.executor.execute_read(data_query.text, data_query.params)

        contacts = []
        for row in rows:
            stats = ContactStats(
                shared_conversation_count=int(row.get("sharedConversationCount") or 0),
                total_message_count=int(row.get("totalMessageCount") or 0),
                first_interaction=row.get("firstInteraction"),
                last_interaction=row.get("lastInteraction"),
            )
            contacts.append(
                UserContact.model_validate({**row["user"], "communicationStats": stats})
            )
        return contacts, total
