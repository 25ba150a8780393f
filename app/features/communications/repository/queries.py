"""
Cypher builders for pairwise communication data.

All builders expect the pair in canonical order; messages are restricted to
those sent by either member of the pair inside conversations both share.
"""

from typing import Any

from app.db.cypher import CypherQuery, date_range_conditions, join_conditions
from app.utils.validated_params import DateRange, PairParams

SHARED_CONVERSATIONS_MATCH = (
    "MATCH (u1:User {userId: $userId1})-[:PARTICIPATES_IN]->(c:Conversation)"
    "<-[:PARTICIPATES_IN]-(u2:User {userId: $userId2})"
)


def _pair_params(pair: PairParams) -> dict[str, Any]:
    return {"userId1": pair.user1_id, "userId2": pair.user2_id}


def _pair_message_filters(
    date_range: DateRange, conversation_id: str | None = None
) -> tuple[str, dict[str, Any]]:
    conditions = ["m.senderId IN [$userId1, $userId2]"]
    params: dict[str, Any] = {}

    if conversation_id:
        conditions.append("c.conversationId = $conversationId")
        params["conversationId"] = conversation_id

    date_conditions, date_params = date_range_conditions(
        "m.timestamp", date_range.start, date_range.end
    )
    conditions.extend(date_conditions)
    params.update(date_params)
    return join_conditions(conditions), params


def build_shared_conversations_query(pair: PairParams) -> CypherQuery:
    text = f"""
    {SHARED_CONVERSATIONS_MATCH}
    WITH c
    ORDER BY c.lastMessageTimestamp DESC, c.conversationId
    CALL {{
      WITH c
      OPTIONAL MATCH (c)<-[:BELONGS_TO]-(m:Message)
      RETURN count(m) AS totalMessages,
             sum(CASE WHEN m.senderId = $userId1 THEN 1 ELSE 0 END) AS user1Messages,
             sum(CASE WHEN m.senderId = $userId2 THEN 1 ELSE 0 END) AS user2Messages
    }}
    CALL {{
      WITH c
      MATCH (u:User)-[:PARTICIPATES_IN]->(c)
      RETURN collect({{
        userId: u.userId,
        name: u.name,
        email: u.email,
        avatar: u.avatarUrl
      }}) AS participants
    }}
    RETURN c.conversationId AS conversationId,
           c.title AS title,
           c.type AS type,
           c.lastMessageTimestamp AS lastMessageTimestamp,
           totalMessages,
           user1Messages,
           user2Messages,
           participants
    """
    return CypherQuery(text, _pair_params(pair))


def build_pair_stats_query(pair: PairParams, date_range: DateRange) -> CypherQuery:
    date_conditions, date_params = date_range_conditions(
        "m.timestamp", date_range.start, date_range.end
    )
    message_filter = join_conditions(["m.senderId IN [$userId1, $userId2]", *date_conditions])
    text = f"""
    {SHARED_CONVERSATIONS_MATCH}
    OPTIONAL MATCH (c)<-[:BELONGS_TO]-(m:Message)
    WHERE {message_filter}
    RETURN count(DISTINCT c) AS totalConversations,
           count(m) AS totalMessages,
           sum(CASE WHEN m.senderId = $userId1 THEN 1 ELSE 0 END) AS user1Messages,
           sum(CASE WHEN m.senderId = $userId2 THEN 1 ELSE 0 END) AS user2Messages,
           min(m.timestamp) AS firstInteraction,
           max(m.timestamp) AS lastInteraction
    """
    return CypherQuery(text, {**date_params, **_pair_params(pair)})


def build_timeline_count_query(
    pair: PairParams, date_range: DateRange, conversation_id: str | None = None
) -> CypherQuery:
    where_clause, params = _pair_message_filters(date_range, conversation_id)
    text = f"""
    {SHARED_CONVERSATIONS_MATCH}
    MATCH (c)<-[:BELONGS_TO]-(m:Message)
    WHERE {where_clause}
    RETURN count(m) AS total
    """
    return CypherQuery(text, {**params, **_pair_params(pair)})


def build_timeline_query(
    pair: PairParams,
    date_range: DateRange,
    skip: int,
    limit: int,
    conversation_id: str | None = None,
) -> CypherQuery:
    where_clause, params = _pair_message_filters(date_range, conversation_id)
    text = f"""
    {SHARED_CONVERSATIONS_MATCH}
    MATCH (c)<-[:BELONGS_TO]-(m:Message)
    WHERE {where_clause}
    RETURN m.messageId AS messageId,
           m.content AS content,
           m.senderId AS senderId,
           m.timestamp AS timestamp,
           c.conversationId AS conversationId,
           c.title AS conversationTitle
    ORDER BY m.timestamp DESC, m.messageId
    SKIP $skip
    LIMIT $limit
    """
    return CypherQuery(
        text, {**params, **_pair_params(pair), "skip": skip, "limit": limit}
    )


def build_pair_messages_query(pair: PairParams, date_range: DateRange) -> CypherQuery:
    """Raw (sender, timestamp, conversation) rows feeding the aggregation engine."""
    where_clause, params = _pair_message_filters(date_range)
    text = f"""
    {SHARED_CONVERSATIONS_MATCH}
    MATCH (c)<-[:BELONGS_TO]-(m:Message)
    WHERE {where_clause} AND m.timestamp IS NOT NULL
    RETURN m.senderId AS senderId,
           m.timestamp AS timestamp,
           c.conversationId AS conversationId,
           c.type AS conversationType
    ORDER BY c.conversationId, m.timestamp
    """
    return CypherQuery(text, {**params, **_pair_params(pair)})


def build_pair_conversations_query(pair: PairParams) -> CypherQuery:
    text = f"""
    {SHARED_CONVERSATIONS_MATCH}
    RETURN DISTINCT c.conversationId AS conversationId, c.type AS type
    """
    return CypherQuery(text, _pair_params(pair))
