"""
Cypher builders for conversation listing, search and lookup.

Search relevance (lower ranks first):
    1  title equals the query
    2  title starts with the query
    3  title contains the query
    4  titled conversation matched on a participant name only
    5  untitled (direct) conversation matched on a participant name
Ties are broken by lastMessageTimestamp (newest first), then conversationId.
"""

from typing import Any

from app.db.cypher import CypherQuery, date_range_conditions, join_conditions
from app.utils.validated_params import SearchParams

PRIORITY_ALIASES = {
    "normal": ("normal", "medium"),
    "medium": ("normal", "medium"),
}

CONVERSATION_SUMMARY_PROJECTION = """
    RETURN {
      conversationId: c.conversationId,
      title: c.title,
      type: c.type,
      priority: c.priority,
      lastMessageTimestamp: c.lastMessageTimestamp,
      participantCount: COUNT { (:User)-[:PARTICIPATES_IN]->(c) },
      messageCount: COUNT { (:Message)-[:BELONGS_TO]->(c) }
    } AS conversation
"""

RELEVANCE_EXPRESSION = """
      CASE
        WHEN c.title IS NOT NULL AND toLower(c.title) = toLower($query) THEN 1
        WHEN c.title IS NOT NULL AND toLower(c.title) STARTS WITH toLower($query) THEN 2
        WHEN c.title IS NOT NULL AND toLower(c.title) CONTAINS toLower($query) THEN 3
        WHEN c.title IS NOT NULL THEN 4
        ELSE 5
      END
"""


def build_conversation_count_query() -> CypherQuery:
    return CypherQuery("MATCH (c:Conversation) RETURN count(c) AS total")


def build_conversation_list_query(skip: int, limit: int) -> CypherQuery:
    # Pagination is applied before the per-row COUNT subqueries run.
    text = f"""
    MATCH (c:Conversation)
    WITH c
    ORDER BY c.lastMessageTimestamp DESC, c.conversationId
    SKIP $skip
    LIMIT $limit
    {CONVERSATION_SUMMARY_PROJECTION}
    """
    return CypherQuery(text, {"skip": skip, "limit": limit})


def build_search_filters(search: SearchParams) -> tuple[str, dict[str, Any]]:
    """Return the conjunctive WHERE body and its parameters for a search."""
    conditions = [
        "((c.title IS NOT NULL AND toLower(c.title) CONTAINS toLower($query)) "
        "OR EXISTS { MATCH (u:User)-[:PARTICIPATES_IN]->(c) "
        "WHERE toLower(u.name) CONTAINS toLower($query) })"
    ]
    params: dict[str, Any] = {"query": search.query}

    if search.conversation_type:
        conditions.append("c.type = $type")
        params["type"] = search.conversation_type

    if search.priority:
        conditions.append("c.priority IN $priorities")
        params["priorities"] = list(PRIORITY_ALIASES.get(search.priority, (search.priority,)))

    date_conditions, date_params = date_range_conditions(
        "c.lastMessageTimestamp",
        search.date_range.start,
        search.date_range.end,
    )
    conditions.extend(date_conditions)
    params.update(date_params)

    return join_conditions(conditions), params


def build_search_count_query(search: SearchParams) -> CypherQuery:
    where_clause, params = build_search_filters(search)
    text = f"""
    MATCH (c:Conversation)
    WHERE {where_clause}
    RETURN count(c) AS total
    """
    return CypherQuery(text, params)


def build_search_query(search: SearchParams, skip: int, limit: int) -> CypherQuery:
    where_clause, params = build_search_filters(search)
    text = f"""
    MATCH (c:Conversation)
    WHERE {where_clause}
    WITH c,
    {RELEVANCE_EXPRESSION} AS relevance
    ORDER BY relevance, c.lastMessageTimestamp DESC, c.conversationId
    SKIP $skip
    LIMIT $limit
    {CONVERSATION_SUMMARY_PROJECTION}, relevance
    """
    return CypherQuery(text, {**params, "skip": skip, "limit": limit})


def build_conversation_detail_query(conversation_id: str) -> CypherQuery:
    text = """
    MATCH (c:Conversation {conversationId: $conversationId})
    OPTIONAL MATCH (u:User)-[:PARTICIPATES_IN]->(c)
    WITH c, u
    ORDER BY u.name
    WITH c, collect(CASE WHEN u IS NULL THEN NULL ELSE {
      userId: u.userId,
      name: u.name,
      email: u.email,
      avatarUrl: u.avatarUrl,
      status: u.status
    } END) AS participants
    RETURN {
      conversationId: c.conversationId,
      title: c.title,
      type: c.type,
      priority: c.priority,
      createdAt: c.createdAt,
      lastMessageTimestamp: c.lastMessageTimestamp,
      tags: coalesce(c.tags, []),
      messageCount: COUNT { (:Message)-[:BELONGS_TO]->(c) },
      participants: participants
    } AS conversation
    """
    return CypherQuery(text, {"conversationId": conversation_id})


def build_conversation_messages_count_query(conversation_id: str) -> CypherQuery:
    text = """
    MATCH (c:Conversation {conversationId: $conversationId})
    OPTIONAL MATCH (m:Message)-[:BELONGS_TO]->(c)
    WITH c, count(m) AS total
    RETURN total
    """
    return CypherQuery(text, {"conversationId": conversation_id})


def build_conversation_messages_query(conversation_id: str, skip: int, limit: int) -> CypherQuery:
    text = """
    MATCH (m:Message)-[:BELONGS_TO]->(c:Conversation {conversationId: $conversationId})
    WITH m
    ORDER BY m.timestamp ASC, m.messageId
    SKIP $skip
    LIMIT $limit
    RETURN m {
      messageId: m.messageId,
      content: m.content,
      senderId: m.senderId,
      timestamp: m.timestamp,
      status: m.status,
      type: m.type,
      reactions: m.reactions
    } AS message
    """
    return CypherQuery(text, {"conversationId": conversation_id, "skip": skip, "limit": limit})
