"""
Cypher builders for user listing, search, profile and contacts.
"""

from app.db.cypher import CypherQuery

USER_SUMMARY_PROJECTION = """
    RETURN {
      userId: u.userId,
      name: u.name,
      avatar: u.avatarUrl,
      email: u.email,
      lastActiveTimestamp: u.lastSeen,
      conversationCount: COUNT { (u)-[:PARTICIPATES_IN]->(:Conversation) },
      messageCount: COUNT { (u)-[:SENT]->(:Message) }
    } AS user
"""


def user_profile_projection(var: str = "u") -> str:
    """Map projection of the public user profile fields for node variable var."""
    fields = (
        "userId",
        "name",
        "email",
        "username",
        "avatarUrl",
        "bio",
        "status",
        "role",
        "department",
        "location",
        "lastSeen",
    )
    body = ", ".join(f"{name}: {var}.{name}" for name in fields)
    return f"{var} {{{body}}}"


USER_SEARCH_CONDITION = (
    "(toLower(u.name) CONTAINS toLower($query) "
    "OR toLower(u.email) CONTAINS toLower($query) "
    "OR toLower(u.username) CONTAINS toLower($query))"
)

CONTACT_NAME_CONDITION = (
    "(toLower(u2.name) CONTAINS toLower($query) "
    "OR toLower(u2.email) CONTAINS toLower($query) "
    "OR toLower(u2.username) CONTAINS toLower($query))"
)


def build_user_count_query() -> CypherQuery:
    return CypherQuery("MATCH (u:User) RETURN count(u) AS total")


def build_user_list_query(skip: int, limit: int) -> CypherQuery:
    text = f"""
    MATCH (u:User)
    WITH u
    ORDER BY u.name, u.userId
    SKIP $skip
    LIMIT $limit
    {USER_SUMMARY_PROJECTION}
    """
    return CypherQuery(text, {"skip": skip, "limit": limit})


def build_user_summaries_query(user_ids: list[str]) -> CypherQuery:
    text = f"""
    MATCH (u:User)
    WHERE u.userId IN $userIds
    {USER_SUMMARY_PROJECTION}
    """
    return CypherQuery(text, {"userIds": list(user_ids)})


def _user_search_where(exclude_user_id: str | None) -> tuple[str, dict]:
    conditions = [USER_SEARCH_CONDITION]
    params: dict = {}
    if exclude_user_id:
        conditions.append("u.userId <> $excludeUserId")
        params["excludeUserId"] = exclude_user_id
    return " AND ".join(conditions), params


def build_user_search_count_query(query: str, exclude_user_id: str | None = None) -> CypherQuery:
    where_clause, params = _user_search_where(exclude_user_id)
    text = f"""
    MATCH (u:User)
    WHERE {where_clause}
    RETURN count(u) AS total
    """
    return CypherQuery(text, {**params, "query": query})


def build_user_search_query(
    query: str, skip: int, limit: int, exclude_user_id: str | None = None
) -> CypherQuery:
    where_clause, params = _user_search_where(exclude_user_id)
    text = f"""
    MATCH (u:User)
    WHERE {where_clause}
    WITH u,
      CASE
        WHEN toLower(u.name) STARTS WITH toLower($query) THEN 1
        WHEN toLower(u.email) STARTS WITH toLower($query) THEN 2
        WHEN toLower(u.username) STARTS WITH toLower($query) THEN 3
        ELSE 4
      END AS relevance
    ORDER BY relevance, u.name, u.userId
    SKIP $skip
    LIMIT $limit
    RETURN {user_profile_projection()} AS user
    """
    return CypherQuery(text, {**params, "query": query, "skip": skip, "limit": limit})


def build_user_profile_query(user_id: str) -> CypherQuery:
    text = f"""
    MATCH (u:User {{userId: $userId}})
    CALL {{
      WITH u
      OPTIONAL MATCH (u)-[:SENT]->(m:Message)
      RETURN count(m) AS messageCount,
             min(m.timestamp) AS firstActivity,
             max(m.timestamp) AS lastActivity
    }}
    RETURN {user_profile_projection()} AS user,
           COUNT {{ (u)-[:PARTICIPATES_IN]->(:Conversation) }} AS conversationCount,
           messageCount,
           firstActivity,
           lastActivity
    """
    return CypherQuery(text, {"userId": user_id})


def build_user_weekday_activity_query(user_id: str) -> CypherQuery:
    text = """
    MATCH (:User {userId: $userId})-[:SENT]->(m:Message)
    WHERE m.timestamp IS NOT NULL
    RETURN m.timestamp.dayOfWeek AS dayOfWeek, count(m) AS messageCount
    """
    return CypherQuery(text, {"userId": user_id})


def build_user_recent_conversations_query(user_id: str, limit: int = 10) -> CypherQuery:
    text = """
    MATCH (:User {userId: $userId})-[:PARTICIPATES_IN]->(c:Conversation)
    WITH c
    ORDER BY c.lastMessageTimestamp DESC, c.conversationId
    LIMIT $limit
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
    return CypherQuery(text, {"userId": user_id, "limit": limit})


def build_user_recent_activity_query(user_id: str, days: int = 30, limit: int = 20) -> CypherQuery:
    text = """
    MATCH (:User {userId: $userId})-[:SENT]->(m:Message)-[:BELONGS_TO]->(c:Conversation)
    WHERE m.timestamp > datetime() - duration({days: $days})
    RETURN {
      type: 'message_sent',
      conversationId: c.conversationId,
      conversationTitle: c.title,
      timestamp: m.timestamp,
      content: substring(coalesce(m.content, ''), 0, 100)
    } AS activity
    ORDER BY m.timestamp DESC
    LIMIT $limit
    """
    return CypherQuery(text, {"userId": user_id, "days": days, "limit": limit})


def build_user_exists_query(user_id: str) -> CypherQuery:
    text = """
    MATCH (u:User {userId: $userId})
    RETURN u.userId AS userId
    LIMIT 1
    """
    return CypherQuery(text, {"userId": user_id})


def _contact_where(query: str | None) -> tuple[str, dict]:
    if query:
        return f"AND {CONTACT_NAME_CONDITION}", {"query": query}
    return "", {}


def build_contact_count_query(user_id: str, query: str | None = None) -> CypherQuery:
    name_filter, params = _contact_where(query)
    text = f"""
    MATCH (u1:User {{userId: $userId}})-[:PARTICIPATES_IN]->(:Conversation)<-[:PARTICIPATES_IN]-(u2:User)
    WHERE u1.userId <> u2.userId {name_filter}
    RETURN count(DISTINCT u2) AS total
    """
    return CypherQuery(text, {**params, "userId": user_id})


def build_contacts_query(user_id: str, skip: int, limit: int, query: str | None = None) -> CypherQuery:
    name_filter, params = _contact_where(query)
    text = f"""
    MATCH (u1:User {{userId: $userId}})-[:PARTICIPATES_IN]->(:Conversation)<-[:PARTICIPATES_IN]-(u2:User)
    WHERE u1.userId <> u2.userId {name_filter}
    WITH DISTINCT u1, u2
    ORDER BY u2.name, u2.userId
    SKIP $skip
    LIMIT $limit
    CALL {{
      WITH u1, u2
      MATCH (u1)-[:PARTICIPATES_IN]->(conv:Conversation)<-[:PARTICIPATES_IN]-(u2)
      OPTIONAL MATCH (m:Message)-[:BELONGS_TO]->(conv)
      WHERE m.senderId IN [u1.userId, u2.userId]
      RETURN count(DISTINCT conv) AS sharedConversationCount,
             count(m) AS totalMessageCount,
             min(m.timestamp) AS firstInteraction,
             max(m.timestamp) AS lastInteraction
    }}
    RETURN {user_profile_projection("u2")} AS user,
           sharedConversationCount,
           totalMessageCount,
           firstInteraction,
           lastInteraction
    """
    return CypherQuery(text, {**params, "userId": user_id, "skip": skip, "limit": limit})
