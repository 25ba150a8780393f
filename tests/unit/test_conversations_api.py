"""
Endpoint tests for /api/conversations.
"""

from app.errors import DatabaseUnavailableError, QueryExecutionError
from app.features.conversations.repository.conversation_repository import normalize_reactions
from app.utils.validated_params import MAX_LIMIT


def _summary(conversation_id: str, title: str | None = "Weekly Meeting") -> dict:
    return {
        "conversation": {
            "conversationId": conversation_id,
            "title": title,
            "type": "group",
            "priority": "high",
            "lastMessageTimestamp": "2024-03-04T09:00:00Z",
            "participantCount": 3,
            "messageCount": 12,
        }
    }


def test_list_conversations(client, fake_executor):
    fake_executor.on("count(c) AS total", [{"total": 2}])
    fake_executor.on("AS conversation", [_summary("c1"), _summary("c2")])

    response = client.get("/api/conversations", params={"page": "1", "limit": "10"})

    assert response.status_code == 200
    body = response.json()
    assert [item["conversationId"] for item in body["items"]] == ["c1", "c2"]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 2, "totalPages": 1}
    assert response.headers["etag"].startswith('"')


def test_list_conversations_invalid_pagination_recovers(client, fake_executor):
    fake_executor.on("count(c) AS total", [{"total": 0}])

    response = client.get("/api/conversations", params={"page": "abc", "limit": "-1"})

    assert response.status_code == 200
    assert response.json()["pagination"]["page"] == 1
    assert response.json()["pagination"]["limit"] == 20


def test_list_conversations_oversized_pagination_recovers(client, fake_executor):
    fake_executor.on("count(c) AS total", [{"total": 0}])

    oversized = "9" * 5000

    response = client.get("/api/conversations", params={"page": oversized, "limit": oversized})

    assert response.status_code == 200
    assert response.json()["pagination"]["page"] == 1
    assert response.json()["pagination"]["limit"] == MAX_LIMIT
    assert fake_executor.params_for("SKIP $skip")["skip"] == 0


def test_list_conversations_database_down(client, fake_executor):
    fake_executor.connected = False

    response = client.get("/api/conversations")

    assert response.status_code == 503
    assert response.json() == {"detail": "Database connection failed"}
    assert "etag" not in response.headers


def test_search_meeting(client, fake_executor):
    fake_executor.on("count(c) AS total", [{"total": 5}])
    fake_executor.on("AS relevance", [_summary(f"c{i}") for i in range(5)])

    response = client.get("/api/conversations/search", params={"query": "Meeting"})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 5
    assert len(body["results"]) == 5
    assert body["pagination"]["totalPages"] == 1
    assert fake_executor.params_for("AS relevance")["query"] == "Meeting"


def test_search_limit_is_capped(client, fake_executor):
    fake_executor.on("count(c) AS total", [{"total": 150}])
    fake_executor.on("AS relevance", [])

    response = client.get("/api/conversations/search", params={"query": "a", "limit": "200"})

    assert response.status_code == 200
    assert response.json()["pagination"]["limit"] == 100
    assert fake_executor.params_for("AS relevance")["limit"] == 100


def test_search_without_query_is_400(client, fake_executor):
    response = client.get("/api/conversations/search")

    assert response.status_code == 400
    assert "Query" in response.json()["detail"]
    assert fake_executor.calls == []


def test_search_inverted_date_range_names_date_to(client, fake_executor):
    response = client.get(
        "/api/conversations/search",
        params={"query": "Meeting", "dateFrom": "2024-03-10", "dateTo": "2024-03-01"},
    )

    assert response.status_code == 400
    assert "dateTo" in response.json()["detail"]
    assert "etag" not in response.headers


def test_search_invalid_calendar_date(client):
    response = client.get(
        "/api/conversations/search", params={"query": "Meeting", "dateFrom": "2024-13-45"}
    )

    assert response.status_code == 400
    assert "dateFrom" in response.json()["detail"]


def test_search_invalid_type(client):
    response = client.get("/api/conversations/search", params={"query": "x", "type": "channel"})

    assert response.status_code == 400
    assert "type" in response.json()["detail"]


def test_search_query_failure_is_500(client, fake_executor):
    fake_executor.on("count(c) AS total", QueryExecutionError("boom", operation="execute_read"))

    response = client.get("/api/conversations/search", params={"query": "Meeting"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to search conversations"}
    assert "boom" not in response.text


def test_search_if_none_match_returns_304(client, fake_executor):
    fake_executor.on("count(c) AS total", [{"total": 1}])
    fake_executor.on("AS relevance", [_summary("c1")])

    first = client.get("/api/conversations/search", params={"query": "Meeting"})
    second = client.get(
        "/api/conversations/search",
        params={"query": "Meeting"},
        headers={"If-None-Match": first.headers["etag"]},
    )

    assert first.status_code == 200
    assert second.status_code == 304
    assert second.content == b""
    assert second.headers["etag"] == first.headers["etag"]


def test_get_conversation_detail(client, fake_executor):
    fake_executor.on(
        "AS conversation",
        [
            {
                "conversation": {
                    "conversationId": "c1",
                    "title": "Launch",
                    "type": "group",
                    "tags": None,
                    "messageCount": 4,
                    "participants": [{"userId": "u1", "name": "Ann"}, None],
                }
            }
        ],
    )

    response = client.get("/api/conversations/c1")

    assert response.status_code == 200
    body = response.json()
    assert body["tags"] == []
    assert [p["userId"] for p in body["participants"]] == ["u1"]


def test_get_conversation_not_found(client):
    response = client.get("/api/conversations/missing")

    assert response.status_code == 404
    assert response.json() == {"detail": "Conversation not found"}


def test_get_conversation_messages(client, fake_executor):
    fake_executor.on("count(m) AS total", [{"total": 1}])
    fake_executor.on(
        "AS message",
        [
            {
                "message": {
                    "messageId": "m1",
                    "content": "hi",
                    "senderId": "u1",
                    "timestamp": "2024-03-04T09:00:00Z",
                    "reactions": '["👍", "👍", "🎉"]',
                }
            }
        ],
    )

    response = client.get("/api/conversations/c1/messages")

    assert response.status_code == 200
    body = response.json()
    assert body["messages"][0]["reactions"] == {"👍": 2, "🎉": 1}
    assert body["pagination"]["limit"] == 50


def test_get_messages_unknown_conversation_is_404(client):
    response = client.get("/api/conversations/nope/messages")

    assert response.status_code == 404


def test_get_messages_database_unavailable_is_503(client, fake_executor):
    fake_executor.on("count(m) AS total", DatabaseUnavailableError("down"))

    response = client.get("/api/conversations/c1/messages")

    assert response.status_code == 503


def test_normalize_reactions_ignores_unusable_counts():
    stored = {"👍": "3", "🎉": "lots", "👀": None, "🔥": -2, "💯": [1]}

    assert normalize_reactions(stored) == {"👍": 3, "🎉": 0, "👀": 0, "🔥": 0, "💯": 0}


def test_normalize_reactions_from_json_map_with_bad_count():
    assert normalize_reactions('{"👍": 2, "🎉": "many", "🤔": Infinity}') == {
        "👍": 2,
        "🎉": 0,
        "🤔": 0,
    }
