"""
Conversation API response models.
Used by routes for output formatting.
"""

from pydantic import Field

from app.models.api.common import CamelModel, PaginationInfo


class ConversationSummary(CamelModel):
    """One row of a conversation list or search result."""

    conversation_id: str
    title: str | None = Field(None, description="Null for direct (1:1) threads")
    type: str | None = None
    priority: str | None = None
    last_message_timestamp: str | None = None
    participant_count: int = 0
    message_count: int = 0


class ConversationParticipant(CamelModel):
    user_id: str
    name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    status: str | None = None


class ConversationDetail(CamelModel):
    """Full conversation record with participants."""

    conversation_id: str
    title: str | None = None
    type: str | None = None
    priority: str | None = None
    created_at: str | None = None
    last_message_timestamp: str | None = None
    tags: list[str] = Field(default_factory=list)
    message_count: int = 0
    participants: list[ConversationParticipant] = Field(default_factory=list)


class ConversationMessage(CamelModel):
    message_id: str
    content: str | None = None
    sender_id: str | None = None
    timestamp: str | None = None
    status: str | None = None
    type: str | None = None
    reactions: dict[str, int] = Field(default_factory=dict, description="Reaction symbol -> count")


class ConversationListResponse(CamelModel):
    """Response for GET /api/conversations"""

    items: list[ConversationSummary]
    pagination: PaginationInfo


class ConversationSearchResponse(CamelModel):
    """Response for GET /api/conversations/search"""

    results: list[ConversationSummary]
    total: int
    pagination: PaginationInfo


class ConversationMessagesResponse(CamelModel):
    """Response for GET /api/conversations/{id}/messages"""

    messages: list[ConversationMessage]
    pagination: PaginationInfo
