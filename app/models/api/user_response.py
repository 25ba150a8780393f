"""
User API response models.
Used by routes for output formatting.
"""

from pydantic import Field

from app.models.api.common import CamelModel, PaginationInfo
from app.models.api.conversation_response import ConversationSummary


class UserSummary(CamelModel):
    """User row with activity counters."""

    user_id: str
    name: str | None = None
    avatar: str | None = None
    email: str | None = None
    last_active_timestamp: str | None = None
    conversation_count: int = 0
    message_count: int = 0


class UserProfile(CamelModel):
    """Public profile fields of a user."""

    user_id: str
    name: str | None = None
    email: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    status: str | None = None
    role: str | None = None
    department: str | None = None
    location: str | None = None
    last_seen: str | None = None


class UserActivityStats(CamelModel):
    total_messages: int = 0
    total_conversations: int = 0
    average_messages_per_conversation: float = 0.0
    most_active_day: str | None = None
    first_activity: str | None = None
    last_activity: str | None = None
    messages_by_day: dict[str, int] = Field(default_factory=dict)


class UserActivity(CamelModel):
    type: str = "message_sent"
    conversation_id: str
    conversation_title: str | None = None
    timestamp: str | None = None
    content: str | None = None


class ContactStats(CamelModel):
    shared_conversation_count: int = 0
    total_message_count: int = 0
    first_interaction: str | None = None
    last_interaction: str | None = None


class UserContact(UserProfile):
    communication_stats: ContactStats


class UserListResponse(CamelModel):
    """Response for GET /api/users"""

    items: list[UserSummary]
    pagination: PaginationInfo


class UserSearchResponse(CamelModel):
    """Response for GET /api/users/search"""

    results: list[UserProfile]
    total: int
    query: str
    execution_time: int = Field(0, description="Milliseconds spent serving the search")


class UserDetailResponse(CamelModel):
    """Response for GET /api/users/{userId}"""

    user: UserProfile
    stats: UserActivityStats
    conversations: list[ConversationSummary]
    activity_timeline: list[UserActivity]


class UserContactsResponse(CamelModel):
    """Response for GET /api/users/{userId}/contacts"""

    results: list[UserContact]
    total: int
    page: int
    limit: int
    total_pages: int
