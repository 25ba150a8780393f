"""
Pair communication and analytics response models.
Used by routes for output formatting.
"""

from pydantic import Field

from app.models.api.common import CamelModel, PaginationInfo
from app.models.api.user_response import UserSummary


class SharedConversationParticipant(CamelModel):
    user_id: str
    name: str | None = None
    email: str | None = None
    avatar: str | None = None


class SharedConversation(CamelModel):
    """A conversation both users participate in."""

    conversation_id: str
    title: str = "Untitled Conversation"
    type: str = "group"
    message_count: int = 0
    user1_message_count: int = 0
    user2_message_count: int = 0
    last_message_timestamp: str | None = None
    participants: list[SharedConversationParticipant] = Field(default_factory=list)


class CommunicationStats(CamelModel):
    total_shared_conversations: int = 0
    total_messages: int = 0
    user1_messages: int = 0
    user2_messages: int = 0
    first_interaction: str | None = None
    last_interaction: str | None = None


class TimelineMessage(CamelModel):
    message_id: str
    content: str | None = None
    sender_id: str | None = None
    timestamp: str | None = None
    conversation_id: str
    conversation_title: str = "Untitled Conversation"


class UserCommunicationResponse(CamelModel):
    """Response for GET /api/users/communications/{userId1}/{userId2}"""

    user1: UserSummary
    user2: UserSummary
    shared_conversations: list[SharedConversation]
    communication_stats: CommunicationStats
    message_timeline: list[TimelineMessage]
    pagination: PaginationInfo


class FrequencyPoint(CamelModel):
    date: str
    total_messages: int = 0
    user1_messages: int = 0
    user2_messages: int = 0


class ResponseTimeBucket(CamelModel):
    range: str
    count: int = 0


class ResponseTimeAnalysis(CamelModel):
    avg_response_time: int = Field(0, description="Milliseconds")
    median_response_time: int = Field(0, description="Milliseconds")
    total_responses: int = 0
    distribution: list[ResponseTimeBucket] = Field(default_factory=list)


class HeatmapCell(CamelModel):
    hour: int = Field(..., ge=0, le=23)
    day_of_week: int = Field(..., ge=1, le=7, description="Monday = 1")
    message_count: int = 0


class TalkListenRatio(CamelModel):
    user1_messages: int = 0
    user2_messages: int = 0
    user1_percentage: float = 50.0
    user2_percentage: float = 50.0


class ConversationTypeShare(CamelModel):
    type: str
    count: int = 0
    percentage: float = 0.0


class AggregatedAnalytics(CamelModel):
    """Response for GET /api/users/communications/{userId1}/{userId2}/analytics"""

    user1_id: str
    user2_id: str
    granularity: str
    frequency: list[FrequencyPoint]
    response_time: ResponseTimeAnalysis
    activity_heatmap: list[HeatmapCell]
    talk_to_listen_ratio: TalkListenRatio
    conversation_types: list[ConversationTypeShare]
    communication_stats: CommunicationStats
