"""
Pair communication routes.

Both endpoints canonicalize the user pair first. The communication view is
returned in the caller's order; analytics are returned in canonical order so
(A, B) and (B, A) share one ETag.
"""

from datetime import UTC, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, Header, Request

from app.config import settings
from app.db.neo4j import QueryExecutor, get_query_executor
from app.errors import DatabaseError, ParameterValidationError, ResourceNotFoundError
from app.features.communications.pipeline.aggregation.service import (
    CommunicationAggregationService,
    communication_aggregation_service,
)
from app.features.communications.repository.communication_repository import (
    CommunicationRepository,
)
from app.infrastructure.observability.logging import get_logger
from app.models.api.common import PaginationInfo
from app.models.api.communication_response import (
    AggregatedAnalytics,
    UserCommunicationResponse,
)
from app.utils.conditional_get import ConditionalCacheNegotiator, get_analytics_negotiator
from app.utils.http_errors import to_http_exception
from app.utils.validated_params import parse_analytics_params, parse_communication_params

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users/communications", tags=["communications"])


def get_communication_repository(
    executor: QueryExecutor = Depends(get_query_executor),
) -> CommunicationRepository:
    return CommunicationRepository(executor)


def get_aggregation_service() -> CommunicationAggregationService:
    return communication_aggregation_service


def get_analytics_timezone() -> tzinfo:
    if settings.ANALYTICS_TIMEZONE.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(settings.ANALYTICS_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown analytics timezone - using UTC", timezone=settings.ANALYTICS_TIMEZONE)
        return UTC


def to_caller_order(response: UserCommunicationResponse) -> UserCommunicationResponse:
    """Swap every user1/user2 field of a canonical-order response."""
    stats = response.communication_stats
    return response.model_copy(
        update={
            "user1": response.user2,
            "user2": response.user1,
            "communication_stats": stats.model_copy(
                update={
                    "user1_messages": stats.user2_messages,
                    "user2_messages": stats.user1_messages,
                }
            ),
            "shared_conversations": [
                conversation.model_copy(
                    update={
                        "user1_message_count": conversation.user2_message_count,
                        "user2_message_count": conversation.user1_message_count,
                    }
                )
                for conversation in response.shared_conversations
            ],
        }
    )


@router.get("/{user_id1}/{user_id2}", response_model=UserCommunicationResponse)
async def get_user_communications(
    user_id1: str,
    user_id2: str,
    request: Request,
    repository: CommunicationRepository = Depends(get_communication_repository),
):
    """Shared conversations, stats and a paginated message timeline for two users."""
    try:
        params = parse_communication_params(user_id1, user_id2, dict(request.query_params))
    except ParameterValidationError as e:
        raise to_http_exception(e, "Failed to fetch communication data") from e

    pair = params.pair
    try:
        user1, user2 = await repository.get_pair_users(pair)
        shared_conversations = await repository.get_shared_conversations(pair)
        stats = await repository.get_communication_stats(pair, params.date_range)
        timeline, total = await repository.get_message_timeline(
            pair, params.date_range, params.pagination, params.conversation_id
        )
    except (ResourceNotFoundError, DatabaseError) as e:
        raise to_http_exception(e, "Failed to fetch communication data") from e

    response = UserCommunicationResponse(
        user1=user1,
        user2=user2,
        shared_conversations=shared_conversations,
        communication_stats=stats,
        message_timeline=timeline,
        pagination=PaginationInfo.build(params.pagination, total),
    )
    if pair.swapped:
        response = to_caller_order(response)

    return response.to_payload()


@router.get("/{user_id1}/{user_id2}/analytics", response_model=AggregatedAnalytics)
async def get_communication_analytics(
    user_id1: str,
    user_id2: str,
    request: Request,
    if_none_match: str | None = Header(default=None),
    repository: CommunicationRepository = Depends(get_communication_repository),
    service: CommunicationAggregationService = Depends(get_aggregation_service),
    negotiator: ConditionalCacheNegotiator = Depends(get_analytics_negotiator),
    tz: tzinfo = Depends(get_analytics_timezone),
):
    """
    Aggregated analytics for a user pair.

    Query params: dateFrom, dateTo, granularity (daily | weekly | monthly),
    dense (zero-fill the frequency series).
    """
    try:
        params = parse_analytics_params(user_id1, user_id2, dict(request.query_params))
    except ParameterValidationError as e:
        raise to_http_exception(e, "Failed to fetch analytics data") from e

    try:
        messages = await repository.get_pair_messages(params.pair, params.date_range)
        conversations = await repository.get_pair_conversations(params.pair)
    except DatabaseError as e:
        raise to_http_exception(e, "Failed to fetch analytics data") from e

    analytics = service.aggregate(
        params.pair.user1_id,
        params.pair.user2_id,
        messages,
        conversations,
        params.granularity,
        dense=params.dense,
        date_range=params.date_range,
        tz=tz,
    )
    return negotiator.negotiate(analytics.to_payload(), if_none_match).to_response()
