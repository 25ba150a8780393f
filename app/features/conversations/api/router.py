"""
Conversation routes.

List, search and lookup endpoints over the conversation graph.
"""

from fastapi import APIRouter, Depends, Header, Request

from app.db.neo4j import QueryExecutor, get_query_executor
from app.errors import DatabaseError, ParameterValidationError, ResourceNotFoundError
from app.features.conversations.repository.conversation_repository import ConversationRepository
from app.infrastructure.observability.logging import get_logger
from app.models.api.common import PaginationInfo
from app.models.api.conversation_response import (
    ConversationDetail,
    ConversationListResponse,
    ConversationMessagesResponse,
    ConversationSearchResponse,
)
from app.utils.conditional_get import ConditionalCacheNegotiator, get_list_negotiator
from app.utils.http_errors import database_unavailable, to_http_exception
from app.utils.validated_params import parse_search_params, validate_pagination

logger = get_logger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


def get_conversation_repository(
    executor: QueryExecutor = Depends(get_query_executor),
) -> ConversationRepository:
    return ConversationRepository(executor)


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    request: Request,
    if_none_match: str | None = Header(default=None),
    executor: QueryExecutor = Depends(get_query_executor),
    negotiator: ConditionalCacheNegotiator = Depends(get_list_negotiator),
):
    """Paginated conversations, most recently active first."""
    pagination = validate_pagination(
        request.query_params.get("page"),
        request.query_params.get("limit"),
        "conversations-api",
    )

    if not await executor.test_connectivity():
        raise database_unavailable()

    repository = ConversationRepository(executor)
    try:
        total = await repository.count_conversations()
        items = await repository.list_conversations(pagination)
    except DatabaseError as e:
        raise to_http_exception(e, "Failed to fetch conversations") from e

    payload = ConversationListResponse(
        items=items, pagination=PaginationInfo.build(pagination, total)
    ).to_payload()
    return negotiator.negotiate(payload, if_none_match).to_response()


@router.get("/search", response_model=ConversationSearchResponse)
async def search_conversations(
    request: Request,
    if_none_match: str | None = Header(default=None),
    executor: QueryExecutor = Depends(get_query_executor),
    negotiator: ConditionalCacheNegotiator = Depends(get_list_negotiator),
):
    """
    Search conversations by title and participant names.

    Optional filters (type, priority, dateFrom, dateTo) are combined with AND.
    Exact and prefix title matches rank above participant-name matches.
    """
    try:
        search = parse_search_params(dict(request.query_params), "conversations-search-api")
    except ParameterValidationError as e:
        raise to_http_exception(e, "Failed to search conversations") from e

    if not await executor.test_connectivity():
        raise database_unavailable()

    try:
        results, total = await ConversationRepository(executor).search_conversations(search)
    except DatabaseError as e:
        raise to_http_exception(e, "Failed to search conversations") from e

    payload = ConversationSearchResponse(
        results=results,
        total=total,
        pagination=PaginationInfo.build(search.pagination, total),
    ).to_payload()
    return negotiator.negotiate(payload, if_none_match).to_response()


@router.get("/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: str,
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    """Single conversation with participants and tags."""
    try:
        conversation = await repository.get_conversation(conversation_id)
    except (ResourceNotFoundError, DatabaseError) as e:
        raise to_http_exception(e, "Failed to fetch conversation") from e

    return conversation.to_payload()


@router.get("/{conversation_id}/messages", response_model=ConversationMessagesResponse)
async def get_conversation_messages(
    conversation_id: str,
    request: Request,
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    """Messages of one conversation in chronological order."""
    pagination = validate_pagination(
        request.query_params.get("page"),
        request.query_params.get("limit"),
        "conversation-messages-api",
        default_limit=50,
    )

    try:
        messages, total = await repository.get_messages(conversation_id, pagination)
    except (ResourceNotFoundError, DatabaseError) as e:
        raise to_http_exception(e, "Failed to fetch messages") from e

    return ConversationMessagesResponse(
        messages=messages, pagination=PaginationInfo.build(pagination, total)
    ).to_payload()
