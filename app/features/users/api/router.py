"""
User routes.

Listing, search, profile and contact endpoints.
"""

import time

from fastapi import APIRouter, Depends, Header, Request

from app.db.neo4j import QueryExecutor, get_query_executor
from app.errors import DatabaseError, ParameterValidationError, ResourceNotFoundError
from app.features.users.repository.user_repository import UserRepository
from app.infrastructure.observability.logging import get_logger
from app.models.api.common import PaginationInfo
from app.models.api.user_response import (
    UserContactsResponse,
    UserDetailResponse,
    UserListResponse,
    UserSearchResponse,
)
from app.utils.conditional_get import ConditionalCacheNegotiator, get_list_negotiator
from app.utils.http_errors import database_unavailable, to_http_exception
from app.utils.validated_params import (
    SEARCH_QUERY_MAX_LENGTH,
    total_pages,
    validate_pagination,
    validate_user_id,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

USER_SEARCH_MAX_LIMIT = 50
USER_SEARCH_DEFAULT_LIMIT = 10
CONTACTS_MAX_LIMIT = 1000


def get_user_repository(
    executor: QueryExecutor = Depends(get_query_executor),
) -> UserRepository:
    return UserRepository(executor)


@router.get("", response_model=UserListResponse)
async def list_users(
    request: Request,
    if_none_match: str | None = Header(default=None),
    executor: QueryExecutor = Depends(get_query_executor),
    negotiator: ConditionalCacheNegotiator = Depends(get_list_negotiator),
):
    """Paginated users ordered by name."""
    pagination = validate_pagination(
        request.query_params.get("page"),
        request.query_params.get("limit"),
        "users-api",
    )

    if not await executor.test_connectivity():
        raise database_unavailable()

    repository = UserRepository(executor)
    try:
        total = await repository.count_users()
        items = await repository.list_users(pagination)
    except DatabaseError as e:
        raise to_http_exception(e, "Failed to fetch users") from e

    payload = UserListResponse(
        items=items, pagination=PaginationInfo.build(pagination, total)
    ).to_payload()
    return negotiator.negotiate(payload, if_none_match).to_response()


@router.get("/search", response_model=UserSearchResponse)
async def search_users(
    request: Request,
    repository: UserRepository = Depends(get_user_repository),
):
    """
    Search users by name, email or username.

    An empty query is not an error: it returns an empty result set.
    """
    started = time.perf_counter()
    query = (request.query_params.get("query") or "").strip()

    try:
        if len(query) > SEARCH_QUERY_MAX_LENGTH:
            raise ParameterValidationError(
                "query", f"Query parameter must not exceed {SEARCH_QUERY_MAX_LENGTH} characters"
            )
        raw_exclude = request.query_params.get("excludeUserId")
        exclude_user_id = validate_user_id(raw_exclude, "excludeUserId") if raw_exclude else None
    except ParameterValidationError as e:
        raise to_http_exception(e, "Failed to search users") from e

    pagination = validate_pagination(
        request.query_params.get("page"),
        request.query_params.get("limit"),
        "users-search-api",
        max_limit=USER_SEARCH_MAX_LIMIT,
        default_limit=USER_SEARCH_DEFAULT_LIMIT,
    )

    results, total = [], 0
    if query:
        try:
            results, total = await repository.search_users(query, pagination, exclude_user_id)
        except DatabaseError as e:
            raise to_http_exception(e, "Failed to search users") from e

    execution_time = int((time.perf_counter() - started) * 1000)
    logger.info("User search completed", total=total, duration_ms=execution_time)

    return UserSearchResponse(
        results=results, total=total, query=query, execution_time=execution_time
    ).to_payload()


@router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository),
):
    """Profile, activity stats, recent conversations and recent activity."""
    try:
        user_id = validate_user_id(user_id, "userId")
        user, stats, conversations, timeline = await repository.get_user_detail(user_id)
    except (ParameterValidationError, ResourceNotFoundError, DatabaseError) as e:
        raise to_http_exception(e, "Failed to fetch user") from e

    return UserDetailResponse(
        user=user, stats=stats, conversations=conversations, activity_timeline=timeline
    ).to_payload()


@router.get("/{user_id}/contacts", response_model=UserContactsResponse)
async def get_user_contacts(
    user_id: str,
    request: Request,
    repository: UserRepository = Depends(get_user_repository),
):
    """Users sharing at least one conversation with user_id."""
    pagination = validate_pagination(
        request.query_params.get("page"),
        request.query_params.get("limit"),
        "user-contacts-api",
        max_limit=CONTACTS_MAX_LIMIT,
    )
    name_filter = (request.query_params.get("query") or "").strip() or None

    try:
        user_id = validate_user_id(user_id, "userId")
        contacts, total = await repository.get_contacts(user_id, pagination, name_filter)
    except (ParameterValidationError, ResourceNotFoundError, DatabaseError) as e:
        raise to_http_exception(e, "Failed to fetch contacts") from e

    return UserContactsResponse(
        results=contacts,
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        total_pages=total_pages(total, pagination.limit),
    ).to_payload()
