"""
Request parameter validation.

Two failure modes on purpose:
- page/limit recover silently to safe values (a warning is logged),
- dates, enums, identifiers and search text raise ParameterValidationError.

The composed *Params dataclasses are the only thing routers hand to
repositories; raw query strings never travel past this module.
"""

import re
import sys
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from app.config import settings
from app.errors import ParameterValidationError
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

MIN_PAGE = 1
MAX_PAGE = settings.PAGINATION_MAX_PAGE
MIN_LIMIT = 1
MAX_LIMIT = settings.PAGINATION_MAX_LIMIT
DEFAULT_PAGE = 1
DEFAULT_LIMIT = settings.PAGINATION_DEFAULT_LIMIT
SEARCH_QUERY_MAX_LENGTH = settings.SEARCH_QUERY_MAX_LENGTH

CONVERSATION_TYPES = ("direct", "group")
PRIORITIES = ("low", "normal", "medium", "high", "urgent")
GRANULARITIES = ("daily", "weekly", "monthly")

ISO_DATE_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2}(\.\d{1,6})?(Z|[+-]\d{2}:\d{2})?)?"
)
USER_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
INTEGER_PATTERN = re.compile(r"([+-]?)0*(\d+)")

# Integers longer than this are out of range for every page and limit.
MAX_INT_DIGITS = 18

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


@dataclass(frozen=True, slots=True)
class PaginationParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return calculate_offset(self.page, self.limit)


@dataclass(frozen=True, slots=True)
class DateRange:
    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None or self.end is not None


@dataclass(frozen=True, slots=True)
class SearchParams:
    query: str
    pagination: PaginationParams
    conversation_type: str | None = None
    priority: str | None = None
    date_range: DateRange = DateRange()


@dataclass(frozen=True, slots=True)
class PairParams:
    """A user pair in canonical (lexicographic) order plus the caller's order."""

    user1_id: str
    user2_id: str
    swapped: bool = False

    @property
    def cache_key(self) -> str:
        return f"{self.user1_id}:{self.user2_id}"


@dataclass(frozen=True, slots=True)
class CommunicationParams:
    pair: PairParams
    pagination: PaginationParams
    date_range: DateRange = DateRange()
    conversation_id: str | None = None


@dataclass(frozen=True, slots=True)
class AnalyticsParams:
    pair: PairParams
    granularity: str = "daily"
    date_range: DateRange = DateRange()
    dense: bool = False


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


def _parse_int(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        match = INTEGER_PATTERN.fullmatch(raw.strip())
        if match:
            sign, digits = match.groups()
            if len(digits) > MAX_INT_DIGITS:
                return -sys.maxsize if sign == "-" else sys.maxsize
            return int(sign + digits)
    return None


def validate_page(raw: Any, context: str | None = None, *, max_page: int = MAX_PAGE) -> int:
    """Return a page in [1, max_page]; anything else falls back to 1."""
    parsed = _parse_int(raw)
    if parsed is not None and MIN_PAGE <= parsed <= max_page:
        return parsed

    if not _is_blank(raw):
        logger.warning(
            "Invalid page parameter - using default",
            raw_value=str(raw)[:50],
            context=context,
            default=DEFAULT_PAGE,
        )
    return DEFAULT_PAGE


def validate_limit(
    raw: Any,
    context: str | None = None,
    *,
    max_limit: int = MAX_LIMIT,
    default: int = DEFAULT_LIMIT,
) -> int:
    """
    Return a limit in [1, max_limit].

    Values above the maximum are clamped to it; invalid or non-positive
    values fall back to the default.
    """
    parsed = _parse_int(raw)
    if parsed is not None:
        if parsed > max_limit:
            logger.warning(
                "Limit parameter exceeds maximum - capping",
                raw_value=str(raw)[:50],
                context=context,
                max_limit=max_limit,
            )
            return max_limit
        if parsed >= MIN_LIMIT:
            return parsed

    if not _is_blank(raw):
        logger.warning(
            "Invalid limit parameter - using default",
            raw_value=str(raw)[:50],
            context=context,
            default=default,
        )
    return min(default, max_limit)


def calculate_offset(page: int, limit: int) -> int:
    """Zero-based offset for SKIP clauses."""
    return max(0, (page - 1) * limit)


def validate_pagination(
    raw_page: Any,
    raw_limit: Any,
    context: str | None = None,
    *,
    max_limit: int = MAX_LIMIT,
    default_limit: int = DEFAULT_LIMIT,
) -> PaginationParams:
    return PaginationParams(
        page=validate_page(raw_page, context),
        limit=validate_limit(raw_limit, context, max_limit=max_limit, default=default_limit),
    )


def total_pages(total: int, limit: int) -> int:
    if total <= 0 or limit <= 0:
        return 0
    return -(-total // limit)


def validate_date(raw: Any, field: str, *, end_of_day: bool = False) -> datetime | None:
    """
    Parse an ISO 8601 calendar date (optionally with a time) into an aware datetime.

    Date-only values resolve to midnight UTC, or to the last microsecond of
    the day when end_of_day is set. A value that matches the pattern but is
    not a real calendar date (2024-13-45) is rejected.
    """
    if _is_blank(raw):
        return None

    value = str(raw).strip()
    if not ISO_DATE_PATTERN.fullmatch(value):
        raise ParameterValidationError(
            field,
            f"Invalid {field} parameter. Must be a valid ISO 8601 date "
            "(YYYY-MM-DD or YYYY-MM-DDTHH:mm:ss.sssZ)",
        )

    try:
        if "T" not in value:
            day = date.fromisoformat(value)
            moment = time.max if end_of_day else time.min
            return datetime.combine(day, moment, tzinfo=UTC)

        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ParameterValidationError(
            field, f"Invalid {field} parameter. Date is not a real calendar date"
        ) from e

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError as e:
        # 0001-01-01T00:00:00+01:00 has no UTC representation
        raise ParameterValidationError(
            field, f"Invalid {field} parameter. Date is out of range"
        ) from e


def validate_date_range(raw_from: Any, raw_to: Any) -> DateRange:
    start = validate_date(raw_from, "dateFrom")
    end = validate_date(raw_to, "dateTo", end_of_day=True)

    if start is not None and end is not None and end < start:
        raise ParameterValidationError(
            "dateTo", "Invalid date range: dateTo must not be before dateFrom"
        )
    return DateRange(start=start, end=end)


def validate_enum(
    raw: Any, allowed: tuple[str, ...] | frozenset[str], field: str, *, default: str | None = None
) -> str | None:
    if _is_blank(raw):
        return default

    value = str(raw).strip()
    if value not in allowed:
        raise ParameterValidationError(
            field, f"Invalid {field} parameter. Must be one of: {', '.join(allowed)}"
        )
    return value


def validate_flag(raw: Any, field: str, *, default: bool = False) -> bool:
    if _is_blank(raw):
        return default

    value = str(raw).strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ParameterValidationError(field, f"Invalid {field} parameter. Must be true or false")


def validate_search_query(raw: Any, *, max_length: int = SEARCH_QUERY_MAX_LENGTH) -> str:
    query = "" if raw is None else str(raw).strip()
    if not query:
        raise ParameterValidationError("query", "Query parameter is required")
    if len(query) > max_length:
        raise ParameterValidationError(
            "query", f"Query parameter must not exceed {max_length} characters"
        )
    return query


def validate_user_id(raw: Any, field: str) -> str:
    if _is_blank(raw):
        raise ParameterValidationError(field, f"{field} is required")

    value = str(raw)
    if not USER_ID_PATTERN.fullmatch(value):
        raise ParameterValidationError(
            field,
            f"Invalid {field} format. Only alphanumeric characters, hyphens, "
            "and underscores are allowed.",
        )
    return value


def canonicalize_pair(user_id_a: str, user_id_b: str) -> PairParams:
    """Order a user pair lexicographically so (A, B) and (B, A) share one key."""
    first, second = sorted((user_id_a, user_id_b))
    return PairParams(user1_id=first, user2_id=second, swapped=first != user_id_a)


def validate_pair(raw_user1: Any, raw_user2: Any) -> PairParams:
    user1 = validate_user_id(raw_user1, "userId1")
    user2 = validate_user_id(raw_user2, "userId2")
    return canonicalize_pair(user1, user2)


def parse_search_params(raw: dict[str, Any], context: str = "conversations-search") -> SearchParams:
    query = validate_search_query(raw.get("query"))
    conversation_type = validate_enum(raw.get("type"), CONVERSATION_TYPES, "type")
    priority = validate_enum(raw.get("priority"), PRIORITIES, "priority")
    date_range = validate_date_range(raw.get("dateFrom"), raw.get("dateTo"))
    pagination = validate_pagination(raw.get("page"), raw.get("limit"), context)

    return SearchParams(
        query=query,
        pagination=pagination,
        conversation_type=conversation_type,
        priority=priority,
        date_range=date_range,
    )


def parse_communication_params(
    raw_user1: Any, raw_user2: Any, raw: dict[str, Any]
) -> CommunicationParams:
    pair = validate_pair(raw_user1, raw_user2)
    date_range = validate_date_range(raw.get("dateFrom"), raw.get("dateTo"))
    pagination = validate_pagination(
        raw.get("page"), raw.get("limit"), "user-communications", default_limit=50
    )
    conversation_id = raw.get("conversationId") or None

    return CommunicationParams(
        pair=pair,
        pagination=pagination,
        date_range=date_range,
        conversation_id=conversation_id,
    )


def parse_analytics_params(raw_user1: Any, raw_user2: Any, raw: dict[str, Any]) -> AnalyticsParams:
    pair = validate_pair(raw_user1, raw_user2)
    date_range = validate_date_range(raw.get("dateFrom"), raw.get("dateTo"))
    granularity = validate_enum(
        raw.get("granularity"), GRANULARITIES, "granularity", default="daily"
    )
    dense = validate_flag(raw.get("dense"), "dense")

    return AnalyticsParams(pair=pair, granularity=granularity, date_range=date_range, dense=dense)
