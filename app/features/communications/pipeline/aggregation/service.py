"""
Communication aggregation service.

Turns the raw message history shared by two users into the analytics
payload: frequency series, response-time distribution, hour x weekday
heatmap, talk-to-listen ratio and conversation-type breakdown.

Everything here is a pure function of its inputs; rows are fetched by the
communications repository.
"""

from __future__ import annotations

import statistics
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Any, Iterable

from app.db.values import format_datetime, parse_datetime
from app.infrastructure.observability.logging import get_logger
from app.models.api.communication_response import (
    AggregatedAnalytics,
    CommunicationStats,
    ConversationTypeShare,
    FrequencyPoint,
    HeatmapCell,
    ResponseTimeAnalysis,
    ResponseTimeBucket,
    TalkListenRatio,
)
from app.utils.validated_params import DateRange

logger = get_logger(__name__)

HOUR_MS = 60 * 60 * 1000

# (label, exclusive upper bound in ms); the last bucket is open-ended
RESPONSE_TIME_BUCKETS = (
    ("<1h", HOUR_MS),
    ("1-6h", 6 * HOUR_MS),
    ("6-24h", 24 * HOUR_MS),
    (">24h", None),
)

BASE_CONVERSATION_TYPES = ("direct", "group")

# Dense series longer than this fall back to sparse output.
MAX_DENSE_BUCKETS = 5000


@dataclass(frozen=True, slots=True)
class MessageRow:
    sender_id: str
    timestamp: datetime
    conversation_id: str
    conversation_type: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> MessageRow | None:
        timestamp = parse_datetime(record.get("timestamp"))
        if timestamp is None or not record.get("senderId"):
            return None
        return cls(
            sender_id=record["senderId"],
            timestamp=timestamp,
            conversation_id=record.get("conversationId") or "",
            conversation_type=record.get("conversationType"),
        )


@dataclass(frozen=True, slots=True)
class ConversationRow:
    conversation_id: str
    type: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ConversationRow:
        return cls(conversation_id=record.get("conversationId") or "", type=record.get("type"))


def _bucket_start(day: date, granularity: str) -> date:
    if granularity == "weekly":
        return day - timedelta(days=day.weekday())
    if granularity == "monthly":
        return day.replace(day=1)
    return day


def _next_bucket(start: date, granularity: str) -> date | None:
    """Start of the following bucket, or None when it would pass date.max."""
    try:
        if granularity == "weekly":
            return start + timedelta(days=7)
        if granularity == "monthly":
            if start.month == 12:
                return start.replace(year=start.year + 1, month=1)
            return start.replace(month=start.month + 1)
        return start + timedelta(days=1)
    except (OverflowError, ValueError):
        return None


def _bucket_label(start: date) -> str:
    return f"{start.isoformat()}T00:00:00Z"


def _non_negative(value: Any) -> int:
    try:
        count = int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, count)


class CommunicationAggregationService:
    def build_frequency_series(
        self,
        messages: Iterable[MessageRow],
        user1_id: str,
        user2_id: str,
        granularity: str = "daily",
        *,
        dense: bool = False,
        date_range: DateRange | None = None,
    ) -> list[FrequencyPoint]:
        """
        Message counts per time bucket (UTC), ascending.

        Sparse by default: only buckets holding at least one message appear.
        With dense=True every bucket between the range start (or the first
        message) and the range end (or the last message) is present.
        """
        buckets: dict[date, list[int]] = defaultdict(lambda: [0, 0, 0])
        for message in messages:
            start = _bucket_start(message.timestamp.astimezone(UTC).date(), granularity)
            counts = buckets[start]
            counts[0] += 1
            if message.sender_id == user1_id:
                counts[1] += 1
            elif message.sender_id == user2_id:
                counts[2] += 1

        keys = sorted(buckets)
        if dense:
            keys = self._dense_keys(keys, granularity, date_range) or keys

        return [
            FrequencyPoint(
                date=_bucket_label(key),
                total_messages=buckets[key][0] if key in buckets else 0,
                user1_messages=buckets[key][1] if key in buckets else 0,
                user2_messages=buckets[key][2] if key in buckets else 0,
            )
            for key in keys
        ]

    def _dense_keys(
        self, keys: list[date], granularity: str, date_range: DateRange | None
    ) -> list[date]:
        first = date_range.start.date() if date_range and date_range.start else None
        last = date_range.end.date() if date_range and date_range.end else None
        first = first or (keys[0] if keys else None)
        last = last or (keys[-1] if keys else None)
        if first is None or last is None or last < first:
            return []

        current: date | None = _bucket_start(first, granularity)
        end = _bucket_start(last, granularity)
        dense_keys: list[date] = []
        while current is not None and current <= end:
            dense_keys.append(current)
            if len(dense_keys) > MAX_DENSE_BUCKETS:
                logger.warning(
                    "Dense frequency series too long - returning sparse series",
                    granularity=granularity,
                    max_buckets=MAX_DENSE_BUCKETS,
                )
                return []
            current = _next_bucket(current, granularity)
        return dense_keys

    def build_response_time_analysis(self, messages: Iterable[MessageRow]) -> ResponseTimeAnalysis:
        """
        Reply latencies between the two users.

        Within a conversation, a message whose sender differs from the sender
        of the message right before it is a reply; its latency is the gap
        between the two timestamps.
        """
        by_conversation: dict[str, list[MessageRow]] = defaultdict(list)
        for message in messages:
            by_conversation[message.conversation_id].append(message)

        latencies: list[int] = []
        for thread in by_conversation.values():
            thread.sort(key=lambda item: item.timestamp)
            for previous, current in zip(thread, thread[1:]):
                if current.sender_id != previous.sender_id:
                    delta = current.timestamp - previous.timestamp
                    latencies.append(max(0, delta // timedelta(milliseconds=1)))

        distribution = {label: 0 for label, _ in RESPONSE_TIME_BUCKETS}
        for latency in latencies:
            for label, upper in RESPONSE_TIME_BUCKETS:
                if upper is None or latency < upper:
                    distribution[label] += 1
                    break

        if not latencies:
            average = median = 0
        else:
            average = round(statistics.fmean(latencies))
            median = round(statistics.median(latencies))

        return ResponseTimeAnalysis(
            avg_response_time=average,
            median_response_time=median,
            total_responses=len(latencies),
            distribution=[
                ResponseTimeBucket(range=label, count=count)
                for label, count in distribution.items()
            ],
        )

    def build_activity_heatmap(
        self, messages: Iterable[MessageRow], tz: tzinfo = UTC
    ) -> list[HeatmapCell]:
        """Full 7 x 24 grid, Monday = 1, ordered by day then hour."""
        grid: Counter[tuple[int, int]] = Counter()
        for message in messages:
            local = message.timestamp.astimezone(tz)
            grid[(local.isoweekday(), local.hour)] += 1

        return [
            HeatmapCell(hour=hour, day_of_week=day, message_count=grid[(day, hour)])
            for day in range(1, 8)
            for hour in range(24)
        ]

    def build_talk_listen_ratio(self, user1_messages: Any, user2_messages: Any) -> TalkListenRatio:
        """Percent split of message volume; no messages means 50/50."""
        user1_count = _non_negative(user1_messages)
        user2_count = _non_negative(user2_messages)
        total = user1_count + user2_count

        if total == 0:
            return TalkListenRatio(
                user1_messages=0, user2_messages=0, user1_percentage=50.0, user2_percentage=50.0
            )

        user1_percentage = round(user1_count / total * 100, 1)
        return TalkListenRatio(
            user1_messages=user1_count,
            user2_messages=user2_count,
            user1_percentage=user1_percentage,
            user2_percentage=round(100 - user1_percentage, 1),
        )

    def build_conversation_type_breakdown(
        self, conversations: Iterable[ConversationRow]
    ) -> list[ConversationTypeShare]:
        """
        Shared conversation counts per type.

        direct and group are always listed. Percentages are rounded to one
        decimal and the rounding residue goes to the largest bucket so they
        sum to exactly 100.
        """
        counts: Counter[str] = Counter()
        seen: set[str] = set()
        for conversation in conversations:
            if conversation.conversation_id in seen:
                continue
            seen.add(conversation.conversation_id)
            counts[conversation.type or "unknown"] += 1

        types = list(BASE_CONVERSATION_TYPES)
        types.extend(sorted(t for t in counts if t not in BASE_CONVERSATION_TYPES))
        total = sum(counts.values())

        if total == 0:
            return [ConversationTypeShare(type=t, count=0, percentage=0.0) for t in types]

        percentages = {t: round(counts[t] / total * 100, 1) for t in types}
        residue = round(100 - sum(percentages.values()), 1)
        if residue:
            largest = max(types, key=lambda t: counts[t])
            percentages[largest] = round(percentages[largest] + residue, 1)

        return [
            ConversationTypeShare(type=t, count=counts[t], percentage=percentages[t])
            for t in types
        ]

    def build_communication_stats(
        self,
        messages: list[MessageRow],
        conversations: list[ConversationRow],
        user1_id: str,
        user2_id: str,
    ) -> CommunicationStats:
        timestamps = [message.timestamp for message in messages]
        return CommunicationStats(
            total_shared_conversations=len({c.conversation_id for c in conversations}),
            total_messages=len(messages),
            user1_messages=sum(1 for m in messages if m.sender_id == user1_id),
            user2_messages=sum(1 for m in messages if m.sender_id == user2_id),
            first_interaction=format_datetime(min(timestamps)) if timestamps else None,
            last_interaction=format_datetime(max(timestamps)) if timestamps else None,
        )

    def aggregate(
        self,
        user1_id: str,
        user2_id: str,
        messages: list[MessageRow],
        conversations: list[ConversationRow],
        granularity: str = "daily",
        *,
        dense: bool = False,
        date_range: DateRange | None = None,
        tz: tzinfo = UTC,
    ) -> AggregatedAnalytics:
        stats = self.build_communication_stats(messages, conversations, user1_id, user2_id)

        analytics = AggregatedAnalytics(
            user1_id=user1_id,
            user2_id=user2_id,
            granularity=granularity,
            frequency=self.build_frequency_series(
                messages, user1_id, user2_id, granularity, dense=dense, date_range=date_range
            ),
            response_time=self.build_response_time_analysis(messages),
            activity_heatmap=self.build_activity_heatmap(messages, tz),
            talk_to_listen_ratio=self.build_talk_listen_ratio(
                stats.user1_messages, stats.user2_messages
            ),
            conversation_types=self.build_conversation_type_breakdown(conversations),
            communication_stats=stats,
        )

        logger.info(
            "Communication analytics aggregated",
            user1_id=user1_id,
            user2_id=user2_id,
            granularity=granularity,
            message_count=stats.total_messages,
            conversation_count=stats.total_shared_conversations,
            response_count=analytics.response_time.total_responses,
        )
        return analytics


communication_aggregation_service = CommunicationAggregationService()
