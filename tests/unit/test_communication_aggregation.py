from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from app.features.communications.pipeline.aggregation.service import (
    CommunicationAggregationService,
    ConversationRow,
    MessageRow,
)
from app.utils.validated_params import DateRange

BASE = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)  # a Monday


def _msg(sender: str, offset: timedelta, conversation: str = "c1") -> MessageRow:
    return MessageRow(sender_id=sender, timestamp=BASE + offset, conversation_id=conversation)


@pytest.fixture
def service():
    return CommunicationAggregationService()


def test_empty_history_yields_neutral_analytics(service):
    analytics = service.aggregate("alice", "bob", [], [])

    assert analytics.frequency == []
    assert analytics.talk_to_listen_ratio.user1_percentage == 50.0
    assert analytics.talk_to_listen_ratio.user2_percentage == 50.0
    assert analytics.response_time.avg_response_time == 0
    assert analytics.response_time.median_response_time == 0
    assert analytics.response_time.total_responses == 0
    assert len(analytics.activity_heatmap) == 168
    assert all(cell.message_count == 0 for cell in analytics.activity_heatmap)
    assert [t.type for t in analytics.conversation_types] == ["direct", "group"]
    assert all(t.percentage == 0 for t in analytics.conversation_types)


def test_daily_frequency_is_sparse_by_default(service):
    messages = [
        _msg("alice", timedelta(hours=0)),
        _msg("bob", timedelta(hours=1)),
        _msg("alice", timedelta(days=3)),
    ]

    series = service.build_frequency_series(messages, "alice", "bob", "daily")

    assert [p.date for p in series] == ["2024-03-04T00:00:00Z", "2024-03-07T00:00:00Z"]
    assert series[0].total_messages == 2
    assert series[0].user1_messages == 1
    assert series[0].user2_messages == 1


def test_dense_frequency_zero_fills_gaps(service):
    messages = [_msg("alice", timedelta(0)), _msg("bob", timedelta(days=3))]

    series = service.build_frequency_series(messages, "alice", "bob", "daily", dense=True)

    assert len(series) == 4
    assert [p.total_messages for p in series] == [1, 0, 0, 1]


def test_dense_frequency_spans_requested_range(service):
    date_range = DateRange(
        start=datetime(2024, 3, 1, tzinfo=UTC),
        end=datetime(2024, 3, 31, 23, 59, tzinfo=UTC),
    )

    series = service.build_frequency_series(
        [_msg("alice", timedelta(0))], "alice", "bob", "weekly", dense=True, date_range=date_range
    )

    assert series[0].date == "2024-02-26T00:00:00Z"
    assert series[-1].date == "2024-03-25T00:00:00Z"
    assert sum(p.total_messages for p in series) == 1


def test_weekly_buckets_start_on_monday(service):
    sunday = MessageRow("alice", datetime(2024, 3, 10, 22, 0, tzinfo=UTC), "c1")
    monday = MessageRow("bob", datetime(2024, 3, 11, 1, 0, tzinfo=UTC), "c1")

    series = service.build_frequency_series([sunday, monday], "alice", "bob", "weekly")

    assert [p.date for p in series] == ["2024-03-04T00:00:00Z", "2024-03-11T00:00:00Z"]


def test_monthly_buckets(service):
    messages = [
        MessageRow("alice", datetime(2024, 1, 31, tzinfo=UTC), "c1"),
        MessageRow("alice", datetime(2024, 2, 1, tzinfo=UTC), "c1"),
        MessageRow("bob", datetime(2024, 2, 29, tzinfo=UTC), "c1"),
    ]

    series = service.build_frequency_series(messages, "alice", "bob", "monthly")

    assert [(p.date, p.total_messages) for p in series] == [
        ("2024-01-01T00:00:00Z", 1),
        ("2024-02-01T00:00:00Z", 2),
    ]


def test_dense_monthly_crosses_year_boundary(service):
    messages = [
        MessageRow("alice", datetime(2023, 11, 15, tzinfo=UTC), "c1"),
        MessageRow("bob", datetime(2024, 2, 3, tzinfo=UTC), "c1"),
    ]

    series = service.build_frequency_series(messages, "alice", "bob", "monthly", dense=True)

    assert [p.date[:7] for p in series] == ["2023-11", "2023-12", "2024-01", "2024-02"]


@pytest.mark.parametrize("granularity", ["daily", "weekly", "monthly"])
def test_dense_series_stops_at_last_representable_day(service, granularity):
    last_day = DateRange(
        start=datetime(9999, 12, 31, tzinfo=UTC),
        end=datetime(9999, 12, 31, 23, 59, 59, tzinfo=UTC),
    )

    series = service.build_frequency_series(
        [], "alice", "bob", granularity, dense=True, date_range=last_day
    )

    assert len(series) == 1
    assert series[0].total_messages == 0


def test_response_times_only_count_sender_changes(service):
    messages = [
        _msg("alice", timedelta(0)),
        _msg("alice", timedelta(minutes=5)),
        _msg("bob", timedelta(minutes=35)),  # reply after 30 min
        _msg("alice", timedelta(hours=3, minutes=35)),  # reply after 3h
        _msg("bob", timedelta(days=2, hours=3, minutes=35)),  # reply after 48h
    ]

    analysis = service.build_response_time_analysis(messages)
    distribution = {bucket.range: bucket.count for bucket in analysis.distribution}

    assert analysis.total_responses == 3
    assert distribution == {"<1h": 1, "1-6h": 1, "6-24h": 0, ">24h": 1}
    assert analysis.median_response_time == 3 * 60 * 60 * 1000
    expected_avg = round((30 * 60 + 3 * 3600 + 48 * 3600) * 1000 / 3)
    assert analysis.avg_response_time == expected_avg


@pytest.mark.parametrize(
    "gap, bucket",
    [
        (timedelta(hours=1) - timedelta(milliseconds=1), "<1h"),
        (timedelta(hours=1), "1-6h"),
        (timedelta(hours=6) - timedelta(milliseconds=1), "1-6h"),
        (timedelta(hours=6), "6-24h"),
        (timedelta(hours=24) - timedelta(milliseconds=1), "6-24h"),
        (timedelta(hours=24), ">24h"),
    ],
)
def test_response_time_bucket_boundaries(service, gap, bucket):
    messages = [_msg("alice", timedelta(0)), _msg("bob", gap)]

    analysis = service.build_response_time_analysis(messages)
    distribution = {b.range: b.count for b in analysis.distribution}

    assert distribution[bucket] == 1
    assert sum(distribution.values()) == 1
    assert analysis.median_response_time == gap // timedelta(milliseconds=1)


def test_response_times_do_not_cross_conversations(service):
    messages = [
        _msg("alice", timedelta(0), conversation="c1"),
        _msg("bob", timedelta(minutes=10), conversation="c2"),
    ]

    analysis = service.build_response_time_analysis(messages)

    assert analysis.total_responses == 0
    assert analysis.avg_response_time == 0


def test_response_times_sort_unordered_input(service):
    messages = [_msg("bob", timedelta(hours=7)), _msg("alice", timedelta(0))]

    analysis = service.build_response_time_analysis(messages)
    distribution = {bucket.range: bucket.count for bucket in analysis.distribution}

    assert distribution["6-24h"] == 1


def test_heatmap_is_complete_and_ordered(service):
    heatmap = service.build_activity_heatmap([_msg("alice", timedelta(0))])

    assert len(heatmap) == 168
    assert (heatmap[0].day_of_week, heatmap[0].hour) == (1, 0)
    assert (heatmap[-1].day_of_week, heatmap[-1].hour) == (7, 23)
    hits = [cell for cell in heatmap if cell.message_count]
    assert [(c.day_of_week, c.hour, c.message_count) for c in hits] == [(1, 9, 1)]


def test_heatmap_respects_timezone(service):
    late_sunday_utc = MessageRow("alice", datetime(2024, 3, 10, 23, 30, tzinfo=UTC), "c1")

    heatmap = service.build_activity_heatmap([late_sunday_utc], ZoneInfo("Europe/Berlin"))
    hits = [cell for cell in heatmap if cell.message_count]

    assert [(c.day_of_week, c.hour) for c in hits] == [(1, 0)]


@pytest.mark.parametrize(
    "user1, user2, expected",
    [
        (0, 0, (50.0, 50.0)),
        (1, 2, (33.3, 66.7)),
        (2, 1, (66.7, 33.3)),
        (5, 0, (100.0, 0.0)),
        (-3, 4, (0.0, 100.0)),
        (1, 1, (50.0, 50.0)),
    ],
)
def test_talk_listen_ratio(service, user1, user2, expected):
    ratio = service.build_talk_listen_ratio(user1, user2)

    assert (ratio.user1_percentage, ratio.user2_percentage) == expected
    assert ratio.user1_messages >= 0 and ratio.user2_messages >= 0


def test_talk_listen_ratio_sums_to_hundred(service):
    for user1 in range(0, 30):
        for user2 in range(0, 30):
            ratio = service.build_talk_listen_ratio(user1, user2)
            assert ratio.user1_percentage + ratio.user2_percentage == 100.0


def test_conversation_type_breakdown_sums_to_hundred(service):
    conversations = [
        ConversationRow("c1", "direct"),
        ConversationRow("c2", "group"),
        ConversationRow("c3", "channel"),
    ]

    breakdown = service.build_conversation_type_breakdown(conversations)

    assert [b.type for b in breakdown] == ["direct", "group", "channel"]
    assert sum(round(b.percentage * 10) for b in breakdown) == 1000
    assert sorted(b.percentage for b in breakdown) == [33.3, 33.3, 33.4]


def test_conversation_type_breakdown_always_lists_direct_and_group(service):
    breakdown = service.build_conversation_type_breakdown(
        [ConversationRow("c1", "group"), ConversationRow("c1", "group")]
    )

    by_type = {b.type: (b.count, b.percentage) for b in breakdown}
    assert by_type == {"direct": (0, 0.0), "group": (1, 100.0)}


def test_communication_stats(service):
    messages = [
        _msg("alice", timedelta(0)),
        _msg("bob", timedelta(hours=1)),
        _msg("bob", timedelta(hours=2), conversation="c2"),
    ]
    conversations = [ConversationRow("c1", "direct"), ConversationRow("c2", "group")]

    stats = service.build_communication_stats(messages, conversations, "alice", "bob")

    assert stats.total_shared_conversations == 2
    assert stats.total_messages == 3
    assert (stats.user1_messages, stats.user2_messages) == (1, 2)
    assert stats.first_interaction == "2024-03-04T09:00:00Z"
    assert stats.last_interaction == "2024-03-04T11:00:00Z"


def test_aggregate_payload_uses_camel_case(service):
    analytics = service.aggregate(
        "alice", "bob", [_msg("alice", timedelta(0))], [ConversationRow("c1", "direct")]
    )
    payload = analytics.to_payload()

    assert payload["user1Id"] == "alice"
    assert payload["talkToListenRatio"]["user1Percentage"] == 100.0
    assert payload["activityHeatmap"][0].keys() == {"hour", "dayOfWeek", "messageCount"}
    assert payload["responseTime"]["distribution"][0]["range"] == "<1h"


def test_message_row_from_record_skips_incomplete_rows():
    assert MessageRow.from_record({"senderId": "a", "timestamp": None}) is None
    row = MessageRow.from_record(
        {"senderId": "a", "timestamp": "2024-03-04T09:00:00Z", "conversationId": "c1"}
    )
    assert row.timestamp == BASE
