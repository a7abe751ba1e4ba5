"""Tests for prayer request matching and recommendation ordering."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from connection_feed.services.errors import MalformedInputError
from connection_feed.services.prayer_match import (
    DEFAULT_REASON,
    UNDER_SERVED_REASON,
    URGENT_REASON,
    Demographic,
    Location,
    PrayerHistory,
    PrayerRequestRecord,
    Priority,
    RecentPrayer,
    UserPrayerContext,
    calculate_prayer_match,
    recommend,
)

NOW = datetime(2024, 6, 1, tzinfo=UTC)


def _request(request_id: int = 1, content: str = "hello", **fields) -> PrayerRequestRecord:
    fields.setdefault("prayer_count", 10)
    return PrayerRequestRecord(id=request_id, author_id=100 + request_id, content=content, **fields)


def test_shared_experience_and_local_request():
    context = UserPrayerContext(experienced_topics=["healing"], location=Location(city="Austin"))
    request = _request(
        content="praying for healing after surgery",
        author_location=Location(city="Austin"),
        prayer_count=1,
    )

    result = calculate_prayer_match(request, context)

    assert result.match_score == 65
    assert result.priority is Priority.HIGH
    assert result.reasons == [
        "You've experienced similar challenges with healing",
        "From your local area",
        UNDER_SERVED_REASON,
    ]


def test_no_signal_gets_default_reason():
    result = calculate_prayer_match(_request(), UserPrayerContext())

    assert result.match_score == 0
    assert result.priority is Priority.LOW
    assert result.reasons == [DEFAULT_REASON]


def test_under_served_boost_alone():
    result = calculate_prayer_match(_request(prayer_count=0), UserPrayerContext())

    assert result.match_score == 10
    assert result.reasons == [UNDER_SERVED_REASON]


def test_urgent_request_is_always_critical():
    result = calculate_prayer_match(_request(is_urgent=True), UserPrayerContext())

    assert result.priority is Priority.CRITICAL
    assert result.match_score == 0
    assert result.reasons == [URGENT_REASON]


def test_critical_category_counts_as_urgent():
    result = calculate_prayer_match(_request(category="Critical"), UserPrayerContext())

    assert result.priority is Priority.CRITICAL


def test_urgency_multiplies_signals_and_leads_reasons():
    context = UserPrayerContext(experienced_topics=["healing"])
    request = _request(content="need healing", is_urgent=True)

    result = calculate_prayer_match(request, context)

    assert result.match_score == 60
    assert result.reasons[0] == URGENT_REASON


def test_ministry_alignment():
    context = UserPrayerContext(ministry_areas={"health"})

    result = calculate_prayer_match(_request(content="pray for healing"), context)

    assert result.match_score == 30
    assert result.priority is Priority.HIGH
    assert result.reasons == ["Aligns with your health ministry"]


def test_current_struggle_is_medium():
    context = UserPrayerContext(current_struggles=["anxiety"])

    result = calculate_prayer_match(_request(content="struggling with anxiety lately"), context)

    assert result.match_score == 25
    assert result.priority is Priority.MEDIUM
    assert result.reasons == ["You're also navigating anxiety"]


def test_same_state_rounds_half_up():
    context = UserPrayerContext(location=Location(city="Austin", state="TX"))
    request = _request(author_location=Location(city="Dallas", state="tx"))

    result = calculate_prayer_match(request, context)

    assert result.match_score == 11
    assert result.reasons == ["From your region"]


def test_same_country_only():
    context = UserPrayerContext(location=Location(country="US"))
    request = _request(author_location=Location(city="Lagos", country="us"))

    assert calculate_prayer_match(request, context).match_score == 6


def test_life_stage_relevance():
    context = UserPrayerContext(demographic=Demographic(life_stage="parent"))

    result = calculate_prayer_match(_request(content="pray for my kids"), context)

    assert result.match_score == 15
    assert result.reasons == ["Relevant to parenting"]


def test_history_affinity():
    recent = [RecentPrayer(category="health", date=NOW) for _ in range(10)]
    context = UserPrayerContext(
        prayer_history=PrayerHistory(
            categories={"health": 10},
            total_prayers=10,
            recent_prayers=recent,
        )
    )

    result = calculate_prayer_match(_request(category="health"), context)

    assert result.match_score == 20
    assert result.reasons == ["Category you often pray for"]


def test_weak_history_adds_points_without_reason():
    context = UserPrayerContext(
        prayer_history=PrayerHistory(categories={"health": 1, "work": 1}, total_prayers=2)
    )

    result = calculate_prayer_match(_request(category="health"), context)

    assert result.match_score == 7
    assert result.reasons == [DEFAULT_REASON]


def test_score_is_capped():
    context = UserPrayerContext(
        experienced_topics=["healing"],
        current_struggles=["surgery"],
        ministry_areas={"health"},
        location=Location(city="Austin"),
    )
    request = _request(
        content="healing after surgery",
        author_location=Location(city="Austin"),
        is_urgent=True,
        prayer_count=0,
    )

    assert calculate_prayer_match(request, context).match_score == 100


def test_missing_optional_data_contributes_nothing():
    context = UserPrayerContext(
        location=None,
        demographic=Demographic(life_stage=None),
        prayer_history=PrayerHistory(),
    )
    request = _request(author_location=None, category=None)

    assert calculate_prayer_match(request, context).match_score == 0


def test_recommend_orders_by_tier_then_score():
    context = UserPrayerContext(
        experienced_topics=["healing"],
        current_struggles=["anxiety"],
        location=Location(city="Austin"),
    )
    pool = [
        _request(1, "hello"),
        _request(2, "anxiety at night"),
        _request(3, "healing", author_location=Location(city="Austin")),
        _request(4, "hello", is_urgent=True),
        _request(5, "healing"),
        _request(6, "hello", prayer_count=0),
    ]

    results = recommend(context, pool, limit=10)

    assert [result.prayer_request.id for result in results] == [4, 3, 5, 2, 6, 1]
    ranks = [result.priority.rank for result in results]
    assert ranks == sorted(ranks)
    for earlier, later in zip(results, results[1:]):
        if earlier.priority is later.priority:
            assert earlier.match_score >= later.match_score


def test_recommend_respects_limit_and_exclusions():
    pool = [_request(request_id) for request_id in range(1, 8)]

    results = recommend(UserPrayerContext(), pool, limit=3, exclude_ids={1, 2})

    assert [result.prayer_request.id for result in results] == [3, 4, 5]


def test_recommend_empty_inputs():
    assert recommend(UserPrayerContext(), [], limit=5) == []
    assert recommend(UserPrayerContext(), [_request()], limit=0) == []


@pytest.mark.parametrize("args", [(None, []), (UserPrayerContext(), None)])
def test_recommend_rejects_missing_inputs(args):
    with pytest.raises(MalformedInputError):
        recommend(*args)
