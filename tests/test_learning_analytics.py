# tests/test_learning_analytics.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from agent_desk.learning.analytics import (
    LearningAnalytics,
    RATING_BUCKETS,
    compute_rating_stats,
    format_stats,
    improvement_rate,
    learning_summary,
    rating_distribution,
    rating_history,
)
from agent_desk.learning.messages import RatedMessage, RatedMessageStore
from agent_desk.storage.kv_store import InMemoryKeyValueStore
from agent_desk.tasks.task_models import Task, TaskStatus
from agent_desk.tasks.task_store import CollectionTaskStore

T0 = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)


def test_improvement_rate_is_relative_to_first_half() -> None:
    assert improvement_rate([2, 2, 4, 4]) == pytest.approx(100.0)
    assert improvement_rate([4, 4, 2, 2]) == pytest.approx(-50.0)
    # odd length: the middle value lands in the second half
    assert improvement_rate([2, 3, 4]) == pytest.approx(75.0)


@pytest.mark.parametrize("ratings", [[], [3.0]])
def test_improvement_rate_needs_two_halves(ratings: list[float]) -> None:
    assert improvement_rate(ratings) == 0.0


def test_distribution_counts_exact_half_points() -> None:
    dist = rating_distribution([1, 1, 2.5, 5, 4.2])
    assert list(dist) == list(RATING_BUCKETS)
    assert dist[1.0] == 2
    assert dist[2.5] == 1
    assert dist[5.0] == 1
    assert sum(dist.values()) == 4


def test_stats_for_no_ratings_are_zeroed() -> None:
    stats = compute_rating_stats([])
    assert stats.total_ratings == 0
    assert stats.average_rating == 0.0
    assert stats.recent_trend == []
    assert stats.improvement_rate == 0.0
    assert set(stats.distribution.values()) == {0}
    assert format_stats(stats) == "No ratings yet."


def test_recent_trend_keeps_the_last_ten() -> None:
    ratings = [1.0] * 5 + [5.0] * 10
    stats = compute_rating_stats(ratings)
    assert stats.total_ratings == 15
    assert stats.recent_trend == [5.0] * 10
    assert stats.average_rating == pytest.approx(55 / 15)


def test_rating_history_merges_sources_chronologically() -> None:
    messages = [
        RatedMessage(id="m1", content="hi", role="assistant", rating=2.0, timestamp=T0 + timedelta(minutes=2)),
        RatedMessage(id="m2", content="yo", role="assistant", rating=None, timestamp=T0),
    ]
    tasks = [
        Task(id="t1", agent_id="a", prompt="p", status=TaskStatus.COMPLETED, timestamp=T0, rating=4.0),
        Task(id="t2", agent_id="a", prompt="p", status=TaskStatus.COMPLETED, timestamp=T0 + timedelta(minutes=2), rating=3.0),
    ]
    assert rating_history(messages, tasks) == [4.0, 2.0, 3.0]


@pytest.mark.asyncio
async def test_engine_reads_rated_messages_and_completed_tasks() -> None:
    kv = InMemoryKeyValueStore()
    messages = RatedMessageStore(kv)
    tasks = CollectionTaskStore(kv)

    await messages.save(RatedMessage(id="m1", content="a", role="assistant", rating=2.0, timestamp=T0))
    await messages.save(RatedMessage(id="m2", content="b", role="assistant", timestamp=T0))
    await tasks.save(
        Task(id="t1", agent_id="a", prompt="p", status=TaskStatus.COMPLETED, timestamp=T0 + timedelta(hours=1), rating=4.0)
    )
    # a rating on a non-completed record is ignored
    await tasks.save(
        Task(id="t2", agent_id="a", prompt="p", status=TaskStatus.RUNNING, timestamp=T0 + timedelta(hours=2), rating=1.0)
    )

    stats = await LearningAnalytics(messages, tasks).load_stats()

    assert stats.total_ratings == 2
    assert stats.average_rating == pytest.approx(3.0)
    assert stats.improvement_rate == pytest.approx(100.0)
    assert stats.recent_trend == [2.0, 4.0]
    assert "Improvement: +100.0% (improvement)" in format_stats(stats)


@pytest.mark.asyncio
async def test_message_store_rejects_off_grid_ratings() -> None:
    store = RatedMessageStore(InMemoryKeyValueStore())
    with pytest.raises(ValueError):
        await store.save(RatedMessage(id="m", content="x", role="assistant", rating=6.0))


def _msg(idx: int, rating: float | None, content: str = "") -> RatedMessage:
    return RatedMessage(
        id=f"m{idx}",
        content=content or f"reply {idx}",
        role="assistant",
        rating=rating,
        timestamp=T0 + timedelta(minutes=idx),
    )


def test_learning_summary_is_empty_without_ratings() -> None:
    assert learning_summary([], []) == ""
    assert learning_summary([_msg(1, None)], []) == ""


def test_learning_summary_limits_examples_per_block() -> None:
    messages = [_msg(i, 5.0, f"good {i}") for i in range(4)] + [_msg(10 + i, 1.0, f"bad {i}") for i in range(3)]

    summary = learning_summary(messages, [])
    high, low = summary.split("Examples of POORLY RATED responses (2 stars or less):")

    assert summary.startswith("LEARNING CONTEXT FROM USER FEEDBACK:\n")
    assert "- Total rated responses: 7" in summary
    assert [f"good {i}" in high for i in range(4)] == [True, True, True, False]
    assert "3. [Rating: 5/5] good 2" in high
    assert [f"bad {i}" in low for i in range(3)] == [True, True, False]
    assert "2. [Rating: 1/5] bad 1" in low
    assert summary.rstrip().endswith("- Pay attention to user preferences shown through ratings")


def test_learning_summary_skips_middle_ratings_and_empty_blocks() -> None:
    summary = learning_summary([_msg(1, 3.0), _msg(2, 4.5, "fine")], [])

    assert "1. [Rating: 4.5/5] fine" in summary
    assert "reply 1" not in summary
    assert "POORLY RATED" not in summary


def test_learning_summary_truncates_long_content() -> None:
    summary = learning_summary([_msg(1, 4.0, "x" * 250)], [])

    assert "x" * 200 + "..." in summary
    assert "x" * 201 not in summary


@pytest.mark.parametrize(
    ("ratings", "wording"),
    [
        ([2.0, 4.0], "- Performance trend: improving (100.0%)"),
        ([4.0, 2.0], "- Performance trend: declining (-50.0%)"),
        ([3.0], "- Performance trend: stable (0.0%)"),
    ],
)
def test_learning_summary_trend_wording(ratings: list[float], wording: str) -> None:
    summary = learning_summary([_msg(i, r) for i, r in enumerate(ratings)], [])
    assert wording in summary


@pytest.mark.asyncio
async def test_engine_summary_uses_completed_task_results() -> None:
    kv = InMemoryKeyValueStore()
    messages = RatedMessageStore(kv)
    tasks = CollectionTaskStore(kv)

    await messages.save(_msg(1, 2.0, "too short"))
    await tasks.save(
        Task(
            id="t1",
            agent_id="a",
            prompt="p",
            status=TaskStatus.COMPLETED,
            timestamp=T0 + timedelta(hours=1),
            result="thorough answer",
            rating=5.0,
        )
    )
    await tasks.save(
        Task(id="t2", agent_id="a", prompt="p", status=TaskStatus.ERROR, timestamp=T0 + timedelta(hours=2), rating=1.0)
    )

    summary = await LearningAnalytics(messages, tasks).load_summary()

    assert "- Total rated responses: 2" in summary
    assert "- Average rating: 3.5/5.0" in summary
    assert "1. [Rating: 5/5] thorough answer" in summary
    assert "1. [Rating: 2/5] too short" in summary
