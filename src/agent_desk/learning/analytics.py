# src/agent_desk/learning/analytics.py

from __future__ import annotations

"""
Rating statistics for the learning panel.

All functions are pure; the engine only reads from the stores.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from ..core.ports import TaskRepo
from ..tasks.task_models import Task, TaskStatus
from .messages import RatedMessage, RatedMessageStore

logger = logging.getLogger(__name__)

RECENT_WINDOW = 10
RATING_BUCKETS: tuple[float, ...] = tuple(i / 2 for i in range(1, 11))  # 0.5 .. 5.0


class Rated(Protocol):
    rating: float | None
    timestamp: datetime


@dataclass(slots=True, frozen=True)
class RatingStats:
    total_ratings: int = 0
    average_rating: float = 0.0
    distribution: dict[float, int] = field(default_factory=lambda: {b: 0 for b in RATING_BUCKETS})
    recent_trend: list[float] = field(default_factory=list)
    improvement_rate: float = 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def improvement_rate(ratings: Sequence[float]) -> float:
    """
    Percentage change from the mean of the first half to the mean of the second half.

    The split is at floor(n / 2) and the change is relative to the first half's
    mean, so it is asymmetric. Returns 0 when either half is empty or the first
    half's mean is not positive.
    """
    midpoint = len(ratings) // 2
    first, second = ratings[:midpoint], ratings[midpoint:]
    if not first or not second:
        return 0.0
    m1 = _mean(first)
    if m1 <= 0:
        return 0.0
    return (_mean(second) - m1) / m1 * 100


def rating_distribution(ratings: Iterable[float]) -> dict[float, int]:
    """Exact-value counts per half-point bucket; off-grid values are not counted."""
    dist = {b: 0 for b in RATING_BUCKETS}
    for r in ratings:
        if r in dist:
            dist[r] += 1
    return dist


def compute_rating_stats(ratings: Sequence[float]) -> RatingStats:
    """Stats over ratings given in chronological order."""
    values = [float(r) for r in ratings]
    if not values:
        return RatingStats()
    return RatingStats(
        total_ratings=len(values),
        average_rating=_mean(values),
        distribution=rating_distribution(values),
        recent_trend=values[-RECENT_WINDOW:],
        improvement_rate=improvement_rate(values),
    )


def rating_history(*sources: Iterable[Rated]) -> list[float]:
    """
    Merge rated records from several sources into one chronological sequence.

    The sort is stable, so records sharing a timestamp keep their source order.
    """
    rated = [r for src in sources for r in src if r.rating is not None]
    rated.sort(key=lambda r: r.timestamp)
    return [float(r.rating) for r in rated if r.rating is not None]


# ---- learning context ----

HIGH_RATING = 4.0
LOW_RATING = 2.0
MAX_HIGH_EXAMPLES = 3
MAX_LOW_EXAMPLES = 2
PREVIEW_CHARS = 200

LEARNING_GUIDANCE = (
    "- Emulate the style and approach of highly rated responses",
    "- Avoid patterns found in poorly rated responses",
    "- Focus on being helpful, accurate, and comprehensive",
    "- Pay attention to user preferences shown through ratings",
)


def _preview(text: str) -> str:
    return text if len(text) <= PREVIEW_CHARS else text[:PREVIEW_CHARS] + "..."


def _example_block(title: str, rule: str, examples: Sequence[tuple[float, str]]) -> list[str]:
    if not examples:
        return []
    lines = [title, rule]
    for idx, (rating, content) in enumerate(examples, start=1):
        lines += [f"{idx}. [Rating: {rating:g}/5] {_preview(content)}", ""]
    return lines


def learning_summary(messages: Iterable[RatedMessage], tasks: Iterable[Task]) -> str:
    """
    Feedback block meant to be appended to an agent prompt.

    Rated messages and rated tasks are merged chronologically (a task's result is
    its content). Returns "" when nothing is rated.
    """
    entries = [(m.timestamp, float(m.rating), m.content) for m in messages if m.rating is not None]
    entries += [(t.timestamp, float(t.rating), t.result or "") for t in tasks if t.rating is not None]
    if not entries:
        return ""
    entries.sort(key=lambda e: e[0])

    stats = compute_rating_stats([rating for _, rating, _ in entries])
    rate = stats.improvement_rate
    trend = "improving" if rate > 0 else "declining" if rate < 0 else "stable"

    lines = [
        "LEARNING CONTEXT FROM USER FEEDBACK:",
        "==========================================",
        "",
        "Performance Overview:",
        f"- Total rated responses: {stats.total_ratings}",
        f"- Average rating: {stats.average_rating:.1f}/5.0",
        f"- Performance trend: {trend} ({rate:.1f}%)",
        "",
    ]
    lines += _example_block(
        "Examples of HIGHLY RATED responses (4+ stars):",
        "---------------------------------------------",
        [(r, c) for _, r, c in entries if r >= HIGH_RATING][:MAX_HIGH_EXAMPLES],
    )
    lines += _example_block(
        "Examples of POORLY RATED responses (2 stars or less):",
        "----------------------------------------------------",
        [(r, c) for _, r, c in entries if r <= LOW_RATING][:MAX_LOW_EXAMPLES],
    )
    lines.append("LEARNING GUIDANCE:")
    lines.extend(LEARNING_GUIDANCE)
    return "\n".join(lines) + "\n"


class LearningAnalytics:
    """Reads rated messages and rated completed tasks; performs no writes."""

    def __init__(self, messages: RatedMessageStore, tasks: TaskRepo) -> None:
        self._messages = messages
        self._tasks = tasks

    async def load_stats(self) -> RatingStats:
        messages = await self._messages.list()
        tasks = [t for t in await self._tasks.list() if t.status == TaskStatus.COMPLETED]
        history = rating_history(messages, tasks)
        logger.debug("Rating history: %d messages, %d tasks, %d ratings", len(messages), len(tasks), len(history))
        return compute_rating_stats(history)

    async def load_summary(self) -> str:
        messages = await self._messages.list()
        tasks = [t for t in await self._tasks.list() if t.status == TaskStatus.COMPLETED]
        return learning_summary(messages, tasks)


def format_stats(stats: RatingStats) -> str:
    if stats.total_ratings == 0:
        return "No ratings yet."
    rate = stats.improvement_rate
    trend = "improvement" if rate > 0 else "decline" if rate < 0 else "stable"
    lines = [
        f"Total ratings: {stats.total_ratings}",
        f"Average rating: {stats.average_rating:.1f}",
        f"Improvement: {'+' if rate > 0 else ''}{rate:.1f}% ({trend})",
        "Distribution:",
    ]
    for bucket in sorted(stats.distribution, reverse=True):
        count = stats.distribution[bucket]
        if count:
            lines.append(f"  {bucket:>3g}: {'#' * count} ({count})")
    lines.append("Recent: " + " ".join(f"{r:g}" for r in stats.recent_trend))
    return "\n".join(lines)
