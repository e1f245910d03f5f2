# src/agent_desk/learning/calendar.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC

from ..agents.models import Agent
from ..tasks.task_models import Task, TaskStatus

NO_COMPLETED = "No completed tasks - check for configuration issues"
LOW_COMPLETION = "Low completion rate - may need prompt optimization"
PERFECT_COMPLETION = "Perfect completion rate - agent performing well"
HIGH_QUALITY = "High quality outputs - maintain current approach"
LOW_RATINGS = "Low ratings - review and improve prompts"
MODERATE = "Moderate performance - room for improvement"


@dataclass(slots=True)
class DailySummary:
    """Derived per-agent, per-day view. Recomputed on demand, never persisted."""

    agent_id: str
    agent_name: str
    date: str  # UTC date, YYYY-MM-DD
    total_tasks: int = 0
    completed_tasks: int = 0
    average_rating: float = 0.0
    tasks: list[Task] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)

    @property
    def error_tasks(self) -> int:
        return sum(1 for t in self.tasks if t.status == TaskStatus.ERROR)

    @property
    def performance(self) -> str:
        """Calendar cell level: high | low | moderate | none."""
        if self.average_rating >= 4:
            return "high"
        if 0 < self.average_rating <= 2:
            return "low"
        if self.total_tasks > 0:
            return "moderate"
        return "none"


def day_key(task: Task) -> str:
    return task.timestamp.astimezone(UTC).date().isoformat()


def learning_insights(summary: DailySummary) -> list[str]:
    insights: list[str] = []

    if summary.completed_tasks == 0:
        insights.append(NO_COMPLETED)
    elif summary.completed_tasks / summary.total_tasks < 0.5:
        insights.append(LOW_COMPLETION)
    elif summary.completed_tasks == summary.total_tasks:
        insights.append(PERFECT_COMPLETION)

    if summary.average_rating >= 4:
        insights.append(HIGH_QUALITY)
    elif 0 < summary.average_rating <= 2:
        insights.append(LOW_RATINGS)
    elif summary.average_rating > 0:
        insights.append(MODERATE)

    errors = summary.error_tasks
    if errors:
        insights.append(f"{errors} errors encountered - investigate common issues")

    return insights


def build_daily_summaries(agent: Agent, tasks: Iterable[Task]) -> dict[str, DailySummary]:
    """Group the agent's tasks by UTC calendar day and derive per-day summaries."""
    summaries: dict[str, DailySummary] = {}

    for task in tasks:
        if task.agent_id != agent.id:
            continue
        key = day_key(task)
        summary = summaries.get(key)
        if summary is None:
            summary = summaries[key] = DailySummary(agent_id=agent.id, agent_name=agent.name, date=key)
        summary.total_tasks += 1
        summary.tasks.append(task)
        if task.status == TaskStatus.COMPLETED:
            summary.completed_tasks += 1

    for summary in summaries.values():
        rated = [t.rating for t in summary.tasks if t.rating]
        if rated:
            summary.average_rating = sum(rated) / len(rated)
        summary.insights = learning_insights(summary)

    return dict(sorted(summaries.items()))


def month_summaries(summaries: dict[str, DailySummary], year: int, month: int) -> list[DailySummary]:
    prefix = f"{year:04d}-{month:02d}-"
    return [s for key, s in summaries.items() if key.startswith(prefix)]


def format_summary(summary: DailySummary) -> str:
    lines = [
        f"{summary.date} {summary.agent_name}: {summary.completed_tasks}/{summary.total_tasks} completed"
        + (f", avg rating {summary.average_rating:.1f}" if summary.average_rating > 0 else "")
        + f" [{summary.performance}]",
    ]
    lines.extend(f"  - {insight}" for insight in summary.insights)
    return "\n".join(lines)
