# src/agent_desk/tasks/task_models.py

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from ..storage.records import format_timestamp, parse_timestamp, utc_now

MIN_RATING = 0.5
MAX_RATING = 5.0


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    pending -> running -> completed | error
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.ERROR)


class TaskType(StrEnum):
    GENERAL = "general"
    CAPABILITY = "capability"


def validate_rating(rating: float) -> float:
    """Ratings live in [0.5, 5] in half-point steps."""
    value = float(rating)
    if not MIN_RATING <= value <= MAX_RATING or (value * 2) != int(value * 2):
        raise ValueError(f"rating must be between 0.5 and 5 in half-point steps, got {rating!r}")
    return value


@dataclass(slots=True)
class Task:
    id: str
    agent_id: str
    prompt: str
    status: TaskStatus
    timestamp: datetime = field(default_factory=utc_now)

    capability: str | None = None
    result: str | None = None
    error: str | None = None
    rating: float | None = None

    def mark_running(self) -> None:
        self.status = TaskStatus.RUNNING
        self.result = None
        self.error = None

    def mark_completed(self, result: str) -> None:
        self.status = TaskStatus.COMPLETED
        self.result = result
        self.error = None

    def mark_error(self, error: str) -> None:
        self.status = TaskStatus.ERROR
        self.error = error
        self.result = None
        self.rating = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "agentId": self.agent_id,
            "prompt": self.prompt,
            "status": self.status.value,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.capability is not None:
            data["capability"] = self.capability
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        if self.rating is not None:
            data["rating"] = self.rating
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        rating = data.get("rating")
        return cls(
            id=str(data["id"]),
            agent_id=str(data["agentId"]),
            prompt=str(data.get("prompt") or ""),
            status=TaskStatus(data.get("status") or TaskStatus.PENDING.value),
            timestamp=parse_timestamp(data["timestamp"]),
            capability=data.get("capability"),
            result=data.get("result"),
            error=data.get("error"),
            rating=float(rating) if rating is not None else None,
        )


class TaskIdGenerator:
    """
    Millisecond-clock ids, strictly increasing within one process.

    Not globally unique across processes.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            now_ms = time.time_ns() // 1_000_000
            self._last = max(now_ms, self._last + 1)
            return str(self._last)
