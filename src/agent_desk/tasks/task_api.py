# src/agent_desk/tasks/task_api.py

from __future__ import annotations

import logging

from ..core.ports import TaskRepo
from ..errors import TaskNotFoundError
from .task_models import Task, TaskStatus, validate_rating

logger = logging.getLogger(__name__)


async def rate_task(store: TaskRepo, task_id: str, rating: float) -> Task:
    """
    Attach a user rating to a completed task.

    Ratings are only meaningful on completed tasks; anything else is rejected.
    """
    value = validate_rating(rating)
    task = await store.get(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    if task.status != TaskStatus.COMPLETED:
        raise ValueError(f"Task {task_id} is {task.status.value}; only completed tasks can be rated")

    task.rating = value
    await store.save(task)
    logger.info("Task %s rated %.1f", task_id, value)
    return task


def format_task_line(task: Task) -> str:
    stamp = task.timestamp.strftime("%Y-%m-%d %H:%M:%S")
    cap = f" [{task.capability}]" if task.capability else ""
    rating = f" rating={task.rating:g}" if task.rating is not None else ""
    prompt = task.prompt if len(task.prompt) <= 60 else task.prompt[:57] + "..."
    return f"{task.id} {stamp} {task.status.value:<9} agent={task.agent_id}{cap}{rating} :: {prompt}"
