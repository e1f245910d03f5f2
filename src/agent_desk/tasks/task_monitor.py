# src/agent_desk/tasks/task_monitor.py

from __future__ import annotations

"""
Task monitor.

A small read-only polling loop that:
- lists all tasks from the store,
- compares each status with the previous poll,
- reports new tasks and transitions through an injected callback.

It never writes to the store. To stop the monitor, cancel the coroutine/task.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from ..core.ports import TaskRepo
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

OnChange = Callable[[Task, TaskStatus | None], Awaitable[None] | None]


def diff_statuses(
    previous: dict[str, TaskStatus], tasks: list[Task]
) -> list[tuple[Task, TaskStatus | None]]:
    """Tasks that are new (previous status None) or whose status changed."""
    changes: list[tuple[Task, TaskStatus | None]] = []
    for task in tasks:
        before = previous.get(task.id)
        if before != task.status:
            changes.append((task, before))
    return changes


async def run_task_monitor(
    task_store: TaskRepo,
    on_change: OnChange,
    *,
    interval_seconds: float = 5.0,
    report_existing: bool = False,
) -> None:
    """
    Every interval_seconds:
    - read all tasks
    - call on_change(task, previous_status) for every new task or status transition

    With report_existing=False the first poll only records a baseline.
    A failed poll is logged and the loop keeps going.
    """
    sleep_s = max(0.01, float(interval_seconds))
    seen: dict[str, TaskStatus] = {}
    first = True

    while True:
        try:
            tasks = await task_store.list()
        except Exception:
            logger.exception("task monitor poll failed")
            tasks = None

        if tasks is not None:
            changes = diff_statuses(seen, tasks)
            seen = {t.id: t.status for t in tasks}

            if not first or report_existing:
                for task, before in changes:
                    try:
                        ret = on_change(task, before)
                        if inspect.isawaitable(ret):
                            await ret
                    except Exception:
                        logger.exception("task monitor callback failed task_id=%s", task.id)
            first = False

        await asyncio.sleep(sleep_s)
