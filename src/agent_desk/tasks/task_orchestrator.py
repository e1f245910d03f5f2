# src/agent_desk/tasks/task_orchestrator.py

from __future__ import annotations

"""
Task orchestrator.

Owns the task lifecycle:
    pending -> running -> completed | error

initiate() validates and persists a pending task, spawns its execution on the
event loop and returns the id immediately. The execution writes status back to
the task store as it settles; observers see progress only by reading the store.

No retries, no cancellation, no timeouts: a hung collaborator call blocks only
its own task.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

from ..agents.models import Agent
from ..capabilities.dispatcher import CapabilityDispatcher
from ..core.ports import AgentRepo, CompletionClient, TaskRepo
from ..errors import AgentNotFoundError
from .task_models import Task, TaskIdGenerator, TaskStatus, TaskType

logger = logging.getLogger(__name__)

CAPABILITY_INSTRUCTION = "Please complete this task using your specialized capability."


def capability_task_prompt(capability: str, capability_input: Any) -> str:
    text = capability_input if isinstance(capability_input, str) else json.dumps(capability_input, ensure_ascii=False)
    return f"Use {capability} capability: {text}"


class TaskOrchestrator:
    def __init__(
        self,
        *,
        agents: AgentRepo,
        store: TaskRepo,
        dispatcher: CapabilityDispatcher,
        completion: CompletionClient,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._agents = agents
        self._store = store
        self._dispatcher = dispatcher
        self._completion = completion
        self._new_id = id_factory or TaskIdGenerator()
        # In-flight executions keyed by task id. Not persisted.
        self._running: dict[str, asyncio.Task[None]] = {}

    # ---- lifecycle ----

    async def initiate(
        self,
        agent_id: str,
        prompt: str,
        task_type: TaskType | str = TaskType.GENERAL,
        capability: str | None = None,
        capability_input: Any = None,
    ) -> str:
        """
        Create a pending task and start executing it in the background.

        Raises AgentNotFoundError / CapabilityNotFoundError before anything is
        persisted. Returns the task id without waiting for the execution.
        """
        task_type = TaskType(task_type)

        agent = await self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)

        if task_type == TaskType.CAPABILITY:
            if not capability:
                raise ValueError("capability is required for capability tasks")
            self._dispatcher.resolve(agent, capability)
            task_prompt = capability_task_prompt(capability, "" if capability_input is None else capability_input)
        else:
            if not prompt or not prompt.strip():
                raise ValueError("prompt is required")
            task_prompt = prompt

        task = Task(
            id=self._new_id(),
            agent_id=agent.id,
            prompt=task_prompt,
            capability=capability if task_type == TaskType.CAPABILITY else None,
            status=TaskStatus.PENDING,
        )
        await self._store.save(task)
        logger.info("Task %s created agent=%s type=%s capability=%s", task.id, agent.id, task_type.value, capability)

        handle = asyncio.create_task(
            self._execute(task, agent, task_type, capability_input),
            name=f"background-task-{task.id}",
        )
        self._running[task.id] = handle
        handle.add_done_callback(lambda _h, tid=task.id: self._running.pop(tid, None))
        return task.id

    async def _execute(self, task: Task, agent: Agent, task_type: TaskType, capability_input: Any) -> None:
        try:
            task.mark_running()
            await self._store.save(task)
            logger.info("Task %s -> running", task.id)

            if task_type == TaskType.CAPABILITY and task.capability:
                outcome = await self._dispatcher.execute(
                    agent,
                    task.capability,
                    "" if capability_input is None else capability_input,
                    CAPABILITY_INSTRUCTION,
                )
                if outcome.success:
                    task.mark_completed(json.dumps(outcome.result, indent=2, ensure_ascii=False, default=str))
                else:
                    task.mark_error(outcome.error or "Capability failed")
            else:
                full_prompt = f"{agent.prompt}\n\nTask: {task.prompt}"
                response = await self._completion.complete(
                    full_prompt,
                    credential=agent.api_key,
                    model=agent.model or None,
                )
                if response.error:
                    task.mark_error(response.error)
                else:
                    task.mark_completed(response.content)

        except Exception as e:
            logger.exception("Task %s execution failed", task.id)
            task.mark_error(str(e) or e.__class__.__name__)

        try:
            await self._store.save(task)
            logger.info("Task %s -> %s", task.id, task.status.value)
        except Exception:
            logger.exception("Failed to persist final state task_id=%s status=%s", task.id, task.status.value)

    # ---- in-flight registry ----

    def in_flight(self) -> list[str]:
        return sorted(self._running)

    async def wait(self, task_id: str) -> None:
        """Wait until the execution of task_id settles (no-op if it is not in flight)."""
        handle = self._running.get(task_id)
        if handle is not None:
            await asyncio.shield(handle)

    async def wait_all(self) -> None:
        handles = list(self._running.values())
        if handles:
            await asyncio.gather(*handles, return_exceptions=True)

    # ---- reads ----

    async def list_tasks(self, agent_id: str | None = None) -> list[Task]:
        tasks = await self._store.list()
        if agent_id is None:
            return tasks
        return [t for t in tasks if t.agent_id == agent_id]

    async def get_task(self, task_id: str) -> Task | None:
        return await self._store.get(task_id)

    async def active_agents(self) -> list[Agent]:
        return await self._agents.list_active()
