# src/agent_desk/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..agents.store import AgentStore
from ..capabilities.dispatcher import CapabilityDispatcher
from ..learning.analytics import LearningAnalytics
from ..learning.messages import RatedMessageStore
from ..tasks.task_orchestrator import TaskOrchestrator
from ..tools.simulated import SimulatedToolSource
from .ports import CompletionClient, KeyValueStore, SearchClient, TaskRepo


@dataclass
class AppState:
    """
    Everything the front-end needs, built once in the composition root and passed around.

    There are no module-level singletons: tests build their own AppState.
    """

    settings: Any

    kv: KeyValueStore
    agents: AgentStore
    task_store: TaskRepo
    messages: RatedMessageStore
    tools: SimulatedToolSource

    completion: CompletionClient
    search: SearchClient | None

    dispatcher: CapabilityDispatcher
    orchestrator: TaskOrchestrator
    analytics: LearningAnalytics


def build_state(
    *,
    settings: Any,
    kv: KeyValueStore,
    task_store: TaskRepo,
    completion: CompletionClient,
    search: SearchClient | None,
) -> AppState:
    """Wire the task subsystem around the given collaborators."""
    agents = AgentStore(kv)
    messages = RatedMessageStore(kv)
    tools = SimulatedToolSource(kv)
    dispatcher = CapabilityDispatcher(completion, search, tools)
    orchestrator = TaskOrchestrator(
        agents=agents,
        store=task_store,
        dispatcher=dispatcher,
        completion=completion,
    )
    return AppState(
        settings=settings,
        kv=kv,
        agents=agents,
        task_store=task_store,
        messages=messages,
        tools=tools,
        completion=completion,
        search=search,
        dispatcher=dispatcher,
        orchestrator=orchestrator,
        analytics=LearningAnalytics(messages, task_store),
    )
