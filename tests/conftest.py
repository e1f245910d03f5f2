# tests/conftest.py

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from agent_desk.agents.models import Agent
from agent_desk.capabilities.catalog import builtin_capability
from agent_desk.core.state import AppState, build_state
from agent_desk.storage.kv_store import InMemoryKeyValueStore
from agent_desk.storage.records import AGENTS_KEY
from agent_desk.tasks.task_store import CollectionTaskStore

from .fakes import FakeCompletionClient, FakeSearchClient


def make_agent(agent_id: str = "a1", *, enabled: tuple[str, ...] = (), disabled: tuple[str, ...] = ()) -> Agent:
    caps = [builtin_capability(c, enabled=True) for c in enabled]
    caps += [builtin_capability(c, enabled=False) for c in disabled]
    return Agent(
        id=agent_id,
        name=f"Agent {agent_id}",
        prompt="You are a careful assistant.",
        model="test/model",
        api_key="sk-agent",
        capabilities=caps,
    )


def seeded_kv(*agents: Agent) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore({AGENTS_KEY: json.dumps([a.to_dict() for a in agents])})


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than reading the environment,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="agent-desk-test",
        data_dir=tmp_path,
        kv_db_path=tmp_path / "store.sqlite3",
        llm_models=["test/model"],
        task_store_layout="collection",
        monitor_interval_seconds=0.01,
    )


@pytest.fixture()
def completion() -> FakeCompletionClient:
    return FakeCompletionClient(next_text="done")


@pytest.fixture()
def search() -> FakeSearchClient:
    return FakeSearchClient()


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return seeded_kv(make_agent("a1", enabled=("code_generation", "batch_processing"), disabled=("web_search",)))


@pytest.fixture()
def state(settings: SimpleNamespace, kv, completion, search) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: stores are real (over an in-memory KV) because their behaviour is part
    of what we want to test.
    """
    return build_state(
        settings=settings,
        kv=kv,
        task_store=CollectionTaskStore(kv),
        completion=completion,
        search=search,
    )
