# tests/test_task_orchestrator.py

from __future__ import annotations

import asyncio
import json

import pytest

from agent_desk.agents.store import AgentStore
from agent_desk.capabilities.dispatcher import CapabilityDispatcher
from agent_desk.core.state import AppState
from agent_desk.errors import AgentNotFoundError, CapabilityNotFoundError, TaskNotFoundError
from agent_desk.storage.records import TASKS_KEY
from agent_desk.tasks.task_api import rate_task
from agent_desk.tasks.task_models import TaskIdGenerator, TaskStatus, TaskType
from agent_desk.tasks.task_orchestrator import TaskOrchestrator
from agent_desk.tasks.task_store import CollectionTaskStore, PerRecordTaskStore

from .conftest import make_agent, seeded_kv
from .fakes import FakeCompletionClient


async def _until(predicate, *, spins: int = 200) -> None:
    for _ in range(spins):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def _orchestrator(kv, store, completion) -> TaskOrchestrator:
    return TaskOrchestrator(
        agents=AgentStore(kv),
        store=store,
        dispatcher=CapabilityDispatcher(completion),
        completion=completion,
    )


@pytest.mark.asyncio
async def test_initiate_returns_before_execution_settles() -> None:
    gate = asyncio.Event()
    completion = FakeCompletionClient("answer", gate=gate)
    kv = seeded_kv(make_agent("a1"))
    store = CollectionTaskStore(kv)
    orchestrator = _orchestrator(kv, store, completion)

    task_id = await orchestrator.initiate("a1", "summarize the news")

    task = await store.get(task_id)
    assert task is not None
    assert not task.status.is_terminal
    assert task.result is None and task.error is None
    assert orchestrator.in_flight() == [task_id]

    await _until(lambda: len(completion.calls) == 1)
    gate.set()
    await orchestrator.wait(task_id)

    task = await store.get(task_id)
    assert task is not None
    assert task.status == TaskStatus.COMPLETED
    assert task.result == "answer"
    assert task.error is None
    assert orchestrator.in_flight() == []


@pytest.mark.asyncio
async def test_general_task_prompt_embeds_agent_prompt(state: AppState, completion: FakeCompletionClient) -> None:
    task_id = await state.orchestrator.initiate("a1", "write a haiku")
    await state.orchestrator.wait(task_id)

    assert len(completion.calls) == 1
    call = completion.calls[0]
    assert call.prompt == "You are a careful assistant.\n\nTask: write a haiku"
    assert call.system_prompt is None
    assert call.credential == "sk-agent"
    assert call.model == "test/model"

    task = await state.orchestrator.get_task(task_id)
    assert task is not None
    assert task.prompt == "write a haiku"
    assert task.capability is None


@pytest.mark.asyncio
async def test_completion_error_marks_task_as_error(state: AppState, completion: FakeCompletionClient) -> None:
    completion.error = "All LLM models failed."

    task_id = await state.orchestrator.initiate("a1", "anything")
    await state.orchestrator.wait(task_id)

    task = await state.task_store.get(task_id)
    assert task is not None
    assert task.status == TaskStatus.ERROR
    assert task.error == "All LLM models failed."
    assert task.result is None


@pytest.mark.asyncio
async def test_collaborator_exception_marks_task_as_error(state: AppState, completion: FakeCompletionClient) -> None:
    completion.raises = RuntimeError("socket closed")

    task_id = await state.orchestrator.initiate("a1", "anything")
    await state.orchestrator.wait(task_id)

    task = await state.task_store.get(task_id)
    assert task is not None
    assert task.status == TaskStatus.ERROR
    assert task.error == "socket closed"


@pytest.mark.asyncio
async def test_unknown_agent_persists_nothing(state: AppState) -> None:
    with pytest.raises(AgentNotFoundError, match="Agent with ID ghost not found"):
        await state.orchestrator.initiate("ghost", "hello")

    assert await state.kv.get(TASKS_KEY) is None
    assert state.orchestrator.in_flight() == []


@pytest.mark.asyncio
async def test_disabled_or_missing_capability_is_rejected_up_front(state: AppState) -> None:
    with pytest.raises(CapabilityNotFoundError, match="web_search not found or not enabled"):
        await state.orchestrator.initiate("a1", "", TaskType.CAPABILITY, capability="web_search", capability_input="q")

    with pytest.raises(CapabilityNotFoundError):
        await state.orchestrator.initiate("a1", "", TaskType.CAPABILITY, capability="research", capability_input="q")

    assert await state.task_store.list() == []


@pytest.mark.asyncio
async def test_empty_prompt_is_rejected(state: AppState) -> None:
    with pytest.raises(ValueError):
        await state.orchestrator.initiate("a1", "   ")
    assert await state.task_store.list() == []


@pytest.mark.asyncio
async def test_capability_task_stores_serialized_result(state: AppState, completion: FakeCompletionClient) -> None:
    completion.next_text = "print('hi')"

    task_id = await state.orchestrator.initiate(
        "a1", "", "capability", capability="code_generation", capability_input="a greeting script"
    )
    await state.orchestrator.wait(task_id)

    task = await state.task_store.get(task_id)
    assert task is not None
    assert task.prompt == "Use code_generation capability: a greeting script"
    assert task.capability == "code_generation"
    assert task.status == TaskStatus.COMPLETED

    result = json.loads(task.result or "")
    assert result["code"] == "print('hi')"
    assert result["requirements"] == "a greeting script"
    assert "Please complete this task using your specialized capability." in completion.calls[0].prompt


@pytest.mark.asyncio
async def test_many_tasks_all_settle_with_result_xor_error() -> None:
    completion = FakeCompletionClient("ok")
    kv = seeded_kv(make_agent("a1"))
    store = PerRecordTaskStore(kv)
    orchestrator = _orchestrator(kv, store, completion)

    ids = [await orchestrator.initiate("a1", f"job {i}") for i in range(10)]
    await orchestrator.wait_all()

    assert len(set(ids)) == 10
    tasks = await store.list()
    assert len(tasks) == 10
    for task in tasks:
        assert task.status.is_terminal
        assert (task.result is None) != (task.error is None)


@pytest.mark.asyncio
async def test_collection_layout_loses_one_concurrent_update() -> None:
    """Two executions settling together: both final writes start from the same snapshot."""
    gate = asyncio.Event()
    completion = FakeCompletionClient("ok", gate=gate)
    kv = seeded_kv(make_agent("a1"))
    store = CollectionTaskStore(kv)
    orchestrator = _orchestrator(kv, store, completion)

    first = await orchestrator.initiate("a1", "one")
    second = await orchestrator.initiate("a1", "two")
    await _until(lambda: len(completion.calls) == 2)

    gate.set()
    await orchestrator.wait_all()

    tasks = {t.id: t for t in await store.list()}
    assert set(tasks) == {first, second}
    settled = [t for t in tasks.values() if t.status == TaskStatus.COMPLETED]
    assert len(settled) == 1


@pytest.mark.asyncio
async def test_per_record_layout_keeps_both_concurrent_updates() -> None:
    gate = asyncio.Event()
    completion = FakeCompletionClient("ok", gate=gate)
    kv = seeded_kv(make_agent("a1"))
    store = PerRecordTaskStore(kv)
    orchestrator = _orchestrator(kv, store, completion)

    first = await orchestrator.initiate("a1", "one")
    second = await orchestrator.initiate("a1", "two")
    await _until(lambda: len(completion.calls) == 2)

    gate.set()
    await orchestrator.wait_all()

    tasks = {t.id: t for t in await store.list()}
    assert set(tasks) == {first, second}
    assert all(t.status == TaskStatus.COMPLETED for t in tasks.values())


@pytest.mark.asyncio
async def test_rate_task_only_accepts_completed_tasks(state: AppState, completion: FakeCompletionClient) -> None:
    done = await state.orchestrator.initiate("a1", "works")
    await state.orchestrator.wait(done)

    completion.error = "nope"
    failed = await state.orchestrator.initiate("a1", "fails")
    await state.orchestrator.wait(failed)

    rated = await rate_task(state.task_store, done, 4.5)
    assert rated.rating == 4.5
    stored = await state.task_store.get(done)
    assert stored is not None and stored.rating == 4.5

    with pytest.raises(ValueError):
        await rate_task(state.task_store, failed, 3)
    with pytest.raises(ValueError):
        await rate_task(state.task_store, done, 4.2)
    with pytest.raises(TaskNotFoundError):
        await rate_task(state.task_store, "missing", 3)


def test_id_generator_is_strictly_increasing() -> None:
    new_id = TaskIdGenerator()
    ids = [int(new_id()) for _ in range(50)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 50
