# tests/test_task_store.py

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

import pytest

from agent_desk.storage.kv_store import InMemoryKeyValueStore, SqliteKeyValueStore
from agent_desk.storage.records import TASKS_KEY
from agent_desk.tasks.task_models import Task, TaskStatus
from agent_desk.tasks.task_store import CollectionTaskStore, PerRecordTaskStore, build_task_store


def _task(task_id: str, status: TaskStatus = TaskStatus.PENDING, **kw) -> Task:
    return Task(
        id=task_id,
        agent_id="a1",
        prompt=f"prompt {task_id}",
        status=status,
        timestamp=kw.pop("timestamp", datetime(2024, 5, 1, 12, 0, tzinfo=UTC)),
        **kw,
    )


@pytest.mark.asyncio
async def test_collection_save_replaces_by_id_and_rehydrates_timestamp() -> None:
    kv = InMemoryKeyValueStore()
    store = CollectionTaskStore(kv)

    await store.save(_task("1"))
    await store.save(_task("2"))
    await store.save(_task("1", TaskStatus.COMPLETED, result="hello"))

    tasks = await store.list()
    assert [t.id for t in tasks] == ["1", "2"]

    first = await store.get("1")
    assert first is not None
    assert first.status == TaskStatus.COMPLETED
    assert first.result == "hello"
    assert first.error is None
    assert isinstance(first.timestamp, datetime)
    assert first.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    stored = json.loads(await kv.get(TASKS_KEY))
    assert stored[0]["agentId"] == "a1"
    assert "error" not in stored[0]


@pytest.mark.asyncio
async def test_collection_get_missing_returns_none() -> None:
    store = CollectionTaskStore(InMemoryKeyValueStore())
    assert await store.get("nope") is None
    assert await store.list() == []


@pytest.mark.asyncio
async def test_malformed_collection_reads_as_empty_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    kv = InMemoryKeyValueStore({TASKS_KEY: "{not json"})
    store = CollectionTaskStore(kv)

    with caplog.at_level(logging.ERROR, logger="agent_desk.storage.records"):
        assert await store.list() == []

    assert any("treating as empty" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_unparsable_timestamp_fails_the_whole_read() -> None:
    good = _task("1").to_dict()
    bad = {**_task("2").to_dict(), "timestamp": "yesterday-ish"}
    kv = InMemoryKeyValueStore({TASKS_KEY: json.dumps([good, bad])})

    assert await CollectionTaskStore(kv).list() == []


@pytest.mark.asyncio
async def test_epoch_timestamps_are_accepted() -> None:
    raw = {**_task("1").to_dict(), "timestamp": 1714564800}
    kv = InMemoryKeyValueStore({TASKS_KEY: json.dumps([raw])})

    tasks = await CollectionTaskStore(kv).list()
    assert len(tasks) == 1
    assert tasks[0].timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_per_record_layout_lists_in_timestamp_order_and_skips_bad_records() -> None:
    kv = InMemoryKeyValueStore()
    store = PerRecordTaskStore(kv)

    await store.save(_task("2", timestamp=datetime(2024, 5, 2, tzinfo=UTC)))
    await store.save(_task("1", timestamp=datetime(2024, 5, 1, tzinfo=UTC)))
    await kv.put(f"{TASKS_KEY}/broken", "[]")

    tasks = await store.list()
    assert [t.id for t in tasks] == ["1", "2"]

    await store.save(_task("1", TaskStatus.ERROR, error="boom", timestamp=datetime(2024, 5, 1, tzinfo=UTC)))
    updated = await store.get("1")
    assert updated is not None
    assert updated.status == TaskStatus.ERROR
    assert await store.get("broken") is None


def test_build_task_store_rejects_unknown_layout() -> None:
    kv = InMemoryKeyValueStore()
    assert isinstance(build_task_store(kv, "collection"), CollectionTaskStore)
    assert isinstance(build_task_store(kv, "per_record"), PerRecordTaskStore)
    with pytest.raises(ValueError):
        build_task_store(kv, "sharded")


@pytest.mark.asyncio
async def test_sqlite_store_round_trips_tasks(tmp_path: Path) -> None:
    kv = SqliteKeyValueStore(tmp_path / "kv.sqlite3")
    store = CollectionTaskStore(kv)

    await store.save(_task("1"))
    await store.save(_task("1", TaskStatus.COMPLETED, result="ok"))

    reopened = CollectionTaskStore(SqliteKeyValueStore(tmp_path / "kv.sqlite3"))
    tasks = await reopened.list()
    assert len(tasks) == 1
    assert tasks[0].status == TaskStatus.COMPLETED
    # connections are per call, nothing is left open to close
    assert not hasattr(kv, "close")


@pytest.mark.asyncio
async def test_sqlite_prefix_listing_treats_wildcards_literally(tmp_path: Path) -> None:
    kv = SqliteKeyValueStore(tmp_path / "kv.sqlite3")
    await kv.put("a_1", "x")
    await kv.put("ab1", "y")
    await kv.put("a_2", "z")

    rows = await kv.list_by_prefix("a_")
    assert rows == [("a_1", "x"), ("a_2", "z")]
