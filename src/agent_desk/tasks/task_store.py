# src/agent_desk/tasks/task_store.py

from __future__ import annotations

import json
import logging

from ..core.ports import KeyValueStore
from ..errors import PersistenceReadError
from ..storage.records import TASKS_KEY, read_collection, upsert_in_collection
from .task_models import Task

logger = logging.getLogger(__name__)


class CollectionTaskStore:
    """
    All tasks live in one JSON array under a single key.

    save() is a whole-collection read-modify-write with no locking, so two
    overlapping saves can silently drop one of the updates (last writer wins).
    """

    def __init__(self, kv: KeyValueStore, *, key: str = TASKS_KEY) -> None:
        self._kv = kv
        self._key = key

    async def save(self, task: Task) -> None:
        await upsert_in_collection(
            self._kv,
            self._key,
            task,
            item_id=lambda t: t.id,
            decode=Task.from_dict,
            encode=Task.to_dict,
        )
        logger.debug("Task saved id=%s status=%s", task.id, task.status.value)

    async def list(self) -> list[Task]:
        return await read_collection(self._kv, self._key, Task.from_dict)

    async def get(self, task_id: str) -> Task | None:
        for task in await self.list():
            if task.id == task_id:
                return task
        return None


class PerRecordTaskStore:
    """
    One key per task (`background-tasks/<id>`), listed by prefix.

    Each save is a single put of one record, so concurrent writers for
    different tasks never overwrite each other.
    """

    def __init__(self, kv: KeyValueStore, *, prefix: str = TASKS_KEY + "/") -> None:
        self._kv = kv
        self._prefix = prefix

    def _key(self, task_id: str) -> str:
        return f"{self._prefix}{task_id}"

    @staticmethod
    def _decode(key: str, raw: str) -> Task | None:
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise PersistenceReadError("task record is not an object")
            return Task.from_dict(data)
        except (PersistenceReadError, KeyError, TypeError, ValueError):
            logger.exception("Skipping malformed task record key=%s", key)
            return None

    async def save(self, task: Task) -> None:
        await self._kv.put(self._key(task.id), json.dumps(task.to_dict(), ensure_ascii=False))
        logger.debug("Task saved id=%s status=%s", task.id, task.status.value)

    async def list(self) -> list[Task]:
        rows = await self._kv.list_by_prefix(self._prefix)
        tasks = [t for t in (self._decode(k, v) for k, v in rows) if t is not None]
        tasks.sort(key=lambda t: (t.timestamp, t.id))
        return tasks

    async def get(self, task_id: str) -> Task | None:
        raw = await self._kv.get(self._key(task_id))
        if raw is None:
            return None
        return self._decode(self._key(task_id), raw)


def build_task_store(kv: KeyValueStore, layout: str = "collection") -> CollectionTaskStore | PerRecordTaskStore:
    if layout == "per_record":
        return PerRecordTaskStore(kv)
    if layout != "collection":
        raise ValueError(f"unknown task store layout: {layout!r}")
    return CollectionTaskStore(kv)
