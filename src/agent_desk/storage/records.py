# src/agent_desk/storage/records.py

from __future__ import annotations

"""
Helpers for whole-collection records kept under a single key.

Every write is "read full collection, mutate, write full collection".
There is no locking: concurrent writers can lose each other's updates.
"""

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from ..core.ports import KeyValueStore
from ..errors import PersistenceReadError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TASKS_KEY = "background-tasks"
AGENTS_KEY = "agents"
RATED_MESSAGES_KEY = "rated-messages"
TOOL_SERVERS_KEY = "tool-servers"


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_timestamp(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC).isoformat()


def parse_timestamp(raw: Any) -> datetime:
    """
    Best-effort coercion of a stored timestamp.

    Accepts ISO-8601 strings and epoch seconds. Anything else raises
    PersistenceReadError (which fails the whole collection read).
    """
    if isinstance(raw, bool):
        raise PersistenceReadError(f"invalid timestamp: {raw!r}")
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(float(raw), tz=UTC)
    if isinstance(raw, str):
        try:
            ts = datetime.fromisoformat(raw.strip())
        except ValueError as e:
            raise PersistenceReadError(f"invalid timestamp: {raw!r}") from e
        return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)
    raise PersistenceReadError(f"invalid timestamp: {raw!r}")


def decode_collection(raw: str | None, decode: Callable[[dict[str, Any]], T]) -> list[T]:
    """Decode a JSON array of objects. Raises PersistenceReadError on any malformed entry."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise PersistenceReadError("collection is not valid JSON") from e
    if not isinstance(data, list):
        raise PersistenceReadError("collection is not a JSON array")

    out: list[T] = []
    for item in data:
        if not isinstance(item, dict):
            raise PersistenceReadError("collection entry is not an object")
        try:
            out.append(decode(item))
        except PersistenceReadError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceReadError(f"malformed entry: {e}") from e
    return out


async def read_collection(
    kv: KeyValueStore, key: str, decode: Callable[[dict[str, Any]], T]
) -> list[T]:
    """
    Read a whole collection.

    Malformed data degrades to an empty collection: callers must tolerate an
    empty store at any time. The failure is logged, not raised.
    """
    raw = await kv.get(key)
    try:
        return decode_collection(raw, decode)
    except PersistenceReadError:
        logger.exception("Failed to read collection key=%s; treating as empty", key)
        return []


async def write_collection(
    kv: KeyValueStore, key: str, items: list[T], encode: Callable[[T], dict[str, Any]]
) -> None:
    payload = json.dumps([encode(i) for i in items], ensure_ascii=False)
    await kv.put(key, payload)


async def upsert_in_collection(
    kv: KeyValueStore,
    key: str,
    item: T,
    *,
    item_id: Callable[[T], str],
    decode: Callable[[dict[str, Any]], T],
    encode: Callable[[T], dict[str, Any]],
) -> None:
    """Replace the entry with the same id, or append it."""
    items = await read_collection(kv, key, decode)
    target = item_id(item)
    for idx, existing in enumerate(items):
        if item_id(existing) == target:
            items[idx] = item
            break
    else:
        items.append(item)
    await write_collection(kv, key, items, encode)
