# src/agent_desk/learning/messages.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.ports import KeyValueStore
from ..storage.records import (
    RATED_MESSAGES_KEY,
    format_timestamp,
    parse_timestamp,
    read_collection,
    upsert_in_collection,
    utc_now,
)
from ..tasks.task_models import validate_rating


@dataclass(slots=True)
class RatedMessage:
    id: str
    content: str
    role: str
    rating: float | None = None
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "role": self.role,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.rating is not None:
            data["rating"] = self.rating
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RatedMessage:
        rating = data.get("rating")
        return cls(
            id=str(data["id"]),
            content=str(data.get("content") or ""),
            role=str(data.get("role") or "assistant"),
            rating=float(rating) if rating is not None else None,
            timestamp=parse_timestamp(data["timestamp"]),
        )


class RatedMessageStore:
    """
    Chat messages that carry a user rating, kept for learning analytics.

    Nothing in this package writes them: the chat front-end that shares the
    key-value store saves a record when the user rates a reply. `save` is the
    write path it (and the tests) use.
    """

    def __init__(self, kv: KeyValueStore, *, key: str = RATED_MESSAGES_KEY) -> None:
        self._kv = kv
        self._key = key

    async def list(self) -> list[RatedMessage]:
        messages = await read_collection(self._kv, self._key, RatedMessage.from_dict)
        return [m for m in messages if m.rating is not None]

    async def save(self, message: RatedMessage) -> None:
        if message.rating is not None:
            validate_rating(message.rating)
        await upsert_in_collection(
            self._kv,
            self._key,
            message,
            item_id=lambda m: m.id,
            decode=RatedMessage.from_dict,
            encode=RatedMessage.to_dict,
        )
