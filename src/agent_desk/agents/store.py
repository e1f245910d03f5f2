# src/agent_desk/agents/store.py

from __future__ import annotations

import logging

from ..core.ports import KeyValueStore
from ..storage.records import AGENTS_KEY, read_collection, upsert_in_collection
from .models import Agent

logger = logging.getLogger(__name__)


class AgentStore:
    """Agents as one whole collection under the agents key."""

    def __init__(self, kv: KeyValueStore, *, key: str = AGENTS_KEY) -> None:
        self._kv = kv
        self._key = key

    async def list(self) -> list[Agent]:
        return await read_collection(self._kv, self._key, Agent.from_dict)

    async def get(self, agent_id: str) -> Agent | None:
        for agent in await self.list():
            if agent.id == agent_id:
                return agent
        return None

    async def list_active(self) -> list[Agent]:
        return [a for a in await self.list() if a.is_active]

    async def save(self, agent: Agent) -> None:
        await upsert_in_collection(
            self._kv,
            self._key,
            agent,
            item_id=lambda a: a.id,
            decode=Agent.from_dict,
            encode=Agent.to_dict,
        )
        logger.info("Agent saved id=%s name=%s", agent.id, agent.name)
