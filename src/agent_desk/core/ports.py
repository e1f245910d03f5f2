# src/agent_desk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/LLM/search/tool providers swappable and makes testing easier.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(slots=True, frozen=True)
class CompletionResponse:
    """Either content or an error; a non-empty error means the call failed."""

    content: str = ""
    error: str | None = None


@dataclass(slots=True, frozen=True)
class SearchResult:
    title: str
    url: str
    content: str
    score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url, "content": self.content, "score": self.score}


@dataclass(slots=True, frozen=True)
class ScrapedPage:
    url: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "content": self.content}


@dataclass(slots=True, frozen=True)
class ToolCallResult:
    success: bool
    result: Any = None
    error: str | None = None


class KeyValueStore(Protocol):
    """Whole-value persistence: no partial updates, no transactions."""

    async def get(self, key: str) -> str | None: ...
    async def put(self, key: str, value: str) -> None: ...
    async def list_by_prefix(self, prefix: str) -> list[tuple[str, str]]: ...


class CompletionClient(Protocol):
    """Single request/response completion (no streaming, no retry)."""

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        credential: str | None = None,
        model: str | None = None,
    ) -> CompletionResponse: ...


class SearchClient(Protocol):
    async def search(self, query: str, config: dict[str, Any] | None = None) -> list[SearchResult]: ...
    async def retrieve(self, url: str, config: dict[str, Any] | None = None) -> str: ...
    async def batch_retrieve(
        self, urls: Sequence[str], config: dict[str, Any] | None = None
    ) -> list[ScrapedPage]: ...


class ToolSource(Protocol):
    """
    Source of externally registered tools.

    A real protocol client can replace the simulated one without touching the dispatcher.
    """

    async def list_tools(self) -> list[dict[str, Any]]: ...
    async def invoke(self, server_id: str, tool_name: str, args: Any) -> ToolCallResult: ...


class TaskRepo(Protocol):
    async def save(self, task: Any) -> None: ...
    async def list(self) -> list[Any]: ...
    async def get(self, task_id: str) -> Any | None: ...


class AgentRepo(Protocol):
    async def list(self) -> list[Any]: ...
    async def list_active(self) -> list[Any]: ...
    async def get(self, agent_id: str) -> Any | None: ...
