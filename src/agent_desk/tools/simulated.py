# src/agent_desk/tools/simulated.py

from __future__ import annotations

"""
Simulated tool source for externally registered tool servers.

This is a stub, not a protocol client: tool discovery is a static catalogue
keyed by naive substring matches on the server command/name, and invocation
returns canned payloads.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ..core.ports import KeyValueStore, ToolCallResult
from ..storage.records import TOOL_SERVERS_KEY, read_collection, upsert_in_collection, utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolServer:
    id: str
    name: str
    command: str
    args: list[str] = field(default_factory=list)
    status: str = "stopped"  # stopped | running | error

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "command": self.command,
            "args": list(self.args),
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolServer:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            command=str(data.get("command") or ""),
            args=[str(a) for a in (data.get("args") or [])],
            status=str(data.get("status") or "stopped"),
        )


def _schema(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required}


_FILESYSTEM_TOOLS = [
    {
        "name": "read_file",
        "description": "Read the contents of a file",
        "parameters": _schema({"path": {"type": "string", "description": "Path to the file to read"}}, ["path"]),
    },
    {
        "name": "write_file",
        "description": "Write content to a file",
        "parameters": _schema(
            {
                "path": {"type": "string", "description": "Path to the file to write"},
                "content": {"type": "string", "description": "Content to write to the file"},
            },
            ["path", "content"],
        ),
    },
    {
        "name": "list_directory",
        "description": "List contents of a directory",
        "parameters": _schema({"path": {"type": "string", "description": "Path to the directory to list"}}, ["path"]),
    },
]

_SEARCH_TOOLS = [
    {
        "name": "brave_search",
        "description": "Search the web using Brave Search",
        "parameters": _schema(
            {
                "query": {"type": "string", "description": "Search query"},
                "count": {"type": "number", "description": "Number of results to return", "default": 10},
            },
            ["query"],
        ),
    },
]

_GITHUB_TOOLS = [
    {
        "name": "search_repositories",
        "description": "Search GitHub repositories",
        "parameters": _schema(
            {
                "query": {"type": "string", "description": "Search query"},
                "language": {"type": "string", "description": "Programming language filter"},
            },
            ["query"],
        ),
    },
    {
        "name": "get_repository_info",
        "description": "Get information about a GitHub repository",
        "parameters": _schema(
            {
                "owner": {"type": "string", "description": "Repository owner"},
                "repo": {"type": "string", "description": "Repository name"},
            },
            ["owner", "repo"],
        ),
    },
]

_GENERIC_TOOLS = [
    {
        "name": "generic_tool",
        "description": "A generic tool provided by this server",
        "parameters": _schema({"input": {"type": "string", "description": "Input for the tool"}}, ["input"]),
    },
]


def server_tools(server: ToolServer) -> list[dict[str, Any]]:
    """Static tool catalogue for a server, matched on command/name substrings."""
    if "filesystem" in server.command or "filesystem" in server.name:
        catalogue = _FILESYSTEM_TOOLS
    elif "brave" in server.command or "search" in server.name:
        catalogue = _SEARCH_TOOLS
    elif "github" in server.command or "github" in server.name:
        catalogue = _GITHUB_TOOLS
    else:
        catalogue = _GENERIC_TOOLS
    return [dict(t) for t in catalogue]


def _simulate(tool_name: str, args: dict[str, Any]) -> Any:
    if tool_name == "read_file":
        return {"content": f"Simulated file content from {args.get('path')}", "path": args.get("path"), "size": 1024}
    if tool_name == "write_file":
        return {"success": True, "path": args.get("path"), "bytesWritten": len(str(args.get("content", "")))}
    if tool_name == "list_directory":
        return {
            "path": args.get("path"),
            "files": [
                {"name": "file1.txt", "type": "file", "size": 1024},
                {"name": "file2.js", "type": "file", "size": 2048},
                {"name": "subdirectory", "type": "directory"},
            ],
        }
    if tool_name == "brave_search":
        query = args.get("query")
        return {
            "query": query,
            "results": [
                {
                    "title": f'Search result for "{query}"',
                    "url": "https://example.com/result1",
                    "snippet": "This is a simulated search result snippet...",
                },
                {
                    "title": f'Another result for "{query}"',
                    "url": "https://example.com/result2",
                    "snippet": "This is another simulated search result...",
                },
            ],
        }
    if tool_name == "search_repositories":
        return {
            "query": args.get("query"),
            "repositories": [
                {
                    "name": "example-repo",
                    "owner": "example-user",
                    "description": f"Repository related to {args.get('query')}",
                    "stars": 1234,
                    "language": args.get("language") or "Python",
                }
            ],
        }
    if tool_name == "get_repository_info":
        return {
            "name": args.get("repo"),
            "owner": args.get("owner"),
            "description": "A simulated repository",
            "stars": 5678,
            "forks": 123,
            "language": "Python",
            "created_at": "2023-01-01T00:00:00Z",
        }
    return {
        "toolName": tool_name,
        "args": args,
        "result": "Simulated tool execution completed",
        "timestamp": utc_now().isoformat(),
    }


class SimulatedToolSource:
    """ToolSource backed by server records in the key-value store."""

    def __init__(self, kv: KeyValueStore, *, key: str = TOOL_SERVERS_KEY) -> None:
        self._kv = kv
        self._key = key

    async def list_servers(self) -> list[ToolServer]:
        return await read_collection(self._kv, self._key, ToolServer.from_dict)

    async def save_server(self, server: ToolServer) -> None:
        await upsert_in_collection(
            self._kv,
            self._key,
            server,
            item_id=lambda s: s.id,
            decode=ToolServer.from_dict,
            encode=ToolServer.to_dict,
        )
        logger.info("Tool server saved id=%s status=%s", server.id, server.status)

    async def list_tools(self) -> list[dict[str, Any]]:
        tools: list[dict[str, Any]] = []
        for server in await self.list_servers():
            if server.status != "running":
                continue
            for tool in server_tools(server):
                tools.append({**tool, "serverId": server.id, "serverName": server.name})
        return tools

    async def invoke(self, server_id: str, tool_name: str, args: Any) -> ToolCallResult:
        servers = await self.list_servers()
        if not servers:
            return ToolCallResult(success=False, error="No tool servers configured")

        server = next((s for s in servers if s.id == server_id), None)
        if server is None:
            return ToolCallResult(success=False, error=f"Server {server_id} not found")
        if server.status != "running":
            return ToolCallResult(success=False, error=f"Server {server.name} is not running")

        await asyncio.sleep(0)
        payload = args if isinstance(args, dict) else {"input": args}
        logger.debug("Simulated tool call server=%s tool=%s", server_id, tool_name)
        return ToolCallResult(success=True, result=_simulate(tool_name, payload))
