# tests/test_simulated_tools.py

from __future__ import annotations

import pytest

from agent_desk.capabilities.catalog import BUILTIN_CAPABILITY_IDS, all_available_capabilities
from agent_desk.storage.kv_store import InMemoryKeyValueStore
from agent_desk.tools.simulated import SimulatedToolSource, ToolServer, server_tools


@pytest.mark.parametrize(
    ("name", "command", "expected"),
    [
        ("files", "npx @scope/server-filesystem /tmp", {"read_file", "write_file", "list_directory"}),
        ("web", "npx server-brave", {"brave_search"}),
        ("web-search", "node index.js", {"brave_search"}),
        ("gh", "npx server-github", {"search_repositories", "get_repository_info"}),
        ("misc", "./run.sh", {"generic_tool"}),
    ],
)
def test_catalogue_is_chosen_by_substring(name: str, command: str, expected: set[str]) -> None:
    tools = server_tools(ToolServer(id="s", name=name, command=command))
    assert {t["name"] for t in tools} == expected


@pytest.mark.asyncio
async def test_only_running_servers_contribute_tools() -> None:
    source = SimulatedToolSource(InMemoryKeyValueStore())
    await source.save_server(ToolServer(id="gh", name="github", command="npx server-github", status="running"))
    await source.save_server(ToolServer(id="fs", name="files", command="server-filesystem", status="stopped"))

    tools = await source.list_tools()
    assert {(t["serverId"], t["name"]) for t in tools} == {("gh", "search_repositories"), ("gh", "get_repository_info")}

    caps = await all_available_capabilities(source)
    ids = [c.id for c in caps]
    assert ids[: len(BUILTIN_CAPABILITY_IDS)] == list(BUILTIN_CAPABILITY_IDS)
    assert "mcp_gh_search_repositories" in ids
    assert all(not c.enabled for c in caps)


@pytest.mark.asyncio
async def test_invoke_reports_configuration_problems() -> None:
    source = SimulatedToolSource(InMemoryKeyValueStore())

    empty = await source.invoke("gh", "search_repositories", {"query": "x"})
    assert (empty.success, empty.error) == (False, "No tool servers configured")

    await source.save_server(ToolServer(id="gh", name="github", command="npx server-github", status="running"))
    missing = await source.invoke("nope", "search_repositories", {})
    assert missing.error == "Server nope not found"

    ok = await source.invoke("gh", "search_repositories", {"query": "asyncio"})
    assert ok.success is True
    assert ok.result["repositories"][0]["description"] == "Repository related to asyncio"


@pytest.mark.asyncio
async def test_non_mapping_args_are_wrapped() -> None:
    source = SimulatedToolSource(InMemoryKeyValueStore())
    await source.save_server(ToolServer(id="x", name="misc", command="./run.sh", status="running"))

    res = await source.invoke("x", "generic_tool", "hello")
    assert res.success is True
    assert res.result["args"] == {"input": "hello"}


class _BrokenToolSource:
    async def list_tools(self):
        raise RuntimeError("discovery down")

    async def invoke(self, server_id, tool_name, args):
        raise AssertionError("not called")


@pytest.mark.asyncio
async def test_discovery_failure_falls_back_to_builtins() -> None:
    caps = await all_available_capabilities(_BrokenToolSource())
    assert [c.id for c in caps] == list(BUILTIN_CAPABILITY_IDS)
