# src/agent_desk/capabilities/dispatcher.py

from __future__ import annotations

"""
Capability dispatcher.

Routes a capability invocation to its handler. Each built-in handler composes a
capability-specific prompt (agent prompt + caller instruction + raw input +
rendered config) and forwards it to the completion collaborator. Externally
registered tools go through the tool source, optionally followed by a second
completion that analyses the tool output.

No local state is mutated; collaborator failures come back as
CapabilityResult(success=False, error=...).
"""

import json
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..agents.models import Agent, AgentCapability
from ..core.ports import CompletionClient, CompletionResponse, SearchClient, ToolSource
from ..errors import CapabilityNotFoundError, CollaboratorError
from . import catalog, prompts

logger = logging.getLogger(__name__)

RESEARCH_MAX_RESULTS = 15


@dataclass(slots=True, frozen=True)
class CapabilityResult:
    success: bool
    result: Any = None
    error: str | None = None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _as_url_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [p for p in re.split(r"[\s,]+", _as_text(value)) if p]


def _as_items(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [line.strip() for line in _as_text(value).splitlines() if line.strip()]


def _as_tool_args(value: Any) -> Any:
    if isinstance(value, dict):
        return value
    text = _as_text(value).strip()
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
    return {"input": text}


Handler = Callable[[Agent, AgentCapability, Any, str | None], Awaitable[CapabilityResult]]


class CapabilityDispatcher:
    def __init__(
        self,
        completion: CompletionClient,
        search: SearchClient | None = None,
        tools: ToolSource | None = None,
    ) -> None:
        self._completion = completion
        self._search = search
        self._tools = tools
        self._handlers: dict[str, Handler] = {
            catalog.WEB_SEARCH: self._web_search,
            catalog.WEB_SCRAPING: self._web_scraping,
            catalog.HTML_GENERATION: self._html_generation,
            catalog.CODE_GENERATION: self._code_generation,
            catalog.DATA_ANALYSIS: self._data_analysis,
            catalog.CONTENT_CREATION: self._content_creation,
            catalog.RESEARCH: self._research,
            catalog.BATCH_PROCESSING: self._batch_processing,
        }

    @staticmethod
    def resolve(agent: Agent, capability_id: str) -> AgentCapability:
        """Enabled capability of the agent, or CapabilityNotFoundError."""
        capability = agent.enabled_capability(capability_id)
        if capability is None:
            raise CapabilityNotFoundError(capability_id)
        return capability

    async def execute(
        self,
        agent: Agent,
        capability_id: str,
        input: Any,
        additional_instruction: str | None = None,
    ) -> CapabilityResult:
        capability = self.resolve(agent, capability_id)

        try:
            if catalog.is_tool_capability(capability_id):
                return await self._tool(agent, capability, input, additional_instruction)

            handler = self._handlers.get(capability_id)
            if handler is None:
                return CapabilityResult(success=False, error=f"Unknown capability: {capability_id}")
            return await handler(agent, capability, input, additional_instruction)
        except Exception as e:
            logger.warning("Capability %s failed for agent=%s: %s", capability_id, agent.id, e)
            return CapabilityResult(success=False, error=str(e) or e.__class__.__name__)

    # ---- collaborators ----

    async def _complete(self, agent: Agent, prompt: str) -> CompletionResponse:
        return await self._completion.complete(
            prompt,
            system_prompt=agent.prompt or None,
            credential=agent.api_key,
            model=agent.model or None,
        )

    def _search_client(self) -> SearchClient:
        if self._search is None:
            raise CollaboratorError("Web search is not configured.")
        return self._search

    @staticmethod
    def _settle(response: CompletionResponse, result: dict[str, Any]) -> CapabilityResult:
        if response.error:
            return CapabilityResult(success=False, result=result, error=response.error)
        return CapabilityResult(success=True, result=result)

    # ---- externally registered tools ----

    async def _tool(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        if self._tools is None:
            raise CollaboratorError("No tool source configured.")

        server_id = capability.config.get("server_id")
        tool_name = capability.config.get("tool_name")
        if not server_id or not tool_name:
            return CapabilityResult(success=False, error=f"Capability {capability.id} has no tool binding")

        called = await self._tools.invoke(str(server_id), str(tool_name), _as_tool_args(input))
        if not called.success:
            return CapabilityResult(success=False, error=called.error or "Tool call failed")

        if not additional:
            return CapabilityResult(success=True, result=called.result)

        body = prompts.TOOL_RESULT_PROMPT.format(
            tool_name=tool_name,
            tool_result=json.dumps(called.result, indent=2, ensure_ascii=False, default=str),
        )
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(
            response,
            {"mcp_result": called.result, "analysis": response.content, "tool_name": tool_name},
        )

    # ---- built-in handlers ----

    async def _web_search(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        query = _as_text(input)
        results = await self._search_client().search(query, capability.config)
        body = prompts.WEB_SEARCH_PROMPT.format(query=query, results=prompts.render_search_results(results))
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(
            response,
            {"search_results": [r.to_dict() for r in results], "analysis": response.content, "query": query},
        )

    async def _web_scraping(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        urls = _as_url_list(input)
        pages = await self._search_client().batch_retrieve(urls, capability.config)
        body = prompts.WEB_SCRAPING_PROMPT.format(urls=", ".join(urls), pages=prompts.render_pages(pages))
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(
            response,
            {"scraped_content": [p.to_dict() for p in pages], "analysis": response.content, "urls": urls},
        )

    async def _html_generation(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        requirements = _as_text(input)
        body = prompts.HTML_GENERATION_PROMPT.format(
            requirements=requirements, config=prompts.render_config(capability.config)
        )
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(
            response,
            {"html_code": response.content, "requirements": requirements, "config": capability.config},
        )

    async def _code_generation(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        requirements = _as_text(input)
        body = prompts.CODE_GENERATION_PROMPT.format(
            requirements=requirements, config=prompts.render_config(capability.config)
        )
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(
            response,
            {"code": response.content, "requirements": requirements, "config": capability.config},
        )

    async def _data_analysis(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        data = _as_text(input)
        body = prompts.DATA_ANALYSIS_PROMPT.format(data=data, config=prompts.render_config(capability.config))
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(response, {"analysis": response.content, "data": data, "config": capability.config})

    async def _content_creation(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        topic = _as_text(input)
        body = prompts.CONTENT_CREATION_PROMPT.format(topic=topic, config=prompts.render_config(capability.config))
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(response, {"content": response.content, "topic": topic, "config": capability.config})

    async def _research(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        topic = _as_text(input)
        results = await self._search_client().search(
            topic,
            {
                # The search API only knows basic/advanced.
                "search_depth": "basic" if capability.config.get("research_depth") == "basic" else "advanced",
                "max_results": RESEARCH_MAX_RESULTS,
                "include_answer": True,
            },
        )
        body = prompts.RESEARCH_PROMPT.format(
            topic=topic,
            results=prompts.render_search_results(results, with_score=False),
            config=prompts.render_config(capability.config),
        )
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(
            response,
            {
                "research": response.content,
                "sources": [r.to_dict() for r in results],
                "topic": topic,
                "config": capability.config,
            },
        )

    async def _batch_processing(
        self, agent: Agent, capability: AgentCapability, input: Any, additional: str | None
    ) -> CapabilityResult:
        # One prompt for all items: max_concurrent / retry_attempts are rendered, not enforced.
        items = _as_items(input)
        body = prompts.BATCH_PROCESSING_PROMPT.format(
            items=prompts.render_items(items), config=prompts.render_config(capability.config)
        )
        response = await self._complete(agent, prompts.compose(agent.prompt, additional, body))
        return self._settle(
            response,
            {"processed_items": response.content, "original_items": items, "config": capability.config},
        )
