# src/agent_desk/capabilities/catalog.py

from __future__ import annotations

import logging
from typing import Any

from ..agents.models import AgentCapability
from ..core.ports import ToolSource

logger = logging.getLogger(__name__)

TOOL_CAPABILITY_PREFIX = "mcp_"

WEB_SEARCH = "web_search"
WEB_SCRAPING = "web_scraping"
HTML_GENERATION = "html_generation"
CODE_GENERATION = "code_generation"
DATA_ANALYSIS = "data_analysis"
CONTENT_CREATION = "content_creation"
RESEARCH = "research"
BATCH_PROCESSING = "batch_processing"

_BUILTINS: list[tuple[str, str, str, dict[str, Any]]] = [
    (
        WEB_SEARCH,
        "Web Search",
        "Search the web with configurable depth and results",
        {"search_depth": "advanced", "max_results": 10, "include_images": False, "include_answer": True},
    ),
    (
        WEB_SCRAPING,
        "Web Scraping",
        "Scrape and extract content from websites",
        {
            "content_formats": ["markdown"],
            "only_main_content": True,
            "timeout": 30000,
            "include_tags": ["article", "main", "content"],
            "exclude_tags": ["nav", "footer", "sidebar"],
        },
    ),
    (
        HTML_GENERATION,
        "HTML Generation",
        "Generate clean, semantic HTML code for web pages",
        {"include_css": True, "responsive": True, "accessibility": True},
    ),
    (
        CODE_GENERATION,
        "Code Generation",
        "Generate code in various programming languages",
        {"languages": ["javascript", "python", "html", "css", "react"], "include_comments": True, "code_style": "clean"},
    ),
    (
        DATA_ANALYSIS,
        "Data Analysis",
        "Analyze data, create reports, and generate insights",
        {"output_format": "markdown", "include_charts": False, "statistical_analysis": True},
    ),
    (
        CONTENT_CREATION,
        "Content Creation",
        "Create articles, blogs, documentation, and marketing content",
        {"tone": "professional", "length": "medium", "include_outline": True},
    ),
    (
        RESEARCH,
        "Research Assistant",
        "Conduct comprehensive research on topics with citations",
        {"include_citations": True, "research_depth": "comprehensive", "fact_check": True},
    ),
    (
        BATCH_PROCESSING,
        "Batch Processing",
        "Process multiple items or URLs in one request",
        # Advertised only: batching happens inside a single prompt.
        {"max_concurrent": 5, "retry_attempts": 3, "timeout": 60000},
    ),
]

BUILTIN_CAPABILITY_IDS = tuple(c[0] for c in _BUILTINS)


def available_capabilities() -> list[AgentCapability]:
    """Fresh copies of the built-in capabilities, all disabled."""
    return [
        AgentCapability(id=cid, name=name, description=desc, enabled=False, config=dict(config))
        for cid, name, desc, config in _BUILTINS
    ]


def builtin_capability(capability_id: str, *, enabled: bool = True) -> AgentCapability:
    for cap in available_capabilities():
        if cap.id == capability_id:
            cap.enabled = enabled
            return cap
    raise KeyError(capability_id)


def tool_capability_id(server_id: str, tool_name: str) -> str:
    return f"{TOOL_CAPABILITY_PREFIX}{server_id}_{tool_name}"


def is_tool_capability(capability_id: str) -> bool:
    return capability_id.startswith(TOOL_CAPABILITY_PREFIX)


def tool_to_capability(tool: dict[str, Any]) -> AgentCapability:
    server_id = str(tool["serverId"])
    name = str(tool["name"])
    return AgentCapability(
        id=tool_capability_id(server_id, name),
        name=f"{name} ({tool.get('serverName', server_id)})",
        description=str(tool.get("description") or ""),
        enabled=False,
        config={"server_id": server_id, "tool_name": name, "parameters": tool.get("parameters") or {}},
    )


async def all_available_capabilities(tool_source: ToolSource | None) -> list[AgentCapability]:
    """Built-ins plus one capability per discovered external tool."""
    base = available_capabilities()
    if tool_source is None:
        return base
    try:
        tools = await tool_source.list_tools()
    except Exception:
        logger.exception("Failed to load external tool capabilities; using built-ins only")
        return base
    return base + [tool_to_capability(t) for t in tools]
