# src/agent_desk/capabilities/prompts.py

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from ..core.ports import ScrapedPage, SearchResult

HEADER = """{agent_prompt}

{additional_instruction}

"""

WEB_SEARCH_PROMPT = """You have been asked to search for: "{query}"

Here are the search results:
{results}

Please analyze these results and provide a comprehensive summary with key insights."""

WEB_SCRAPING_PROMPT = """You have been asked to scrape and analyze the following URLs:
{urls}

Here is the scraped content:
{pages}

Please analyze this content and extract key information, insights, or perform the requested task."""

HTML_GENERATION_PROMPT = """You are an expert HTML/CSS developer. Generate clean, semantic HTML code based on these requirements:

Requirements: {requirements}

Configuration:
{config}

Please provide:
1. Complete HTML structure
2. Embedded CSS styles (if requested)
3. Brief explanation of the implementation
4. Any accessibility features included

Make sure the code is production-ready and follows best practices."""

CODE_GENERATION_PROMPT = """You are an expert software developer. Generate clean, efficient code based on these requirements:

Requirements: {requirements}

Configuration:
{config}

Please provide:
1. Complete, working code
2. Clear comments explaining the logic
3. Usage examples if applicable
4. Any dependencies or setup instructions

Make sure the code follows best practices and is production-ready."""

DATA_ANALYSIS_PROMPT = """You are a data analysis expert. Analyze the following data and provide insights:

Data: {data}

Configuration:
{config}

Please provide:
1. Data summary and overview
2. Key insights and patterns
3. Statistical analysis (if requested)
4. Recommendations based on findings
5. Visual representations (if charts requested)

Present your analysis in a clear, professional format."""

CONTENT_CREATION_PROMPT = """You are a professional content creator. Create high-quality content on the following topic:

Topic: {topic}

Configuration:
{config}

Please provide:
1. Content outline (if requested)
2. Complete, well-structured content
3. Engaging introduction and conclusion
4. Proper formatting and structure
5. SEO-friendly elements if applicable

Make sure the content is original, engaging, and valuable to readers."""

RESEARCH_PROMPT = """You are a research expert. Conduct comprehensive research on the following topic:

Topic: {topic}

Search Results:
{results}

Configuration:
{config}

Please provide:
1. Executive summary
2. Detailed research findings
3. Multiple perspectives on the topic
4. Citations and sources (if requested)
5. Fact-checked information
6. Conclusions and recommendations

Present your research in a professional, academic format."""

BATCH_PROCESSING_PROMPT = """You are processing multiple items in batch. Here are the items to process:

{items}

Configuration:
{config}

Please process each item according to the instructions and provide results for each."""

TOOL_RESULT_PROMPT = """Tool Result from {tool_name}:
{tool_result}

Please analyze this result and provide a helpful response."""


def _label(key: str) -> str:
    return key.replace("_", " ").strip().capitalize()


def _value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value)


def render_config(config: dict[str, Any]) -> str:
    """Capability config as a readable "- Key: value" block."""
    if not config:
        return "- (defaults)"
    return "\n".join(f"- {_label(k)}: {_value(v)}" for k, v in config.items())


def render_search_results(results: Sequence[SearchResult], *, with_score: bool = True) -> str:
    blocks = []
    for idx, r in enumerate(results, start=1):
        lines = [f"{idx}. {r.title}", f"URL: {r.url}", f"Content: {r.content}"]
        if with_score and r.score:
            lines.append(f"Relevance Score: {r.score}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) if blocks else "(no results)"


def render_pages(pages: Sequence[ScrapedPage]) -> str:
    return "\n\n".join(f"URL {idx}: {p.url}\nContent:\n{p.content}\n---" for idx, p in enumerate(pages, start=1))


def render_items(items: Sequence[Any]) -> str:
    return "\n".join(
        f"Item {idx}: {item if isinstance(item, str) else json.dumps(item, ensure_ascii=False)}"
        for idx, item in enumerate(items, start=1)
    )


def compose(agent_prompt: str, additional_instruction: str | None, body: str) -> str:
    """Agent base prompt, caller instruction, then the capability-specific body."""
    return HEADER.format(agent_prompt=agent_prompt, additional_instruction=additional_instruction or "") + body
