# src/agent_desk/search/client.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from ..core.ports import ScrapedPage, SearchResult
from ..errors import CollaboratorError

logger = logging.getLogger(__name__)


class WebSearchClient:
    """
    Web search (Tavily) and content retrieval (Firecrawl) over httpx.

    - search(): ranked results; HTTP/transport failures raise CollaboratorError.
    - retrieve(): extracted text for one URL; failures raise CollaboratorError.
    - batch_retrieve(): all URLs concurrently; a failed URL yields empty content.
    """

    def __init__(self, settings: Any, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._tavily_key = getattr(settings, "tavily_api_key", None)
        self._tavily_url = str(getattr(settings, "tavily_base_url", "https://api.tavily.com")).rstrip("/")
        self._firecrawl_key = getattr(settings, "firecrawl_api_key", None)
        self._firecrawl_url = str(getattr(settings, "firecrawl_base_url", "https://api.firecrawl.dev")).rstrip("/")
        self._timeout = float(getattr(settings, "search_timeout_seconds", 30.0))
        self._transport = transport

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self._timeout, transport=self._transport)

    async def search(self, query: str, config: dict[str, Any] | None = None) -> list[SearchResult]:
        if not self._tavily_key:
            raise CollaboratorError("Tavily API key is not set.")

        cfg = {
            "search_depth": "advanced",
            "max_results": 10,
            "include_images": False,
            "include_answer": True,
            **(config or {}),
        }
        body = {
            "query": query,
            "search_depth": cfg["search_depth"],
            "include_answer": bool(cfg["include_answer"]),
            "include_images": bool(cfg["include_images"]),
            "include_raw_content": True,
            "max_results": int(cfg["max_results"]),
        }

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self._tavily_url}/search",
                    json=body,
                    headers={"Authorization": f"Bearer {self._tavily_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise CollaboratorError(f"Search API error: {e}") from e

        results: list[SearchResult] = []
        for item in data.get("results") or []:
            if not isinstance(item, dict):
                continue
            score = item.get("score")
            results.append(
                SearchResult(
                    title=str(item.get("title") or ""),
                    url=str(item.get("url") or ""),
                    content=str(item.get("content") or ""),
                    score=float(score) if score is not None else None,
                )
            )
        logger.info("Search query=%r results=%d", query, len(results))
        return results

    async def retrieve(self, url: str, config: dict[str, Any] | None = None) -> str:
        if not self._firecrawl_key:
            raise CollaboratorError("Firecrawl API key is not set.")

        cfg = {
            "only_main_content": True,
            "timeout": 30000,
            "include_tags": [],
            "exclude_tags": ["nav", "footer", "sidebar"],
            "content_formats": ["markdown"],
            **(config or {}),
        }
        body = {
            "url": url,
            "pageOptions": {
                "onlyMainContent": bool(cfg["only_main_content"]),
                "timeout": int(cfg["timeout"]),
                "includeTags": list(cfg["include_tags"]),
                "excludeTags": list(cfg["exclude_tags"]),
            },
            "formats": list(cfg["content_formats"]),
        }

        # Firecrawl timeout is in milliseconds; leave headroom for the HTTP round trip.
        http_timeout = max(self._timeout, int(cfg["timeout"]) / 1000.0 + 5.0)
        try:
            async with self._client(http_timeout) as client:
                resp = await client.post(
                    f"{self._firecrawl_url}/v0/scrape",
                    json=body,
                    headers={"Authorization": f"Bearer {self._firecrawl_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise CollaboratorError(f"Crawl API error: {e}") from e

        return str((data.get("data") or {}).get("content") or "")

    async def batch_retrieve(
        self, urls: Sequence[str], config: dict[str, Any] | None = None
    ) -> list[ScrapedPage]:
        async def one(url: str) -> ScrapedPage:
            try:
                return ScrapedPage(url=url, content=await self.retrieve(url, config))
            except CollaboratorError:
                logger.warning("Crawl failed url=%s", url, exc_info=True)
                return ScrapedPage(url=url, content="")

        return list(await asyncio.gather(*(one(u) for u in urls)))
