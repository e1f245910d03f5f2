# src/agent_desk/llm/offline.py

from __future__ import annotations

import asyncio

from ..core.ports import CompletionResponse


class OfflineCompletionClient:
    """
    Offline deterministic completion client used for demos when no external API is configured.

    Echoes the last line of the prompt so background tasks still complete end to end.
    """

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        credential: str | None = None,
        model: str | None = None,
    ) -> CompletionResponse:
        await asyncio.sleep(0)
        last_line = ""
        for line in reversed((prompt or "").splitlines()):
            if line.strip():
                last_line = line.strip()
                break
        return CompletionResponse(
            content=(
                "Offline demo mode: no external LLM is configured.\n"
                "Set AGENT_DESK_OPENROUTER_API_KEY (and AGENT_DESK_LLM_MODELS) to enable real responses.\n\n"
                f"Last instruction: {last_line}"
            )
        )
