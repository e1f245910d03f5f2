# src/agent_desk/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ..core.ports import CompletionResponse

logger = logging.getLogger(__name__)


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError, httpx.TimeoutException))


def _is_not_found_error(exc: Exception) -> bool:
    # OpenAI-compatible SDK uses NotFoundError for HTTP 404 (model not available)
    return isinstance(exc, openai.NotFoundError)


class OpenRouterCompletionClient:
    """
    OpenRouter (OpenAI-compatible) completion client.

    Behavior:
    - One request/response per model, no streaming.
    - Per-call credential overrides the configured key (agents carry their own keys).
    - Per-call model is tried first, then the configured models in order.
    - 404 (model not available) / rate limit / network issues -> try next model.
    - Auth issues -> fail fast.
    - SDK retries are disabled; there is no retry/backoff policy at this layer.

    Failures are reported as CompletionResponse(error=...), never raised.
    """

    def __init__(self, settings: Any) -> None:
        api_key = getattr(settings, "openrouter_api_key", None)
        base_url = str(getattr(settings, "openrouter_base_url", "") or "")

        if not api_key or not str(api_key).strip():
            raise RuntimeError("LLM API key is not set. Set AGENT_DESK_OPENROUTER_API_KEY in your .env.")
        if not base_url.strip():
            raise RuntimeError("LLM base URL is not set. Set AGENT_DESK_OPENROUTER_BASE_URL in your .env.")

        self._api_key = str(api_key)
        self._base_url = base_url
        self._models: list[str] = list(getattr(settings, "llm_models", []) or [])
        self._headers: dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})
        self._timeout = float(getattr(settings, "llm_timeout_seconds", 120.0))
        self._clients: dict[str, AsyncOpenAI] = {}
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)

        if not self._models:
            raise RuntimeError("LLM model list is empty. Set AGENT_DESK_LLM_MODELS in your .env.")

    def _client_for(self, credential: str | None) -> AsyncOpenAI:
        key = (credential or "").strip() or self._api_key
        client = self._clients.get(key)
        if client is None:
            client = AsyncOpenAI(
                base_url=self._base_url,
                api_key=key,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                max_retries=0,
            )
            self._clients[key] = client
        return client

    def _candidate_models(self, model: str | None) -> list[str]:
        out: list[str] = []
        for m in [model or "", *self._models]:
            m = m.strip()
            if m and m not in out:
                out.append(m)
        return out

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        credential: str | None = None,
        model: str | None = None,
    ) -> CompletionResponse:
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        client = self._client_for(credential)
        last_error: Exception | None = None
        now = time.monotonic()

        for candidate in self._candidate_models(model):
            retry_at = self._bad_models.get(candidate)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s", candidate)
            t0 = time.monotonic()
            try:
                resp = await client.chat.completions.create(
                    model=candidate,
                    messages=messages,
                    extra_headers=self._headers or None,
                )
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    logger.warning("LLM: authentication failed on model=%s", candidate)
                    return CompletionResponse(error="LLM authentication failed. Check the API key.")

                if _is_not_found_error(e):
                    self._bad_models[candidate] = time.monotonic() + 3600.0  # 1 hour
                    logger.info("LLM: model not available (404): %s", candidate)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", candidate)
                    continue

                if _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", candidate)
                    continue

                logger.info("LLM: error on model=%s (%s), trying next", candidate, e.__class__.__name__)
                continue

            content = ""
            if resp.choices:
                content = resp.choices[0].message.content or ""
            if content:
                logger.debug("LLM: completed with model=%s (%.2fs)", candidate, time.monotonic() - t0)
                return CompletionResponse(content=content)

            last_error = RuntimeError(f"Model returned no content: {candidate}")

        if last_error is None:
            return CompletionResponse(error="All LLM models failed.")
        if _is_rate_limit_error(last_error):
            return CompletionResponse(error="LLM is rate-limited. Try again later.")
        if _is_connection_error(last_error):
            return CompletionResponse(error="LLM network/timeout error. Try again later or change models.")
        return CompletionResponse(error=f"All LLM models failed: {last_error}")
