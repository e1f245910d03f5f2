# src/agent_desk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- takes the settings loaded once by main,
- ensures local (gitignored) directories exist,
- wires concrete implementations (SQLite KV, OpenRouter/offline LLM, web search)
  into AppState.
"""

from __future__ import annotations

import logging

from ..core.ports import CompletionClient
from ..core.state import AppState, build_state
from ..llm.client import OpenRouterCompletionClient
from ..llm.offline import OfflineCompletionClient
from ..search.client import WebSearchClient
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_store import build_task_store

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.kv_db_path.parent.mkdir(parents=True, exist_ok=True)


def _build_completion(settings) -> CompletionClient:
    if settings.offline_mode:
        logger.info("Offline mode: using the offline completion client.")
        return OfflineCompletionClient()
    try:
        return OpenRouterCompletionClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.warning("LLM not configured (%s); using the offline completion client.", e)
        return OfflineCompletionClient()


def create_initial_state(*, settings) -> AppState:
    """Create AppState from the provided settings."""
    _ensure_local_dirs(settings)

    kv = SqliteKeyValueStore(settings.kv_db_path)
    state = build_state(
        settings=settings,
        kv=kv,
        task_store=build_task_store(kv, settings.task_store_layout),
        completion=_build_completion(settings),
        search=WebSearchClient(settings),
    )
    logger.info("State ready (task store layout=%s).", settings.task_store_layout)
    return state
