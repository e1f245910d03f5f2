# src/agent_desk/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app, injected into the composition root.
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "AGENT_DESK"

TASK_STORE_LAYOUTS = ("collection", "per_record")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- LLM / OpenRouter ----
    openrouter_api_key: str | None
    openrouter_base_url: str
    llm_models: list[str]
    extra_headers: dict[str, str]
    llm_timeout_seconds: float

    # ---- Search / scraping ----
    tavily_api_key: str | None
    tavily_base_url: str
    firecrawl_api_key: str | None
    firecrawl_base_url: str
    search_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    kv_db_path: Path

    # ---- Task subsystem ----
    task_store_layout: str
    monitor_interval_seconds: float
    offline_mode: bool

    @staticmethod
    def from_env() -> Settings:
        load_dotenv(override=False)

        app_name = _first_env(_k("APP_NAME"), default="agent-desk") or "agent-desk"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")
        llm_models = _env_list(_k("LLM_MODELS"), ["google/gemini-2.5-pro-preview"])
        extra_headers = {
            "HTTP-Referer": _env(_k("HTTP_REFERER"), "https://example.com"),
            "X-Title": _env(_k("APP_TITLE"), app_name),
        }
        llm_timeout_seconds = _env_float(_k("LLM_TIMEOUT_SECONDS"), 120.0)

        tavily_api_key = _first_env(_k("TAVILY_API_KEY"), "TAVILY_API_KEY", default=None)
        tavily_base_url = _env(_k("TAVILY_BASE_URL"), "https://api.tavily.com")
        firecrawl_api_key = _first_env(_k("FIRECRAWL_API_KEY"), "FIRECRAWL_API_KEY", default=None)
        firecrawl_base_url = _env(_k("FIRECRAWL_BASE_URL"), "https://api.firecrawl.dev")
        search_timeout_seconds = _env_float(_k("SEARCH_TIMEOUT_SECONDS"), 30.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/agent_desk"))
        kv_db_path = _env_path(_k("KV_DB_PATH"), data_dir / "store.sqlite3")

        layout = _env(_k("TASK_STORE_LAYOUT"), "collection").strip().lower()
        if layout not in TASK_STORE_LAYOUTS:
            layout = "collection"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            llm_timeout_seconds=llm_timeout_seconds,
            tavily_api_key=tavily_api_key,
            tavily_base_url=tavily_base_url,
            firecrawl_api_key=firecrawl_api_key,
            firecrawl_base_url=firecrawl_base_url,
            search_timeout_seconds=search_timeout_seconds,
            data_dir=data_dir,
            kv_db_path=kv_db_path,
            task_store_layout=layout,
            monitor_interval_seconds=max(0.5, _env_float(_k("MONITOR_INTERVAL_SECONDS"), 5.0)),
            offline_mode=_env_bool(_k("OFFLINE"), False),
        )


def get_settings() -> Settings:
    """Read settings from the current environment (call once in the composition root)."""
    return Settings.from_env()
