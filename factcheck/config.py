"""Centralised settings for the fact-checker.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

There is no module-level instance: entry points build a
:class:`Settings` and hand it to the pipeline, fetcher and API app.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _split_list(raw: str) -> list[str]:
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # LLM credentials / provider priority
    # ------------------------------------------------------------------
    openai_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENAI_API_KEY", "")
    )
    openrouter_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENROUTER_API_KEY", "")
    )
    llm_providers: list[str] = field(
        default_factory=lambda: _split_list(
            os.environ.get("LLM_PROVIDERS", "openai,openrouter")
        )
    )

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------
    openai_base_url: str = field(
        default_factory=lambda: os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
    )
    openai_classify_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CLASSIFY_MODEL", "gpt-5-nano")
    )
    openai_verify_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_VERIFY_MODEL", "gpt-5-mini")
    )
    openrouter_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
        )
    )
    openrouter_model: str = field(
        default_factory=lambda: os.environ.get(
            "OPENROUTER_MODEL", "deepseek/deepseek-chat-v3.1:free"
        )
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    llm_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TIMEOUT", "60.0"))
    )

    # ------------------------------------------------------------------
    # URL-fetch proxy
    # ------------------------------------------------------------------
    fetch_proxy_url: str = field(
        default_factory=lambda: os.environ.get(
            "FETCH_PROXY_URL", "http://localhost:8000/api/fetch-url"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    upstream_fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("UPSTREAM_FETCH_TIMEOUT", "10.0"))
    )
    proxy_text_limit: int = field(
        default_factory=lambda: int(os.environ.get("PROXY_TEXT_LIMIT", "5000"))
    )

    # ------------------------------------------------------------------
    # Verification batches
    # ------------------------------------------------------------------
    fetch_batch_size: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_BATCH_SIZE", "10"))
    )
    verify_batch_size: int = field(
        default_factory=lambda: int(os.environ.get("VERIFY_BATCH_SIZE", "5"))
    )
    page_text_limit: int = field(
        default_factory=lambda: int(os.environ.get("PAGE_TEXT_LIMIT", "3000"))
    )
    page_links_limit: int = field(
        default_factory=lambda: int(os.environ.get("PAGE_LINKS_LIMIT", "10"))
    )

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------
    app_title: str = field(
        default_factory=lambda: os.environ.get("APP_TITLE", "FactChecker 2.0")
    )
    app_url: str = field(
        default_factory=lambda: os.environ.get("APP_URL", "http://localhost:8000")
    )
