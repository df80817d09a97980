"""Centralised settings for the Premium Reader backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Generation service (chat model)
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "ollama")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )
    llm_temperature: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TEMPERATURE", "0"))
    )

    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "15.0"))
    )

    # ------------------------------------------------------------------
    # Extraction / paste policy
    # ------------------------------------------------------------------
    paywall_min_paragraphs: int = field(
        default_factory=lambda: int(os.environ.get("PAYWALL_MIN_PARAGRAPHS", "3"))
    )
    paste_ai_refine: bool = field(
        default_factory=lambda: _env_flag("PASTE_AI_REFINE")
    )

    # ------------------------------------------------------------------
    # Enhancement
    # ------------------------------------------------------------------
    enhance_batch_size: int = field(
        default_factory=lambda: int(os.environ.get("ENHANCE_BATCH_SIZE", "3"))
    )

    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------
    api_prefix: str = field(
        default_factory=lambda: os.environ.get("API_PREFIX", "")
    )
    cors_origins: list[str] = field(
        default_factory=lambda: _env_list(
            "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
        )
    )
    web_app_url: str = field(
        default_factory=lambda: os.environ.get("WEB_APP_URL", "")
    )
    host: str = field(default_factory=lambda: os.environ.get("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3001")))
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins including the optional web-app URL."""
        origins = list(self.cors_origins)
        if self.web_app_url and self.web_app_url not in origins:
            origins.append(self.web_app_url)
        return origins

    @property
    def default_origin(self) -> str:
        """Origin echoed on streaming responses when the caller sends none."""
        return self.allowed_origins[0] if self.allowed_origins else "*"


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(
        level=level or settings.log_level,
        format=_LOG_FORMAT,
    )


# Module-level singleton, import this everywhere:
#   from backend.config import settings
settings = Settings()
