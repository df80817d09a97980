"""Generation-service client: "submit prompt, receive text response".

Providers
---------
``ollama`` (default)
    A local Ollama chat model.  Configure via ``OLLAMA_BASE_URL`` and
    ``OLLAMA_CHAT_MODEL``.

``openai``
    The OpenAI chat API.  Requires ``OPENAI_API_KEY``.  Configure via
    ``OPENAI_CHAT_MODEL``.

Set ``LLM_PROVIDER=openai`` in your ``.env`` to switch providers.

Model output is never trusted to be valid JSON; :func:`parse_json_response`
implements the two-stage recovery used by every caller (strict parse, then
re-parse of the first ``{...}`` span).
"""

from __future__ import annotations

import json
import os
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from backend.config import settings

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class TextGenerator(ABC):
    """Anything that turns a prompt into a text completion."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return the model's raw text response to *prompt*."""


# ---------------------------------------------------------------------------
# LangChain implementation
# ---------------------------------------------------------------------------

def _get_llm() -> Any:
    """Return a configured LangChain chat model based on ``settings``."""
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=settings.openai_chat_model,
            temperature=settings.llm_temperature,
        )

    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=settings.ollama_chat_model,
        base_url=settings.ollama_base_url,
        temperature=settings.llm_temperature,
    )


def _message_text(message: Any) -> str:
    content = message.content if hasattr(message, "content") else message
    if isinstance(content, list):
        # Some providers return a list of content parts.
        return "".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return str(content)


class LangChainGenerator(TextGenerator):
    """Wraps a LangChain chat model; the model is built lazily on first use."""

    def __init__(self, llm: Any = None) -> None:
        self._llm = llm

    @property
    def llm(self) -> Any:
        if self._llm is None:
            self._llm = _get_llm()
        return self._llm

    async def generate(self, prompt: str) -> str:
        response = await self.llm.ainvoke(prompt)
        return _message_text(response)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def is_configured() -> bool:
    """``True`` when the active provider has the credentials it needs."""
    if settings.llm_provider == "openai":
        return bool(os.environ.get("OPENAI_API_KEY"))
    return bool(settings.ollama_base_url)


_generator: Optional[TextGenerator] = None


def get_generator() -> TextGenerator:
    """Return the process-wide generator (a FastAPI dependency)."""
    global _generator
    if _generator is None:
        _generator = LangChainGenerator()
    return _generator


def parse_json_response(text: Any) -> Optional[dict[str, Any]]:
    """Best-effort decode of a model response into a JSON object.

    Tries a strict ``json.loads`` first, then the first ``{...}`` span in the
    text.  Returns ``None`` when neither yields a JSON object.
    """
    if not isinstance(text, str):
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(text)
        if match is None:
            return None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None
