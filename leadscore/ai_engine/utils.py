"""
leadscore/ai_engine/utils.py — Shared AI helper utilities.

Provides:
  - build_openrouter_llm()  : factory for the LangChain-compatible OpenRouter LLM
  - ChatModelGenerator      : async "generate text from prompt" transport over a chat model
  - truncate_for_context()  : safely trim long strings to fit LLM context window
"""

import logging
from typing import Any, Optional, Protocol, Sequence

from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI

from leadscore.config import settings
from leadscore.errors import ClassifierNotConfiguredError

logger = logging.getLogger(__name__)

# OpenRouter's base URL (drop-in OpenAI-compatible API)
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class TextGenerator(Protocol):
    async def generate(self, messages: Sequence[BaseMessage]) -> str:
        ...


def build_openrouter_llm(temperature: float = 0.1, timeout_s: Optional[float] = None) -> ChatOpenAI:
    """
    Build a LangChain ChatOpenAI client pointed at OpenRouter.

    Args:
        temperature: 0.0 = deterministic, 1.0 = creative.
                     Intent classification wants low temperature for stable labels.
        timeout_s:   HTTP timeout passed to the underlying client.

    Returns:
        A LangChain-compatible LLM instance.

    Raises:
        ClassifierNotConfiguredError: if no OpenRouter API key is configured.
    """
    if not settings.openrouter_api_key:
        raise ClassifierNotConfiguredError(
            "OPENROUTER_API_KEY is not set; the remote intent classifier is unavailable.",
            details={"configuration_error": "missing_api_key"},
        )

    return ChatOpenAI(
        model=settings.openrouter_model,
        api_key=settings.openrouter_api_key,
        base_url=OPENROUTER_BASE_URL,
        temperature=temperature,
        timeout=timeout_s,
        max_retries=0,  # RetryPolicy owns retries
        default_headers={
            "X-Title": "Lead Score Service",
        },
    )


class ChatModelGenerator:
    """Adapts a LangChain chat model to the TextGenerator transport."""

    def __init__(self, llm: Any):
        self._llm = llm

    async def generate(self, messages: Sequence[BaseMessage]) -> str:
        response = await self._llm.ainvoke(list(messages))
        return response.content if hasattr(response, "content") else str(response)


def truncate_for_context(text: str, max_chars: int = 2000) -> str:
    """
    Trim a string to max_chars to avoid exceeding LLM context window.
    Appends '...' if truncated.
    """
    if not text or len(text) <= max_chars:
        return text or ""
    return text[:max_chars] + "..."
