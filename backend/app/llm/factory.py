from __future__ import annotations

import logging

from app.config import settings
from app.llm.base import LLMProvider

logger = logging.getLogger(__name__)

_provider_instance: LLMProvider | None = None


def get_llm_provider() -> LLMProvider:
    """Return the process-wide provider picked by ``settings.llm_provider``."""
    global _provider_instance
    if _provider_instance is None:
        if settings.llm_provider == "claude":
            from app.llm.claude_provider import ClaudeProvider

            _provider_instance = ClaudeProvider()
        elif settings.llm_provider == "openai":
            from app.llm.openai_provider import OpenAIProvider

            _provider_instance = OpenAIProvider()
        else:
            raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")
        logger.info(
            "Using %s provider (model=%s)",
            _provider_instance.provider_name,
            _provider_instance.model_name,
        )
    return _provider_instance


def reset_llm_provider() -> None:
    """Drop the cached provider so the next call re-reads settings."""
    global _provider_instance
    _provider_instance = None
