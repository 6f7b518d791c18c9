"""
LLM Factory - Creates the text generation adapter from settings.
"""
from enum import Enum
from typing import Dict, Type

from autoshorts.core.config import Settings
from autoshorts.core.logging import get_logger
from autoshorts.llm.base import LLMAdapter

logger = get_logger("llm.factory")


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"


_ADAPTERS: Dict[LLMProvider, Type[LLMAdapter]] = {}


def register_adapter(provider: LLMProvider, adapter_class: Type[LLMAdapter]):
    """Register an adapter class for a provider."""
    _ADAPTERS[provider] = adapter_class
    logger.info(f"Registered LLM adapter: {provider.value}")


def _register_default_adapters():
    from autoshorts.llm.openai_adapter import OpenAIAdapter

    register_adapter(LLMProvider.OPENAI, OpenAIAdapter)


def get_llm(settings: Settings) -> LLMAdapter:
    """
    Build the adapter named by settings.llm_provider.

    Unknown providers fall back to OpenAI with a warning. A fresh adapter
    is returned on every call so concurrent pipeline runs never share one.
    """
    if not _ADAPTERS:
        _register_default_adapters()

    try:
        provider = LLMProvider(settings.llm_provider.lower())
    except ValueError:
        logger.warning(f"Unknown LLM provider: {settings.llm_provider}, using openai")
        provider = LLMProvider.OPENAI

    adapter_class = _ADAPTERS[provider]
    adapter = adapter_class(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout=settings.http_timeout_sec,
    )
    if not adapter.is_available():
        logger.warning(f"LLM provider '{provider.value}' has no API key configured")
    return adapter
