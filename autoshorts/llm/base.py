"""
LLM Adapter Base Class - Abstract interface for text generation providers.

Stages never talk to a provider SDK directly; they go through an adapter
so the backend can be swapped (or replaced by a fake in tests).
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from dataclasses import dataclass


@dataclass
class LLMResponse:
    """Standardized LLM response across all providers."""
    content: str
    model: str
    provider: str
    usage: Optional[Dict[str, int]] = None  # tokens used
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None


class LLMAdapter(ABC):
    """
    Abstract base class for LLM adapters.

    All providers must implement this interface.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'openai')."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model being used."""
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.2,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a completion.

        Args:
            prompt: User prompt/message
            system_prompt: System message for context
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0-1)
            json_mode: Ask the provider for a single JSON document
            **kwargs: Provider-specific options

        Returns:
            LLMResponse with generated content
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is available (API key set, etc.)."""
        pass

    async def close(self) -> None:
        """Release network resources (optional)."""
        pass
