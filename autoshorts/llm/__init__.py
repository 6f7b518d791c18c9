"""
LLM Module - provider-agnostic text generation with structured output.
"""
from autoshorts.llm.factory import get_llm, LLMProvider
from autoshorts.llm.base import LLMAdapter, LLMResponse
from autoshorts.llm.structured import StructuredGenerator

__all__ = ["get_llm", "LLMProvider", "LLMAdapter", "LLMResponse", "StructuredGenerator"]
