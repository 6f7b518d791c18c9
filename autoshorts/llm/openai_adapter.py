"""
OpenAI LLM Adapter - Default cloud-based text generation provider.

Uses the official OpenAI Python SDK (async client).
"""
from typing import Optional
from autoshorts.llm.base import LLMAdapter, LLMResponse
from autoshorts.core.logging import get_logger

logger = get_logger("llm.openai")


class OpenAIAdapter(LLMAdapter):
    """
    OpenAI LLM adapter using the official SDK.

    base_url allows any OpenAI-compatible endpoint.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 120.0,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._timeout = timeout
        self._client = None

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model

    def _get_client(self):
        """Lazy-load OpenAI client."""
        if self._client is None:
            import openai
            kwargs = {"api_key": self._api_key, "timeout": self._timeout}
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = openai.AsyncOpenAI(**kwargs)
        return self._client

    def is_available(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self._api_key)

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.2,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """Generate completion using OpenAI API."""
        if not self.is_available():
            raise ValueError("OpenAI API key not configured")

        client = self._get_client()

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        if json_mode:
            kwargs.setdefault("response_format", {"type": "json_object"})

        try:
            logger.info(f"Generating with OpenAI {self._model}...")

            response = await client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs
            )

            content = response.choices[0].message.content or ""
            usage = None
            if response.usage is not None:
                usage = {
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                }
                logger.info(f"OpenAI generation successful ({response.usage.total_tokens} tokens)")

            return LLMResponse(
                content=content,
                model=self._model,
                provider=self.provider_name,
                usage=usage,
                finish_reason=response.choices[0].finish_reason,
                raw_response=response
            )

        except Exception as e:
            logger.error(f"OpenAI generation failed: {e}")
            raise

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
