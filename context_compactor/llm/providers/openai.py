"""OpenAI provider implementation."""

import logging
import os
from typing import Any

import httpx

from .base import LLMProvider, LLMResponse, register_provider

logger = logging.getLogger(__name__)


@register_provider("openai")
class OpenAIProvider(LLMProvider):
    """OpenAI provider for summarization calls using the Chat Completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | httpx.Timeout | None = None,
        client: Any | None = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. If not provided, uses OPENAI_API_KEY env var.
            base_url: Optional base URL for the API. If not provided, defaults to OpenAI's URL.
                     Useful for Azure OpenAI or other OpenAI-compatible endpoints.
            timeout: Optional request timeout in seconds, or an httpx.Timeout.
            client: Optional pre-built AsyncOpenAI-compatible client.
        """
        if client is not None:
            self.api_key = api_key
            self.base_url = base_url
            self.client = client
            return

        # Import OpenAI SDK only when this provider is used (lazy loading)
        try:
            from openai import AsyncOpenAI
        except ImportError:
            raise ImportError(
                "OpenAI SDK not installed. Install it with: pip install 'context-compactor[openai]'"
            ) from None

        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self.base_url = base_url or os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")

        client_kwargs: dict[str, Any] = {"api_key": self.api_key, "base_url": self.base_url}
        if timeout is not None:
            client_kwargs["timeout"] = (
                timeout if isinstance(timeout, httpx.Timeout) else httpx.Timeout(timeout)
            )
        self.client = AsyncOpenAI(**client_kwargs)

    async def generate(
        self,
        messages: list[dict[str, Any]],
        model: str,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs,
    ) -> LLMResponse:
        """
        Make a request to OpenAI using the Chat Completions API.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            model: Model identifier (e.g., "gpt-4o-mini")
            system: Optional system instruction, sent as a leading system message
            max_tokens: Optional max tokens parameter
            temperature: Optional temperature parameter
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with content and usage
        """
        processed_messages = list(messages)
        if system:
            processed_messages.insert(0, {"role": "system", "content": system})

        request_params: dict[str, Any] = {
            "model": model,
            "messages": processed_messages,
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens
        if temperature is not None:
            request_params["temperature"] = temperature

        request_params.update(kwargs)
        logger.debug(
            "OpenAI Chat Completions request: model=%s max_tokens=%s",
            model,
            request_params.get("max_tokens"),
        )

        try:
            usage = {
                "input_tokens": 0,
                "output_tokens": 0,
                "total_tokens": 0,
            }
            content = None
            response_stop_reason = None

            response = await self.client.chat.completions.create(**request_params)
            if not response:
                raise RuntimeError("OpenAI API returned no response")

            if response.choices:
                choice = response.choices[0]
                if not choice.message:
                    raise RuntimeError("OpenAI API returned no message")
                content = choice.message.content or ""
                response_stop_reason = choice.finish_reason

            if response.usage:
                usage["input_tokens"] = response.usage.prompt_tokens
                usage["output_tokens"] = response.usage.completion_tokens
                usage["total_tokens"] = response.usage.total_tokens

            return LLMResponse(
                content=content,
                usage=usage,
                model=response.model or model,
                stop_reason=response_stop_reason,
            )

        except Exception as e:
            raise RuntimeError(f"OpenAI Chat Completions API call failed: {str(e)}") from e
