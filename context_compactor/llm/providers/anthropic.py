"""Anthropic provider implementation."""

import logging
import os
from typing import Any

import httpx

from .base import LLMProvider, LLMResponse, register_provider

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096


def _extract_cache_usage(usage_data: Any) -> dict[str, int]:
    """Extract cache token fields from Anthropic usage data."""
    result: dict[str, int] = {}
    if usage_data:
        cache_read = getattr(usage_data, "cache_read_input_tokens", None)
        if cache_read is not None:
            result["cache_read_input_tokens"] = cache_read
        cache_creation = getattr(usage_data, "cache_creation_input_tokens", None)
        if cache_creation is not None:
            result["cache_creation_input_tokens"] = cache_creation
    return result


@register_provider("anthropic")
class AnthropicProvider(LLMProvider):
    """Anthropic provider for summarization calls using the Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | httpx.Timeout | None = None,
        client: Any | None = None,
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key. If not provided, uses ANTHROPIC_API_KEY env var.
            base_url: Optional base URL for the API.
            timeout: Optional request timeout in seconds, or an httpx.Timeout.
            client: Optional pre-built AsyncAnthropic-compatible client.
        """
        if client is not None:
            self.api_key = api_key
            self.client = client
            return

        # Import Anthropic SDK only when this provider is used (lazy loading)
        try:
            from anthropic import AsyncAnthropic
        except ImportError:
            raise ImportError(
                "Anthropic SDK not installed. "
                "Install it with: pip install 'context-compactor[anthropic]'"
            ) from None

        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Anthropic API key not provided. Set ANTHROPIC_API_KEY "
                "environment variable or pass api_key parameter."
            )

        client_kwargs: dict[str, Any] = {"api_key": self.api_key}
        if base_url:
            client_kwargs["base_url"] = base_url
        if timeout is not None:
            client_kwargs["timeout"] = (
                timeout if isinstance(timeout, httpx.Timeout) else httpx.Timeout(timeout)
            )
        self.client = AsyncAnthropic(**client_kwargs)

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
        Make a request to Anthropic using the Messages API.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            model: Model identifier (e.g., "claude-3-5-haiku-latest")
            system: Optional system instruction (sent as the "system" parameter)
            max_tokens: Max tokens to generate (required by Anthropic, defaults to 4096)
            temperature: Optional temperature parameter (0-1)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            LLMResponse with the concatenated text content and usage
        """
        request_params: dict[str, Any] = {
            "model": model,
            "messages": list(messages),
            "max_tokens": max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
        }
        if system:
            request_params["system"] = system
        if temperature is not None:
            request_params["temperature"] = temperature

        request_params.update(kwargs)
        logger.debug(
            "Anthropic Messages API request: model=%s max_tokens=%s",
            model,
            request_params["max_tokens"],
        )

        try:
            response = await self.client.messages.create(**request_params)
            if not response:
                raise RuntimeError("Anthropic API returned no response")

            # Response.content is a list of content blocks
            content_parts = []
            for content_block in response.content or []:
                if getattr(content_block, "type", None) == "text":
                    content_parts.append(content_block.text)
            content = "".join(content_parts)

            # Anthropic's input_tokens only counts non-cached tokens.
            usage_data = response.usage
            cache_usage = _extract_cache_usage(usage_data)
            raw_input = usage_data.input_tokens if usage_data else 0
            total_input = (
                raw_input
                + cache_usage.get("cache_read_input_tokens", 0)
                + cache_usage.get("cache_creation_input_tokens", 0)
            )
            output = usage_data.output_tokens if usage_data else 0
            usage = {
                "input_tokens": total_input,
                "output_tokens": output,
                "total_tokens": total_input + output,
                **cache_usage,
            }

            return LLMResponse(
                content=content,
                usage=usage,
                model=getattr(response, "model", None) or model,
                stop_reason=getattr(response, "stop_reason", None),
            )

        except Exception as e:
            raise RuntimeError(f"Anthropic Messages API call failed: {str(e)}") from e
