"""Base class for summarization providers."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

# Provider registry - providers register themselves here
_PROVIDER_REGISTRY: dict[str, type["LLMProvider"]] = {}


def register_provider(name: str):
    """
    Decorator to register an LLM provider class.

    Usage:
        @register_provider("anthropic")
        class AnthropicProvider(LLMProvider):
            ...

    Args:
        name: Provider name (e.g., "openai", "anthropic")

    Returns:
        Decorator function
    """

    def decorator(cls: type["LLMProvider"]) -> type["LLMProvider"]:
        _PROVIDER_REGISTRY[name.lower()] = cls
        return cls

    return decorator


class LLMResponse(BaseModel):
    """Response from an LLM call.

    ``content`` is the concatenation of every text segment the model returned.
    """

    content: str | None = None
    usage: dict[str, Any] | None = Field(default_factory=dict)
    model: str | None = None
    stop_reason: str | None = None


class LLMProvider(ABC):
    """Base class for the summarization client.

    The compaction engine only needs one capability: turn a system instruction
    and a single user prompt into generated text, or raise.
    """

    @abstractmethod
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
        Make a completion request to the LLM.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            model: Model identifier (e.g., "gpt-4o-mini", "claude-3-5-haiku-latest")
            system: Optional system instruction
            max_tokens: Optional cap on generated tokens
            temperature: Optional temperature parameter
            **kwargs: Provider-specific additional parameters

        Returns:
            LLMResponse with content, usage, model, and stop_reason
        """
        pass


def get_provider(provider_name: str, **kwargs) -> LLMProvider:
    """
    Get LLM provider instance by name from the registry.

    Providers are dynamically imported when requested. If a provider's SDK is not installed,
    a helpful error message will be raised.

    Args:
        provider_name: Name of the provider ("openai" or "anthropic")
        **kwargs: Provider-specific initialization parameters

    Returns:
        LLMProvider instance

    Raises:
        ValueError: If the provider is not found or not supported
        ImportError: If the provider's SDK is not installed
    """
    provider_name_lower = provider_name.lower()

    provider_class = _PROVIDER_REGISTRY.get(provider_name_lower)
    if provider_class:
        return provider_class(**kwargs)

    provider_modules = {
        "openai": ".openai",
        "anthropic": ".anthropic",
    }

    module_path = provider_modules.get(provider_name_lower)
    if not module_path:
        available = ", ".join(sorted(provider_modules.keys()))
        raise ValueError(
            f"Unknown LLM provider: {provider_name}. "
            f"Supported providers: {available}. "
            f"To use a provider, install it with: "
            f"pip install context-compactor[{provider_name_lower}]"
        )

    # Importing the module triggers the @register_provider decorator
    try:
        if provider_name_lower == "openai":
            from . import openai  # noqa: F401
        elif provider_name_lower == "anthropic":
            from . import anthropic  # noqa: F401
    except ImportError as e:
        raise ImportError(
            f"Failed to import {provider_name} provider. "
            f"Install the required SDK with: pip install context-compactor[{provider_name_lower}]"
        ) from e

    provider_class = _PROVIDER_REGISTRY.get(provider_name_lower)
    if not provider_class:
        raise ValueError(
            f"Provider {provider_name} was imported but not registered. "
            f"This is likely a bug in the provider implementation."
        )

    return provider_class(**kwargs)
