from typing import Any

from .base import LLMProvider
from .providers import AnthropicProvider, OpenAIProvider

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    This factory function hides the instantiation logic for different providers.

    Args:
        provider: Provider type ('openrouter', 'openai', 'anthropic')
        **config: Provider-specific configuration
            For OpenRouter:
                - api_key: str (required)
                - model: str (default: 'meta-llama/llama-4-maverick:free')
                - base_url: str (default: OPENROUTER_BASE_URL)
                - app_title / app_url: attribution headers
            For OpenAI:
                - api_key: str (required)
                - model: str (default: 'gpt-4o-mini')
                - base_url: str | None
                - organization: str | None
            For Anthropic (Claude):
                - api_key: str (required)
                - model: str (default: 'claude-sonnet-4-20250514')
                - base_url: str | None

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> provider = create_llm_provider(
        ...     "openrouter",
        ...     api_key="sk-or-...",
        ...     model="meta-llama/llama-4-maverick:free"
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower == "openrouter":
        if "api_key" not in config:
            raise TypeError("OpenRouter provider requires 'api_key' in config")
        config.setdefault("base_url", OPENROUTER_BASE_URL)
        config.setdefault("model", "meta-llama/llama-4-maverick:free")
        return OpenAIProvider(**config)

    if provider_lower == "openai":
        if "api_key" not in config:
            raise TypeError("OpenAI provider requires 'api_key' in config")
        return OpenAIProvider(**config)

    if provider_lower in ("anthropic", "claude"):
        if "api_key" not in config:
            raise TypeError("Anthropic provider requires 'api_key' in config")
        return AnthropicProvider(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'openrouter', 'openai', 'anthropic'"
    )
