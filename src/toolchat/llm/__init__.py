from .base import LLMProvider
from .factory import OPENROUTER_BASE_URL, create_llm_provider
from .models import ChatMessage, LLMResponse
from .providers import AnthropicProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "OPENROUTER_BASE_URL",
    "ChatMessage",
    "LLMResponse",
    "AnthropicProvider",
    "OpenAIProvider",
]
