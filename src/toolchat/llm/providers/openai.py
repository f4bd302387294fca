"""OpenAI-compatible chat completion provider.

Serves both the OpenAI API and OpenRouter, which speaks the same Chat
Completions protocol behind a different base URL.
"""

from typing import Any

from openai import AsyncOpenAI

from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible LLM provider implementation.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion
    - Authentication mechanism
    - Attribution headers for OpenRouter
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        organization: str | None = None,
        app_title: str | None = None,
        app_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI-compatible provider.

        Args:
            api_key: API key for the endpoint
            model: Default model to use
            base_url: Optional custom API base URL (OpenRouter, proxies)
            organization: Optional organization ID
            app_title: Optional X-Title attribution header
            app_url: Optional HTTP-Referer attribution header
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        headers: dict[str, str] = dict(client_kwargs.pop("default_headers", None) or {})
        if app_title:
            headers["X-Title"] = app_title
        if app_url:
            headers["HTTP-Referer"] = app_url
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            default_headers=headers or None,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion.

        Args:
            messages: Conversation turns
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with generated content
        """
        openai_messages = [
            {"role": msg.role, "content": msg.content}
            for msg in messages
        ]

        # Only include max_tokens if set
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": openai_messages,
            "temperature": temperature,
            **kwargs
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens

        completion = await self._client.chat.completions.create(**request_params)

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""

        return LLMResponse(
            content=content.strip(),
            model=completion.model or request_params["model"],
            usage=usage
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()
