"""Completion client: one visitor turn in, one assistant reply out.

Hidden design decisions:
- How the tool's instructions become a system prompt
- Per-attempt timeout enforcement
- Which failures are retried, and how long to back off between attempts
- How SDK/transport exceptions map onto the error taxonomy
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..config import (
    COMPLETION_MAX_INPUT_LENGTH,
    COMPLETION_MAX_RETRIES,
    COMPLETION_MAX_TOKENS,
    COMPLETION_TEMPERATURE,
    COMPLETION_TIMEOUT_SECONDS,
    RETRY_BACKOFF_BASE_SECONDS,
    RETRY_BACKOFF_CAP_SECONDS,
)
from ..llm import ChatMessage, LLMProvider
from ..models import ToolContext
from ..prompts import get_tool_system_prompt
from .errors import (
    CompletionError,
    InputTooLong,
    MissingCredentials,
    RateLimitExceeded,
    UnknownCompletionError,
    classify_error,
)
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class Reply(BaseModel):
    """A completed assistant reply."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Full reply text")
    model: str = Field(default="", description="Model that produced the reply")
    usage: dict[str, int] | None = Field(default=None)
    attempts: int = Field(default=1, description="Attempts used, including the successful one")


class CompletionClient:
    """Wraps an LLMProvider with timeout, bounded retry and error typing.

    Each attempt is independent; nothing from a failed attempt is reused.
    """

    def __init__(
        self,
        provider: LLMProvider | None,
        *,
        model: str | None = None,
        temperature: float = COMPLETION_TEMPERATURE,
        max_tokens: int = COMPLETION_MAX_TOKENS,
        timeout: float = COMPLETION_TIMEOUT_SECONDS,
        max_retries: int = COMPLETION_MAX_RETRIES,
        max_input_length: int = COMPLETION_MAX_INPUT_LENGTH,
        rate_limiter: RateLimiter | None = None,
        backoff_base: float = RETRY_BACKOFF_BASE_SECONDS,
        backoff_cap: float = RETRY_BACKOFF_CAP_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            provider: Completion backend, or None when no API key is configured
            model: Model override (None uses the provider default)
            temperature: Sampling temperature
            max_tokens: Maximum reply tokens
            timeout: Default per-attempt timeout in seconds
            max_retries: Default number of retries after the first attempt
            max_input_length: Longest accepted visitor text
            rate_limiter: Client-side limiter (a fresh default one if None)
            backoff_base: First backoff delay in seconds, doubled per retry
            backoff_cap: Longest backoff delay in seconds
            sleep: Awaitable sleep used for backoff
        """
        self._provider = provider
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._max_retries = max_retries
        self._max_input_length = max_input_length
        self._rate_limiter = rate_limiter or RateLimiter()
        self._backoff_base = backoff_base
        self._backoff_cap = backoff_cap
        self._sleep = sleep

    @property
    def configured(self) -> bool:
        """Whether a provider (and therefore an API key) is available."""
        return self._provider is not None

    def build_messages(
        self,
        text: str,
        tool: ToolContext,
        history: Sequence[ChatMessage],
    ) -> list[ChatMessage]:
        """Assemble the request payload: system prompt, history, new turn."""
        system = ChatMessage(
            role="system",
            content=get_tool_system_prompt(tool.tool_name, tool.tool_prompt),
        )
        return [system, *history, ChatMessage(role="user", content=text)]

    def _backoff_delay(self, attempt: int) -> float:
        return min(self._backoff_base * (2 ** attempt), self._backoff_cap)

    async def complete(
        self,
        text: str,
        *,
        tool: ToolContext,
        history: Sequence[ChatMessage] = (),
        max_retries: int | None = None,
        timeout: float | None = None,
    ) -> Reply:
        """Request a reply for ``text``.

        Args:
            text: The visitor's message
            tool: Tool whose instructions shape the reply
            history: Bounded prior turns (already windowed)
            max_retries: Retries after the first attempt (default from init)
            timeout: Per-attempt timeout in seconds (default from init)

        Returns:
            The completed Reply

        Raises:
            MissingCredentials: No provider configured
            InputTooLong: Text exceeds the provider limit
            RateLimitExceeded: Throttled, client-side or by the backend
            CompletionTimeout: Every attempt timed out (last one reported)
            UnknownCompletionError: Any other failure (last one reported)
        """
        if self._provider is None:
            raise MissingCredentials("No completion API key configured")

        if len(text) > self._max_input_length:
            raise InputTooLong(
                f"Input too long (max {self._max_input_length} characters)",
                details={"length": len(text)},
            )

        if not self._rate_limiter.try_acquire():
            reset_after = self._rate_limiter.reset_after()
            raise RateLimitExceeded(
                f"Rate limit exceeded. Try again in {reset_after:.0f} seconds",
                retry_after=reset_after,
            )

        retries = self._max_retries if max_retries is None else max(0, max_retries)
        attempt_timeout = self._timeout if timeout is None else timeout
        messages = self.build_messages(text, tool, history)

        last_error: CompletionError | None = None
        for attempt in range(retries + 1):
            try:
                response = await asyncio.wait_for(
                    self._provider.chat_completion(
                        messages,
                        model=self._model,
                        temperature=self._temperature,
                        max_tokens=self._max_tokens,
                    ),
                    timeout=attempt_timeout,
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                last_error = classify_error(exc)
                logger.warning(
                    "Completion attempt %d/%d for tool %s failed: %s (%s)",
                    attempt + 1, retries + 1, tool.tool_id, last_error.code, last_error.message,
                )
                if not last_error.retryable or attempt >= retries:
                    raise last_error from exc
                await self._sleep(self._backoff_delay(attempt))
                continue

            content = response.content.strip()
            if not content:
                last_error = UnknownCompletionError("Invalid response format from AI service")
                logger.warning(
                    "Completion attempt %d/%d for tool %s returned no content",
                    attempt + 1, retries + 1, tool.tool_id,
                )
                if attempt >= retries:
                    raise last_error
                await self._sleep(self._backoff_delay(attempt))
                continue

            return Reply(
                content=content,
                model=response.model,
                usage=response.usage,
                attempts=attempt + 1,
            )

        raise last_error or UnknownCompletionError("Completion failed")

    async def close(self) -> None:
        """Close the underlying provider."""
        if self._provider is not None:
            await self._provider.close()
