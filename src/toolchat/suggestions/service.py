"""Suggestion services.

Hidden design decisions:
- Which model and prompt produce the suggestions
- How much conversation context is sent
- The request timeout
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..completion import RateLimiter, RateLimitExceeded
from ..config import (
    SUGGESTION_CONTEXT_TURNS,
    SUGGESTION_MAX_TOKENS,
    SUGGESTION_TEMPERATURE,
    SUGGESTION_TIMEOUT_SECONDS,
)
from ..llm import ChatMessage, LLMProvider
from ..models import ToolContext
from ..prompts import get_suggestion_prompt
from .parsing import parse_suggestions

logger = logging.getLogger(__name__)


class SuggestionService(ABC):
    """Produces short follow-up messages for the visitor to pick from."""

    @abstractmethod
    async def generate(
        self,
        tool: ToolContext,
        last_assistant_text: str,
        recent_history: Sequence[ChatMessage],
        count: int,
    ) -> list[str]:
        """Return up to ``count`` suggestions. May raise on failure."""


class LLMSuggestionService(SuggestionService):
    """Suggestion service backed by a chat completion model."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        model: str | None = None,
        timeout: float = SUGGESTION_TIMEOUT_SECONDS,
        max_tokens: int = SUGGESTION_MAX_TOKENS,
        temperature: float = SUGGESTION_TEMPERATURE,
        context_turns: int = SUGGESTION_CONTEXT_TURNS,
        rate_limiter: RateLimiter | None = None,
    ):
        self._provider = provider
        self._model = model
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._context_turns = context_turns
        self._rate_limiter = rate_limiter

    def build_user_prompt(
        self,
        last_assistant_text: str,
        recent_history: Sequence[ChatMessage],
        count: int,
    ) -> str:
        recent = list(recent_history)[-self._context_turns:] if self._context_turns > 0 else []
        context = "\n".join(f"{turn.role}: {turn.content}" for turn in recent)
        return (
            f"Based on this conversation context:\n{context}\n\n"
            f"The last assistant message was: \"{last_assistant_text}\"\n\n"
            f"Generate exactly {count} natural follow-up suggestions. "
            "Return ONLY a valid JSON object with no additional text:\n\n"
            '{"suggestions": ["suggestion 1", "suggestion 2", "suggestion 3"]}'
        )

    async def generate(
        self,
        tool: ToolContext,
        last_assistant_text: str,
        recent_history: Sequence[ChatMessage],
        count: int,
    ) -> list[str]:
        if not last_assistant_text.strip():
            raise ValueError("Last assistant message is required for suggestions")

        if self._rate_limiter is not None and not self._rate_limiter.try_acquire():
            raise RateLimitExceeded(
                "Rate limit exceeded for suggestions",
                retry_after=self._rate_limiter.reset_after(),
            )

        messages = [
            ChatMessage(role="system", content=get_suggestion_prompt(tool.tool_name)),
            ChatMessage(
                role="user",
                content=self.build_user_prompt(last_assistant_text, recent_history, count),
            ),
        ]
        response = await asyncio.wait_for(
            self._provider.chat_completion(
                messages,
                model=self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            ),
            timeout=self._timeout,
        )
        suggestions = parse_suggestions(response.content, count)
        if not suggestions:
            logger.debug("No suggestions parsed from response: %r", response.content[:200])
        return suggestions
