"""Bounded conversation context.

Hides how much of a long conversation is sent with each request: the most
recent turns travel verbatim, older ones are folded into one summary turn.
"""

from collections.abc import Iterable
from typing import Any

from ..config import (
    DEFAULT_CONTEXT_LIMIT,
    SUMMARY_PREFIX,
    SUMMARY_SEPARATOR,
    SUMMARY_TURN_CHARS,
)
from ..llm import ChatMessage

_CONVERSATION_ROLES = ("user", "assistant")


def _role_of(turn: Any) -> str:
    role = turn.role
    return str(getattr(role, "value", role))


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class ContextWindower:
    """Builds the bounded history sent to the completion service."""

    def __init__(
        self,
        limit: int = DEFAULT_CONTEXT_LIMIT,
        turn_chars: int = SUMMARY_TURN_CHARS,
    ):
        if limit < 2:
            raise ValueError("Context limit must leave room for a summary and one recent turn")
        self._limit = limit
        self._turn_chars = turn_chars

    @property
    def limit(self) -> int:
        return self._limit

    def eligible(self, history: Iterable[Any]) -> list[ChatMessage]:
        """Keep settled user/assistant turns only.

        Sponsor turns, pending placeholders and empty turns are dropped.
        """
        turns = []
        for turn in history:
            role = _role_of(turn)
            if role not in _CONVERSATION_ROLES:
                continue
            if not turn.content.strip():
                continue
            turns.append(ChatMessage(role=role, content=turn.content))
        return turns

    def summarize(self, turns: Iterable[ChatMessage]) -> ChatMessage:
        """Fold turns into a single role-tagged summary entry."""
        parts = [
            f"{turn.role}: {_truncate(turn.content, self._turn_chars)}"
            for turn in turns
        ]
        return ChatMessage(role="system", content=SUMMARY_PREFIX + SUMMARY_SEPARATOR.join(parts))

    def window(self, history: Iterable[Any], limit: int | None = None) -> list[ChatMessage]:
        """Bound the history to at most ``limit`` entries.

        Args:
            history: Prior turns (objects with ``role`` and ``content``)
            limit: Override for the configured limit

        Returns:
            The eligible turns verbatim if they fit, otherwise exactly
            ``limit`` entries: one summary followed by the ``limit - 1``
            most recent turns
        """
        bound = self._limit if limit is None else limit
        if bound < 2:
            raise ValueError("Context limit must leave room for a summary and one recent turn")

        turns = self.eligible(history)
        if len(turns) <= bound:
            return turns

        split = len(turns) - (bound - 1)
        older, recent = turns[:split], turns[split:]
        return [self.summarize(older), *recent]

    def build(
        self,
        history: Iterable[Any],
        new_text: str,
        limit: int | None = None,
    ) -> list[ChatMessage]:
        """Bounded history followed by the new user turn."""
        return [*self.window(history, limit), ChatMessage(role="user", content=new_text)]
