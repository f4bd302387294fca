"""Conversation session engine."""

from .models import Message, MessageRole, SuggestionSet, TurnState
from .notifications import (
    AnalyticsRecorder,
    ChatEvent,
    InMemoryAnalyticsRecorder,
    InMemoryUsageRecorder,
    LoggingAnalyticsRecorder,
    Notifier,
    UsageRecorder,
)
from .session import GUEST_LIMIT_NOTICE, INVALID_PROMPT_NOTICE, ConversationSession

__all__ = [
    "AnalyticsRecorder",
    "ChatEvent",
    "ConversationSession",
    "GUEST_LIMIT_NOTICE",
    "INVALID_PROMPT_NOTICE",
    "InMemoryAnalyticsRecorder",
    "InMemoryUsageRecorder",
    "LoggingAnalyticsRecorder",
    "Message",
    "MessageRole",
    "Notifier",
    "SuggestionSet",
    "TurnState",
    "UsageRecorder",
]
