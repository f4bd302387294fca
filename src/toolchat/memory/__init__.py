"""Chat history persistence.

Keeps each tool's last conversation so it survives closing the chat.
"""

from .base import ChatHistoryStore
from .factory import create_chat_history_store
from .models import ChatTranscript, TranscriptEntry

__all__ = [
    "ChatHistoryStore",
    "ChatTranscript",
    "TranscriptEntry",
    "create_chat_history_store",
]
