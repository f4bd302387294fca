"""Abstract base class for chat history stores.

The abstraction hides:
- Storage format (rows, JSON, etc.)
- Persistence mechanism (file, database, in-memory)
- Connection management
"""

from abc import ABC, abstractmethod

from .models import ChatTranscript


class ChatHistoryStore(ABC):
    """Per-tool store of the visitor's last conversation."""

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store gracefully."""

    @abstractmethod
    async def load(self, tool_id: str) -> ChatTranscript | None:
        """The saved transcript for ``tool_id``, if any."""

    @abstractmethod
    async def save(self, transcript: ChatTranscript) -> bool:
        """Persist a transcript, replacing any previous one for the tool.

        Returns:
            False if the transcript held nothing beyond the welcome message
        """

    @abstractmethod
    async def clear(self, tool_id: str) -> None:
        """Forget the transcript for ``tool_id``."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
