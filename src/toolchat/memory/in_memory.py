"""In-memory chat history store.

Data is lost when the application exits.
"""

from .base import ChatHistoryStore
from .models import ChatTranscript


class InMemoryChatHistoryStore(ChatHistoryStore):
    """Dict-backed chat history (session-only)."""

    def __init__(self):
        self._transcripts: dict[str, ChatTranscript] = {}

    async def connect(self) -> None:
        """Initialize store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close store (no-op for in-memory)."""
        pass

    async def load(self, tool_id: str) -> ChatTranscript | None:
        transcript = self._transcripts.get(tool_id)
        return transcript.model_copy(deep=True) if transcript else None

    async def save(self, transcript: ChatTranscript) -> bool:
        if not transcript.worth_saving:
            return False
        self._transcripts[transcript.tool_id] = transcript.model_copy(deep=True)
        return True

    async def clear(self, tool_id: str) -> None:
        self._transcripts.pop(tool_id, None)

    @property
    def backend_type(self) -> str:
        return "memory"
