"""Data models for saved chat transcripts.

Independent of the storage backend used.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TranscriptEntry(BaseModel):
    """One settled turn of a saved conversation."""

    role: Literal["user", "assistant"]
    content: str
    created_at: datetime = Field(default_factory=_utc_now)


class ChatTranscript(BaseModel):
    """A tool conversation as persisted between visits."""

    tool_id: str = Field(description="Tool the conversation belongs to")
    messages: list[TranscriptEntry] = Field(default_factory=list)
    user_turn_count: int = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=_utc_now)

    @property
    def worth_saving(self) -> bool:
        """More than the welcome message."""
        return len(self.messages) > 1
