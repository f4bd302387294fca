"""Data models owned by a conversation session."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from uuid_extensions import uuid7

from ..sponsor import SponsorRecord


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SPONSOR = "sponsor"


class TurnState(str, Enum):
    """Where the session is within the current turn."""

    IDLE = "idle"
    GATING = "gating"
    INTERSTITIAL = "interstitial"
    COMPOSING = "composing"
    STREAMING = "streaming"
    ERRORED = "errored"


class Message(BaseModel):
    """One entry of the conversation.

    ``content`` is the final text; ``display_content`` is the prefix of it
    shown while an animation owns the message.
    """

    id: str = Field(default_factory=lambda: str(uuid7()))
    sequence: int = Field(default=0, description="Creation order within the session")
    role: MessageRole
    content: str = ""
    display_content: str = ""
    is_typing: bool = False
    is_sponsor_resolved: bool = False
    sponsor: SponsorRecord | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def rendered_text(self) -> str:
        """Text a surface should show right now."""
        return self.display_content if self.is_typing else self.content

    @property
    def is_pending(self) -> bool:
        """An assistant placeholder still waiting for its reply."""
        return self.role == MessageRole.ASSISTANT and self.is_typing and not self.content

    def mark_sponsor_resolved(self) -> None:
        """Irreversibly mark the interstitial countdown as elapsed."""
        if self.role != MessageRole.SPONSOR:
            raise ValueError("Only sponsor messages can be resolved")
        self.is_sponsor_resolved = True


class SuggestionSet(BaseModel):
    """Follow-up suggestions computed for one point of the conversation."""

    model_config = ConfigDict(frozen=True)

    items: tuple[str, ...] = ()
    token: int = Field(default=0, description="Supersession token the set was computed for")

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)
