"""Shared value types used across the chat engine components."""

from pydantic import BaseModel, ConfigDict, Field

from .config import TOAST_SECONDS, WELCOME_TEMPLATE


class ToolContext(BaseModel):
    """The directory tool a conversation is bound to."""

    model_config = ConfigDict(frozen=True)

    tool_id: str = Field(description="Directory identifier of the tool")
    tool_name: str = Field(description="Display name of the tool")
    tool_prompt: str = Field(description="Operator-configured instructions for the tool")
    suggestions_enabled: bool = Field(default=True, description="Offer follow-up suggestions")
    welcome_message: str | None = Field(default=None, description="Custom first assistant line")

    @property
    def has_valid_prompt(self) -> bool:
        return bool(self.tool_prompt.strip())

    def welcome_text(self) -> str:
        """The assistant line a fresh conversation opens with."""
        if self.welcome_message and self.welcome_message.strip():
            return self.welcome_message
        return WELCOME_TEMPLATE.format(tool_name=self.tool_name)


class ErrorNotice(BaseModel):
    """A user-visible notice (toast) describing a failed turn."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(description="Machine-readable error code")
    title: str = Field(default="Error")
    message: str = Field(description="Text shown to the visitor")
    duration_seconds: float = Field(default=TOAST_SECONDS)
