from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """A single role-tagged turn sent to a completion backend."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the turn: 'user', 'assistant', or 'system'")
    content: str = Field(description="Text of the turn")


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )
