"""Data models for sponsored interstitials."""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SponsorRecord(BaseModel):
    """A sponsored item that may be shown inside a conversation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    description: str = ""
    image_url: str = ""
    link: str
    link_text: str = "Learn more"
    is_active: bool = True
    start_date: datetime
    end_date: datetime
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("start_date", "end_date", "created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps from the record store are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def covers(self, now: datetime) -> bool:
        """Whether the record is live at ``now``."""
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return self.is_active and self.start_date <= now <= self.end_date


class AdAvailability(BaseModel):
    """Result of an inventory availability check."""

    model_config = ConfigDict(frozen=True)

    available: bool = False
    ad: SponsorRecord | None = None

    @classmethod
    def unavailable(cls) -> "AdAvailability":
        return cls(available=False, ad=None)


class GateDecision(BaseModel):
    """Whether to interpose a sponsor before the current turn."""

    model_config = ConfigDict(frozen=True)

    show: bool = False
    ad: SponsorRecord | None = None
