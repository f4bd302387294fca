"""Abstract base class for sponsor inventories.

The abstraction hides where sponsored records live (in memory, a local
database, a hosted record store) and how the active window is queried.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import AdAvailability, SponsorRecord


class SponsorInventory(ABC):
    """Source of sponsored records keyed on their active time window."""

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the inventory backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the inventory backend gracefully."""

    @abstractmethod
    async def check_active(self, now: datetime) -> AdAvailability:
        """Return the most recently created record live at ``now``.

        A record is live when it is flagged active and
        ``start_date <= now <= end_date``.
        """

    @abstractmethod
    async def add_record(self, record: SponsorRecord) -> None:
        """Store a sponsored record."""

    @abstractmethod
    async def list_records(self) -> list[SponsorRecord]:
        """All stored records, newest first."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
