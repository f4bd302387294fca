"""In-memory sponsor inventory.

Records live in a list and vanish when the process exits.
Suitable for tests and single-process demos.
"""

from datetime import datetime

from .base import SponsorInventory
from .models import AdAvailability, SponsorRecord


class InMemorySponsorInventory(SponsorInventory):
    """List-backed sponsor inventory."""

    def __init__(self, records: list[SponsorRecord] | None = None):
        self._records: list[SponsorRecord] = list(records or [])

    async def connect(self) -> None:
        """Initialize inventory (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close inventory (no-op for in-memory)."""
        pass

    async def check_active(self, now: datetime) -> AdAvailability:
        live = [record for record in self._records if record.covers(now)]
        if not live:
            return AdAvailability.unavailable()
        newest = max(live, key=lambda record: record.created_at)
        return AdAvailability(available=True, ad=newest)

    async def add_record(self, record: SponsorRecord) -> None:
        self._records.append(record)

    async def list_records(self) -> list[SponsorRecord]:
        return sorted(self._records, key=lambda record: record.created_at, reverse=True)

    @property
    def backend_type(self) -> str:
        return "memory"
