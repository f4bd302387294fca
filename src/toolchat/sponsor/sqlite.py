"""SQLite sponsor inventory.

Stores sponsored records in a local SQLite database file.
Timestamps are stored as ISO-8601 UTC strings so that the active-window
query can compare them lexically.
"""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from .base import SponsorInventory
from .models import AdAvailability, SponsorRecord

_COLUMNS = (
    "id, title, description, image_url, link, link_text, "
    "is_active, start_date, end_date, created_at"
)


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    # Fixed width keeps lexical order equal to time order
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


class SQLiteSponsorInventory(SponsorInventory):
    """SQLite-backed sponsor inventory."""

    def __init__(self, path: str | Path = "./sponsors.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database and create the schema if needed."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._create_schema()

    async def _create_schema(self) -> None:
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS sponsor_ads (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                image_url TEXT NOT NULL DEFAULT '',
                link TEXT NOT NULL,
                link_text TEXT NOT NULL DEFAULT 'Learn more',
                is_active INTEGER NOT NULL DEFAULT 1,
                start_date TEXT NOT NULL,
                end_date TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_sponsor_ads_window
            ON sponsor_ads(is_active, start_date, end_date)
        """)
        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("Sponsor inventory is not connected")
        return self._connection

    @staticmethod
    def _row_to_record(row: tuple) -> SponsorRecord:
        (record_id, title, description, image_url, link, link_text,
         is_active, start_date, end_date, created_at) = row
        return SponsorRecord(
            id=record_id,
            title=title,
            description=description,
            image_url=image_url,
            link=link,
            link_text=link_text,
            is_active=bool(is_active),
            start_date=datetime.fromisoformat(start_date),
            end_date=datetime.fromisoformat(end_date),
            created_at=datetime.fromisoformat(created_at),
        )

    async def check_active(self, now: datetime) -> AdAvailability:
        connection = self._require_connection()
        stamp = _to_utc_text(now)
        async with connection.execute(
            f"""
            SELECT {_COLUMNS}
            FROM sponsor_ads
            WHERE is_active = 1 AND start_date <= ? AND end_date >= ?
            ORDER BY created_at DESC
            LIMIT 1
            """,
            (stamp, stamp),
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return AdAvailability.unavailable()
        return AdAvailability(available=True, ad=self._row_to_record(row))

    async def add_record(self, record: SponsorRecord) -> None:
        connection = self._require_connection()
        await connection.execute(
            f"""
            INSERT OR REPLACE INTO sponsor_ads ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.title,
                record.description,
                record.image_url,
                record.link,
                record.link_text,
                int(record.is_active),
                _to_utc_text(record.start_date),
                _to_utc_text(record.end_date),
                _to_utc_text(record.created_at),
            ),
        )
        await connection.commit()

    async def list_records(self) -> list[SponsorRecord]:
        connection = self._require_connection()
        async with connection.execute(
            f"SELECT {_COLUMNS} FROM sponsor_ads ORDER BY created_at DESC"
        ) as cursor:
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
