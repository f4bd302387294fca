"""SQLite chat history store.

Keeps one transcript per tool in a SQLite database file using aiosqlite.
"""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from .base import ChatHistoryStore
from .models import ChatTranscript, TranscriptEntry


class SQLiteChatHistoryStore(ChatHistoryStore):
    """SQLite-backed chat history, persistent across runs."""

    def __init__(self, path: str | Path = "./chat_history.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("PRAGMA foreign_keys = ON")
        await self._create_schema()

    async def _create_schema(self) -> None:
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS chats (
                tool_id TEXT PRIMARY KEY,
                user_turn_count INTEGER NOT NULL DEFAULT 0,
                updated_at TEXT NOT NULL
            )
        """)
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS chat_messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                tool_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY (tool_id) REFERENCES chats(tool_id) ON DELETE CASCADE
            )
        """)
        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_chat_messages_tool
            ON chat_messages(tool_id, position)
        """)
        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def load(self, tool_id: str) -> ChatTranscript | None:
        async with self._connection.execute(
            "SELECT user_turn_count, updated_at FROM chats WHERE tool_id = ?",
            (tool_id,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        user_turn_count, updated_at = row

        async with self._connection.execute(
            """
            SELECT role, content, created_at
            FROM chat_messages
            WHERE tool_id = ?
            ORDER BY position ASC
            """,
            (tool_id,)
        ) as cursor:
            rows = await cursor.fetchall()

        return ChatTranscript(
            tool_id=tool_id,
            messages=[
                TranscriptEntry(
                    role=role,
                    content=content,
                    created_at=datetime.fromisoformat(created_at),
                )
                for role, content, created_at in rows
            ],
            user_turn_count=user_turn_count,
            updated_at=datetime.fromisoformat(updated_at),
        )

    async def save(self, transcript: ChatTranscript) -> bool:
        if not transcript.worth_saving:
            return False

        now = datetime.now(timezone.utc).isoformat()
        await self._connection.execute("""
            INSERT INTO chats (tool_id, user_turn_count, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(tool_id) DO UPDATE SET
                user_turn_count = excluded.user_turn_count,
                updated_at = excluded.updated_at
        """, (transcript.tool_id, transcript.user_turn_count, now))

        await self._connection.execute(
            "DELETE FROM chat_messages WHERE tool_id = ?",
            (transcript.tool_id,)
        )
        await self._connection.executemany("""
            INSERT INTO chat_messages (tool_id, position, role, content, created_at)
            VALUES (?, ?, ?, ?, ?)
        """, [
            (transcript.tool_id, position, entry.role, entry.content, entry.created_at.isoformat())
            for position, entry in enumerate(transcript.messages)
        ])

        await self._connection.commit()
        return True

    async def clear(self, tool_id: str) -> None:
        await self._connection.execute("DELETE FROM chat_messages WHERE tool_id = ?", (tool_id,))
        await self._connection.execute("DELETE FROM chats WHERE tool_id = ?", (tool_id,))
        await self._connection.commit()

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
