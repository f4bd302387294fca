"""Unit tests for the chat history module."""
import pytest

from toolchat.memory import (
    ChatHistoryStore,
    ChatTranscript,
    TranscriptEntry,
    create_chat_history_store,
)


def _transcript(tool_id: str = "copy-polisher", turns: int = 1) -> ChatTranscript:
    messages = [TranscriptEntry(role="assistant", content="Welcome!")]
    for i in range(turns):
        messages.append(TranscriptEntry(role="user", content=f"question {i}"))
        messages.append(TranscriptEntry(role="assistant", content=f"answer {i}"))
    return ChatTranscript(tool_id=tool_id, messages=messages, user_turn_count=turns)


class TestChatTranscript:
    """Tests for ChatTranscript."""

    def test_welcome_only_not_worth_saving(self):
        assert not _transcript(turns=0).worth_saving
        assert _transcript(turns=1).worth_saving

    def test_rejects_sponsor_role(self):
        with pytest.raises(ValueError):
            TranscriptEntry(role="sponsor", content="ad")

    def test_rejects_negative_turn_count(self):
        with pytest.raises(ValueError):
            ChatTranscript(tool_id="x", user_turn_count=-1)


class TestInMemoryChatHistoryStore:
    """Tests for the in-memory store."""

    @pytest.mark.asyncio
    async def test_save_and_load(self):
        store = create_chat_history_store("memory")
        await store.connect()

        assert await store.save(_transcript(turns=2))
        loaded = await store.load("copy-polisher")

        assert loaded is not None
        assert [m.content for m in loaded.messages][-1] == "answer 1"
        assert loaded.user_turn_count == 2
        assert await store.load("unknown") is None
        assert store.backend_type == "memory"

    @pytest.mark.asyncio
    async def test_loaded_copy_is_independent(self):
        store = create_chat_history_store("memory")
        await store.save(_transcript())

        loaded = await store.load("copy-polisher")
        loaded.messages.clear()

        assert len((await store.load("copy-polisher")).messages) == 3

    @pytest.mark.asyncio
    async def test_welcome_only_is_not_saved(self):
        store = create_chat_history_store("memory")

        assert not await store.save(_transcript(turns=0))
        assert await store.load("copy-polisher") is None

    @pytest.mark.asyncio
    async def test_clear(self):
        store = create_chat_history_store("memory")
        await store.save(_transcript())

        await store.clear("copy-polisher")

        assert await store.load("copy-polisher") is None


class TestSQLiteChatHistoryStore:
    """Tests for the SQLite store."""

    @pytest.mark.asyncio
    async def test_round_trip_across_connections(self, tmp_path):
        path = tmp_path / "history.db"
        store = create_chat_history_store("sqlite", path=path)
        await store.connect()
        try:
            assert await store.save(_transcript(turns=2))
        finally:
            await store.disconnect()

        reopened = create_chat_history_store("sqlite", path=path)
        await reopened.connect()
        try:
            loaded = await reopened.load("copy-polisher")
        finally:
            await reopened.disconnect()

        assert loaded is not None
        assert [m.role for m in loaded.messages] == [
            "assistant", "user", "assistant", "user", "assistant"
        ]
        assert loaded.messages[1].content == "question 0"
        assert loaded.user_turn_count == 2
        assert reopened.backend_type == "sqlite"

    @pytest.mark.asyncio
    async def test_save_replaces_previous(self, tmp_path):
        store = create_chat_history_store("sqlite", path=tmp_path / "history.db")
        await store.connect()
        try:
            await store.save(_transcript(turns=3))
            await store.save(_transcript(turns=1))
            loaded = await store.load("copy-polisher")
        finally:
            await store.disconnect()

        assert len(loaded.messages) == 3
        assert loaded.user_turn_count == 1

    @pytest.mark.asyncio
    async def test_clear_and_isolation(self, tmp_path):
        store = create_chat_history_store("sqlite", path=tmp_path / "history.db")
        await store.connect()
        try:
            await store.save(_transcript("tool-a"))
            await store.save(_transcript("tool-b"))
            await store.clear("tool-a")

            assert await store.load("tool-a") is None
            assert await store.load("tool-b") is not None
        finally:
            await store.disconnect()


class TestChatHistoryFactory:
    """Tests for create_chat_history_store."""

    def test_unsupported_backend(self):
        with pytest.raises(ValueError, match="Unsupported history backend"):
            create_chat_history_store("postgres")

    def test_store_is_abstract(self):
        with pytest.raises(TypeError):
            ChatHistoryStore()  # type: ignore
