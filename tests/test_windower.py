"""Unit tests for the context windowing module."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from toolchat.config import SUMMARY_PREFIX
from toolchat.context import ContextWindower
from toolchat.llm import ChatMessage
from toolchat.session import Message, MessageRole


def _turns(count: int) -> list[ChatMessage]:
    return [
        ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
        for i in range(count)
    ]


class TestEligibility:
    """Tests for which turns may travel to the completion service."""

    def test_drops_sponsor_and_empty_turns(self):
        """Sponsor turns and placeholders never reach the context."""
        windower = ContextWindower()
        history = [
            Message(sequence=0, role=MessageRole.ASSISTANT, content="Hi!"),
            Message(sequence=1, role=MessageRole.USER, content="hello"),
            Message(sequence=2, role=MessageRole.SPONSOR, content="Buy things"),
            Message(sequence=3, role=MessageRole.ASSISTANT, content="", is_typing=True),
        ]

        turns = windower.eligible(history)

        assert [t.role for t in turns] == ["assistant", "user"]
        assert [t.content for t in turns] == ["Hi!", "hello"]

    def test_accepts_plain_role_strings(self):
        windower = ContextWindower()
        turns = windower.eligible([ChatMessage(role="user", content="a")])
        assert turns == [ChatMessage(role="user", content="a")]


class TestWindow:
    """Tests for the bounded history."""

    def test_short_history_passes_through(self):
        """Histories within the limit are returned verbatim."""
        windower = ContextWindower(limit=10)
        history = _turns(10)

        assert windower.window(history) == history

    def test_fifteen_turns_with_limit_ten(self):
        """A long history becomes one summary plus the nine latest turns."""
        windower = ContextWindower(limit=10)
        history = _turns(15)

        window = windower.window(history)

        assert len(window) == 10
        assert window[0].role == "system"
        assert window[0].content.startswith(SUMMARY_PREFIX)
        for i in range(6):
            assert f"turn {i}" in window[0].content
        assert window[1:] == history[6:]

        # plus the new user turn
        assert len(windower.build(history, "next")) == 11

    def test_summary_truncates_long_turns(self):
        windower = ContextWindower(limit=2, turn_chars=10)
        history = [
            ChatMessage(role="user", content="x" * 50),
            ChatMessage(role="assistant", content="short"),
            ChatMessage(role="user", content="latest"),
        ]

        window = windower.window(history)

        assert window[0].content == SUMMARY_PREFIX + "user: " + "x" * 10 + "... | assistant: short"
        assert window[1].content == "latest"

    def test_limit_override(self):
        windower = ContextWindower(limit=10)
        window = windower.window(_turns(6), limit=4)
        assert len(window) == 4
        assert window[0].role == "system"

    def test_limit_too_small_rejected(self):
        with pytest.raises(ValueError):
            ContextWindower(limit=1)
        with pytest.raises(ValueError):
            ContextWindower().window(_turns(3), limit=1)

    def test_build_appends_new_turn(self):
        windower = ContextWindower()
        built = windower.build(_turns(2), "what next?")
        assert built[-1] == ChatMessage(role="user", content="what next?")

    @given(
        st.integers(min_value=0, max_value=60),
        st.integers(min_value=2, max_value=20),
    )
    def test_window_never_exceeds_limit(self, count: int, limit: int):
        """Property test: the window holds at most ``limit`` entries."""
        windower = ContextWindower(limit=limit)
        history = _turns(count)

        window = windower.window(history)

        assert len(window) <= limit
        if count <= limit:
            assert window == history
        else:
            assert window[0].role == "system"
            assert window[1:] == history[-(limit - 1):]
