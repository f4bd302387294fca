"""Unit tests for the typing animation module."""
import random

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conftest import RecordingSleep, SteppedSleep, settle
from toolchat.animation import AnimationOutcome, TypingAnimator, iter_chunks, pause_after
from toolchat.session import Message, MessageRole

REPLY = "Sure, here it is. Shorter copy reads faster; readers stay longer!"


def _placeholder() -> Message:
    return Message(role=MessageRole.ASSISTANT, is_typing=True)


class TestChunks:
    """Tests for chunking and pacing."""

    @given(st.text(), st.integers(min_value=0, max_value=2**32))
    def test_chunks_concatenate_to_text(self, text: str, seed: int):
        """Property test: chunks are 1-3 characters and rebuild the text."""
        chunks = [chunk for chunk, _ in iter_chunks(text, random.Random(seed))]

        assert "".join(chunks) == text
        assert all(1 <= len(chunk) <= 3 for chunk in chunks)

    @given(st.text(min_size=1, max_size=3), st.integers(min_value=0, max_value=2**32))
    def test_pause_ranges(self, chunk: str, seed: int):
        """Property test: pauses follow the trailing punctuation."""
        delay = pause_after(chunk, random.Random(seed))

        if chunk[-1] in ".!?":
            assert 0.300 <= delay <= 0.700
        elif chunk[-1] in ",:;":
            assert 0.150 <= delay <= 0.350
        else:
            assert 0.015 <= delay <= 0.045

    def test_chunks_are_lazy(self):
        chunks = iter_chunks("abcdefgh", random.Random(1))
        first, _ = next(chunks)
        assert "abcdefgh".startswith(first)


class TestTypingAnimator:
    """Tests for TypingAnimator."""

    @pytest.mark.asyncio
    async def test_runs_to_completion(self):
        message = _placeholder()
        sleep = RecordingSleep()
        animator = TypingAnimator(rng=random.Random(3), sleep=sleep)
        snapshots: list[str] = []

        animation = animator.animate(
            message, REPLY, on_update=lambda: snapshots.append(message.display_content)
        )
        outcome = await animation.wait()

        assert outcome == AnimationOutcome.COMPLETED
        assert message.content == REPLY
        assert message.display_content == REPLY
        assert not message.is_typing
        assert animator.active is None
        # no pause after the final chunk
        chunk_count = len(list(iter_chunks(REPLY, random.Random(3))))
        assert len(sleep.calls) == chunk_count - 1
        assert all(REPLY.startswith(s) for s in snapshots)

    @pytest.mark.asyncio
    async def test_display_is_always_a_prefix(self):
        """While typing, the shown text is a growing prefix of the reply."""
        message = _placeholder()
        sleep = SteppedSleep()
        animator = TypingAnimator(rng=random.Random(5), sleep=sleep)
        animator.animate(message, REPLY)

        previous = ""
        for _ in range(8):
            await settle()
            assert message.is_typing
            assert REPLY.startswith(message.display_content)
            assert len(message.display_content) > len(previous)
            previous = message.display_content
            sleep.release()

    @pytest.mark.asyncio
    async def test_cancel_commits_full_text_synchronously(self):
        message = _placeholder()
        sleep = SteppedSleep()
        animator = TypingAnimator(rng=random.Random(5), sleep=sleep)
        animation = animator.animate(message, REPLY)
        sleep.release(4)
        await settle()
        assert message.display_content != REPLY

        assert animator.cancel_active()

        assert message.display_content == REPLY
        assert not message.is_typing
        assert animation.outcome == AnimationOutcome.CANCELLED
        assert await animation.wait() == AnimationOutcome.CANCELLED
        assert not animation.cancel()

    @pytest.mark.asyncio
    async def test_new_animation_cancels_previous(self):
        first, second = _placeholder(), _placeholder()
        animator = TypingAnimator(rng=random.Random(2), sleep=SteppedSleep())

        earlier = animator.animate(first, REPLY)
        animator.animate(second, "Another reply.")

        assert earlier.outcome == AnimationOutcome.CANCELLED
        assert first.display_content == REPLY
        assert animator.active is not earlier

    @pytest.mark.asyncio
    async def test_empty_text_completes_immediately(self):
        message = _placeholder()
        animator = TypingAnimator(sleep=SteppedSleep())

        animation = animator.animate(message, "")

        assert animation.done
        assert animation.outcome == AnimationOutcome.COMPLETED
        assert not message.is_typing

    @pytest.mark.asyncio
    async def test_update_callback_failure_is_contained(self):
        message = _placeholder()
        animator = TypingAnimator(rng=random.Random(1), sleep=RecordingSleep())

        def explode() -> None:
            raise RuntimeError("render failed")

        animation = animator.animate(message, "Hello there.", on_update=explode)

        assert await animation.wait() == AnimationOutcome.COMPLETED
        assert message.display_content == "Hello there."

    def test_cancel_without_animation(self):
        assert not TypingAnimator().cancel_active()
