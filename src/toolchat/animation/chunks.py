"""Chunking and pacing for progressive reveal of a completed reply."""

import random
from collections.abc import Iterator

from ..config import (
    CLAUSE_END_CHARS,
    SENTENCE_END_CHARS,
    TYPING_BASE_DELAY,
    TYPING_CHUNK_MAX,
    TYPING_CHUNK_MIN,
    TYPING_CLAUSE_DELAY,
    TYPING_SENTENCE_DELAY,
)


def pause_after(chunk: str, rng: random.Random) -> float:
    """Delay in seconds before the chunk following ``chunk``."""
    last = chunk[-1:] if chunk else ""
    if last in SENTENCE_END_CHARS:
        low, span = TYPING_SENTENCE_DELAY
    elif last in CLAUSE_END_CHARS:
        low, span = TYPING_CLAUSE_DELAY
    else:
        low, span = TYPING_BASE_DELAY
    return low + rng.random() * span


def iter_chunks(text: str, rng: random.Random | None = None) -> Iterator[tuple[str, float]]:
    """Split ``text`` into 1-3 character chunks, each with the pause after it.

    The generator is lazy, so a consumer can stop at any point and the
    remaining text is simply never produced.

    Args:
        text: Full reply text
        rng: Random source (a fresh one if None)

    Yields:
        (chunk, delay_seconds) pairs whose chunks concatenate to ``text``
    """
    rng = rng or random.Random()
    index = 0
    while index < len(text):
        size = rng.randint(TYPING_CHUNK_MIN, TYPING_CHUNK_MAX)
        chunk = text[index:index + size]
        index += len(chunk)
        yield chunk, pause_after(chunk, rng)
