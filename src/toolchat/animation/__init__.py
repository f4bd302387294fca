"""Progressive "typing" reveal of completed replies."""

from .animator import AnimationOutcome, TypingAnimation, TypingAnimator
from .chunks import iter_chunks, pause_after

__all__ = [
    "AnimationOutcome",
    "TypingAnimation",
    "TypingAnimator",
    "iter_chunks",
    "pause_after",
]
