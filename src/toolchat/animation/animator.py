"""Typing animation as an explicit cancellable task object.

Hidden design decisions:
- Chunk sizes and pauses (see chunks.py)
- That each animation runs as one asyncio task sleeping between chunks
- That cancelling commits the whole text synchronously, before returning
- That an animator owns at most one running animation
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Protocol

from .chunks import iter_chunks

logger = logging.getLogger(__name__)


class AnimationOutcome(str, Enum):
    """How an animation ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TypingTarget(Protocol):
    """A message whose displayed text an animation drives."""

    content: str
    display_content: str
    is_typing: bool


class TypingAnimation:
    """Progressive reveal of ``full_text`` into one message."""

    def __init__(
        self,
        message: TypingTarget,
        full_text: str,
        *,
        rng: random.Random,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_update: Callable[[], None] | None = None,
    ):
        self._message = message
        self._text = full_text
        self._rng = rng
        self._sleep = sleep
        self._on_update = on_update
        self._outcome: AnimationOutcome | None = None
        self._task: asyncio.Task | None = None

    @property
    def message(self) -> TypingTarget:
        return self._message

    @property
    def done(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> AnimationOutcome | None:
        return self._outcome

    def start(self) -> "TypingAnimation":
        """Begin revealing the text on the running loop."""
        if self._task is not None or self.done:
            return self
        self._message.content = self._text
        self._message.display_content = ""
        self._message.is_typing = True
        self._notify()
        if not self._text:
            self._finish(AnimationOutcome.COMPLETED)
            return self
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    async def _run(self) -> None:
        for chunk, delay in iter_chunks(self._text, self._rng):
            if self.done:
                return
            self._message.display_content += chunk
            self._notify()
            if len(self._message.display_content) >= len(self._text):
                break
            await self._sleep(delay)
        if not self.done:
            self._finish(AnimationOutcome.COMPLETED)

    def cancel(self) -> bool:
        """Commit the remaining text now. False if already finished."""
        if self.done:
            return False
        self._finish(AnimationOutcome.CANCELLED)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    def _finish(self, outcome: AnimationOutcome) -> None:
        self._outcome = outcome
        self._message.display_content = self._text
        self._message.is_typing = False
        logger.debug("Typing animation %s (%d chars)", outcome.value, len(self._text))
        self._notify()

    def _notify(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update()
        except Exception:
            logger.exception("Typing update callback failed")

    async def wait(self) -> AnimationOutcome:
        """Wait until the animation completes or is cancelled."""
        if self._task is not None:
            await asyncio.wait({self._task})
        # start() always finishes synchronously when no task was created
        return self._outcome or AnimationOutcome.CANCELLED


class TypingAnimator:
    """Runs at most one typing animation at a time."""

    def __init__(
        self,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._active: TypingAnimation | None = None

    @property
    def active(self) -> TypingAnimation | None:
        if self._active is not None and self._active.done:
            self._active = None
        return self._active

    def animate(
        self,
        message: TypingTarget,
        full_text: str,
        on_update: Callable[[], None] | None = None,
    ) -> TypingAnimation:
        """Start revealing ``full_text`` into ``message``.

        Any animation still running is cancelled first.
        """
        self.cancel_active()
        animation = TypingAnimation(
            message,
            full_text,
            rng=self._rng,
            sleep=self._sleep,
            on_update=on_update,
        )
        self._active = animation
        return animation.start()

    def cancel_active(self) -> bool:
        """Cancel the running animation, if any."""
        animation = self.active
        self._active = None
        if animation is None:
            return False
        return animation.cancel()
