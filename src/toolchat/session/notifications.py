"""Fire-and-forget usage and analytics notifications.

Hidden design decisions:
- Recorders run as detached asyncio tasks, so a slow or failing recorder
  never delays a turn
- Failures are logged and dropped
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Awaitable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ChatEvent(str, Enum):
    OPEN = "ai_chat_open"
    MESSAGE_SENT = "ai_chat_message_sent"
    CLOSE = "ai_chat_close"
    SPONSOR_IMPRESSION = "sponsor_ad_impression"
    SPONSOR_CLICK = "sponsor_ad_click"


class UsageRecorder(ABC):
    """Counts how often each tool is used."""

    @abstractmethod
    async def increment(self, tool_id: str) -> None:
        """Add one use to ``tool_id``."""


class AnalyticsRecorder(ABC):
    """Receives chat analytics events."""

    @abstractmethod
    async def track(self, event: ChatEvent, payload: dict[str, Any]) -> None:
        """Record one event."""


class InMemoryUsageRecorder(UsageRecorder):
    def __init__(self):
        self.counts: Counter[str] = Counter()

    async def increment(self, tool_id: str) -> None:
        self.counts[tool_id] += 1


class InMemoryAnalyticsRecorder(AnalyticsRecorder):
    def __init__(self):
        self.events: list[tuple[ChatEvent, dict[str, Any]]] = []

    async def track(self, event: ChatEvent, payload: dict[str, Any]) -> None:
        self.events.append((event, dict(payload)))

    def names(self) -> list[str]:
        return [event.value for event, _ in self.events]


class LoggingAnalyticsRecorder(AnalyticsRecorder):
    """Writes analytics events to the log."""

    def __init__(self, level: int = logging.INFO):
        self._level = level

    async def track(self, event: ChatEvent, payload: dict[str, Any]) -> None:
        logger.log(self._level, "analytics %s %s", event.value, payload)


class Notifier:
    """Dispatches recorder calls without blocking the caller."""

    def __init__(
        self,
        usage: UsageRecorder | None = None,
        analytics: AnalyticsRecorder | None = None,
    ):
        self._usage = usage
        self._analytics = analytics
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _dispatch(self, label: str, call: Awaitable[None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (e.g. a synchronous caller): nothing can run the call
            logger.debug("Dropping %s notification: no running event loop", label)
            if asyncio.iscoroutine(call):
                call.close()
            return
        task = loop.create_task(self._guard(label, call))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guard(self, label: str, call: Awaitable[None]) -> None:
        try:
            await call
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug("%s notification failed: %s", label, e)

    def usage(self, tool_id: str) -> None:
        if self._usage is not None:
            self._dispatch("usage", self._usage.increment(tool_id))

    def track(self, event: ChatEvent, **payload: Any) -> None:
        if self._analytics is not None:
            self._dispatch(event.value, self._analytics.track(event, payload))

    async def drain(self) -> None:
        """Wait for every dispatched notification to finish."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))
