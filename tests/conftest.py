"""Pytest configuration and shared fixtures."""
import asyncio
import os
import random
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from toolchat.animation import TypingAnimator
from toolchat.completion import CompletionClient
from toolchat.llm import ChatMessage, LLMProvider, LLMResponse
from toolchat.models import ToolContext
from toolchat.sponsor import SponsorRecord


class FakeProvider(LLMProvider):
    """Scripted completion backend.

    Each call pops the next scripted item: a string is returned as the reply,
    an exception instance is raised. When the script runs out the default
    reply is used. Setting ``hold`` makes calls wait for ``release()``.
    """

    def __init__(
        self,
        replies: list[Any] | None = None,
        default: str = "Sure! Here is how it works.",
        model: str = "fake-model",
        hold: bool = False,
    ):
        self._replies = list(replies or [])
        self._default = default
        self._model = model
        self._gate = asyncio.Event() if hold else None
        self.calls: list[list[ChatMessage]] = []
        self.kwargs: list[dict[str, Any]] = []
        self.closed = False

    @property
    def model(self) -> str:
        return self._model

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.calls.append(list(messages))
        self.kwargs.append({"model": model, "temperature": temperature, "max_tokens": max_tokens})
        if self._gate is not None:
            await self._gate.wait()
        item = self._replies.pop(0) if self._replies else self._default
        if isinstance(item, BaseException):
            raise item
        return LLMResponse(content=item, model=model or self._model)

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Sleep replacement that records delays and only yields to the loop."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.sleep(0)


class SteppedSleep:
    """Sleep replacement that blocks until the test releases it."""

    def __init__(self):
        self.calls: list[float] = []
        self._released = asyncio.Semaphore(0)

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await self._released.acquire()

    def release(self, count: int = 1) -> None:
        for _ in range(count):
            self._released.release()


async def settle(rounds: int = 20) -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_until(predicate, rounds: int = 500) -> None:
    """Yield to the loop until ``predicate()`` holds."""
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def make_sponsor(**overrides: Any) -> SponsorRecord:
    now = datetime.now(timezone.utc)
    fields: dict[str, Any] = {
        "title": "Try VectorDB Cloud",
        "description": "Managed vector search in one click.",
        "link": "https://example.com/vectordb",
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=1),
    }
    fields.update(overrides)
    return SponsorRecord(**fields)


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openrouter": os.getenv("OPENROUTER_API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
    }


@pytest.fixture
def tool():
    """A configured directory tool."""
    return ToolContext(
        tool_id="copy-polisher",
        tool_name="Copy Polisher",
        tool_prompt="You rewrite marketing copy to be shorter and clearer.",
    )


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def stepped_sleep():
    return SteppedSleep()


@pytest.fixture
def instant_animator(recording_sleep):
    """Animator that never waits between chunks."""
    return TypingAnimator(rng=random.Random(7), sleep=recording_sleep)


@pytest.fixture
def client(fake_provider, recording_sleep):
    """Completion client over the fake provider with instant backoff."""
    return CompletionClient(fake_provider, sleep=recording_sleep)
