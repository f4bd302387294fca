"""Unit tests for the completion module."""
import asyncio

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conftest import FakeProvider, RecordingSleep
from toolchat.completion import (
    CompletionClient,
    CompletionError,
    CompletionTimeout,
    InputTooLong,
    MissingCredentials,
    RateLimiter,
    RateLimitExceeded,
    UnknownCompletionError,
    classify_error,
)
from toolchat.llm import ChatMessage


class StatusError(Exception):
    """Stand-in for an SDK error that carries an HTTP status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestClassifyError:
    """Tests for mapping exceptions onto the error taxonomy."""

    def test_timeout(self):
        error = classify_error(asyncio.TimeoutError())
        assert isinstance(error, CompletionTimeout)
        assert error.retryable

    def test_rate_limit_status(self):
        error = classify_error(StatusError("slow down", 429))
        assert isinstance(error, RateLimitExceeded)
        assert not error.retryable
        assert error.status_code == 429

    def test_payload_too_large(self):
        assert isinstance(classify_error(StatusError("too big", 413)), InputTooLong)

    def test_gateway_timeout(self):
        assert isinstance(classify_error(StatusError("gateway", 504)), CompletionTimeout)

    def test_everything_else_is_unknown(self):
        error = classify_error(ValueError("bad json"))
        assert isinstance(error, UnknownCompletionError)
        assert error.retryable
        assert error.message == "bad json"

    def test_already_classified_passes_through(self):
        original = MissingCredentials("no key")
        assert classify_error(original) is original

    def test_notice_uses_user_hint(self):
        notice = RateLimitExceeded("429").to_notice()
        assert notice.kind == "RATE_LIMIT_EXCEEDED"
        assert "too many requests" in notice.message
        assert notice.duration_seconds > MissingCredentials("x").to_notice().duration_seconds

    @given(st.integers(min_value=100, max_value=599))
    def test_every_status_maps_to_one_kind(self, status: int):
        """Property test: any status code yields exactly one CompletionError."""
        error = classify_error(StatusError("boom", status))
        assert isinstance(error, CompletionError)


class TestRateLimiter:
    """Tests for the sliding-window limiter."""

    def test_admits_up_to_limit(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=2, window=60, clock=clock)

        assert limiter.try_acquire()
        assert limiter.try_acquire()
        assert not limiter.try_acquire()

    def test_window_slides(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window=60, clock=clock)

        assert limiter.try_acquire()
        clock.now = 30
        assert limiter.reset_after() == pytest.approx(30)
        clock.now = 60
        assert limiter.try_acquire()

    def test_reset_after_empty(self):
        assert RateLimiter().reset_after() == 0.0


class TestCompletionClient:
    """Tests for CompletionClient."""

    @pytest.mark.asyncio
    async def test_returns_reply(self, tool):
        provider = FakeProvider(replies=["  Here you go.  "])
        client = CompletionClient(provider, sleep=RecordingSleep())

        reply = await client.complete("shorten this", tool=tool)

        assert reply.content == "Here you go."
        assert reply.attempts == 1
        assert reply.model == "fake-model"

    @pytest.mark.asyncio
    async def test_request_carries_tool_prompt_and_history(self, tool):
        provider = FakeProvider()
        client = CompletionClient(provider, sleep=RecordingSleep())
        history = [
            ChatMessage(role="user", content="first"),
            ChatMessage(role="assistant", content="answer"),
        ]

        await client.complete("second", tool=tool, history=history)

        sent = provider.calls[0]
        assert sent[0].role == "system"
        assert tool.tool_name in sent[0].content
        assert tool.tool_prompt in sent[0].content
        assert sent[1:3] == history
        assert sent[-1] == ChatMessage(role="user", content="second")

    @pytest.mark.asyncio
    async def test_missing_credentials_fails_without_calling(self, tool):
        client = CompletionClient(None)

        with pytest.raises(MissingCredentials):
            await client.complete("hello", tool=tool)
        assert not client.configured

    @pytest.mark.asyncio
    async def test_input_too_long(self, tool):
        provider = FakeProvider()
        client = CompletionClient(provider, max_input_length=10)

        with pytest.raises(InputTooLong):
            await client.complete("x" * 11, tool=tool)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_times_out_twice_then_fails(self, tool):
        """With one retry, two timeouts exhaust the budget."""
        provider = FakeProvider(hold=True)
        sleep = RecordingSleep()
        client = CompletionClient(provider, timeout=0.01, max_retries=1, sleep=sleep)

        with pytest.raises(CompletionTimeout):
            await client.complete("hello", tool=tool)

        assert len(provider.calls) == 2
        assert sleep.calls == [1.0]

    @pytest.mark.asyncio
    async def test_retry_recovers(self, tool):
        provider = FakeProvider(replies=[ValueError("flaky"), "Recovered."])
        client = CompletionClient(provider, max_retries=2, sleep=RecordingSleep())

        reply = await client.complete("hello", tool=tool)

        assert reply.content == "Recovered."
        assert reply.attempts == 2

    @pytest.mark.asyncio
    async def test_retry_budget_counts_retries_after_first_attempt(self, tool):
        provider = FakeProvider(replies=[ValueError("a"), ValueError("b"), ValueError("c")])
        sleep = RecordingSleep()
        client = CompletionClient(provider, max_retries=2, backoff_base=1.0, sleep=sleep)

        with pytest.raises(UnknownCompletionError) as exc_info:
            await client.complete("hello", tool=tool)

        assert len(provider.calls) == 3
        assert exc_info.value.message == "c"
        assert sleep.calls == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_rate_limit_is_not_retried(self, tool):
        provider = FakeProvider(replies=[StatusError("slow down", 429), "never"])
        client = CompletionClient(provider, max_retries=3, sleep=RecordingSleep())

        with pytest.raises(RateLimitExceeded):
            await client.complete("hello", tool=tool)
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_client_side_rate_limit(self, tool):
        provider = FakeProvider()
        limiter = RateLimiter(max_requests=1, window=60, clock=FakeClock())
        client = CompletionClient(provider, rate_limiter=limiter)

        await client.complete("one", tool=tool)
        with pytest.raises(RateLimitExceeded) as exc_info:
            await client.complete("two", tool=tool)

        assert exc_info.value.retry_after == pytest.approx(60)
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_reply_is_unknown_error(self, tool):
        provider = FakeProvider(replies=["   ", "   "])
        client = CompletionClient(provider, max_retries=1, sleep=RecordingSleep())

        with pytest.raises(UnknownCompletionError):
            await client.complete("hello", tool=tool)
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_backoff_is_capped(self, tool):
        provider = FakeProvider(replies=[ValueError("x")] * 5)
        sleep = RecordingSleep()
        client = CompletionClient(
            provider, max_retries=4, backoff_base=2.0, backoff_cap=5.0, sleep=sleep
        )

        with pytest.raises(UnknownCompletionError):
            await client.complete("hello", tool=tool)
        assert sleep.calls == [2.0, 4.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_close_closes_provider(self):
        provider = FakeProvider()
        await CompletionClient(provider).close()
        assert provider.closed
