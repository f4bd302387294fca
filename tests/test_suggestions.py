"""Unit tests for the suggestions module."""
import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conftest import FakeProvider
from toolchat.completion import RateLimiter, RateLimitExceeded
from toolchat.llm import ChatMessage
from toolchat.suggestions import (
    LLMSuggestionService,
    SuggestionEngine,
    SuggestionService,
    fallback_suggestions,
    parse_suggestions,
)


class TestParseSuggestions:
    """Tests for parse_suggestions."""

    def test_json_object(self):
        content = '{"suggestions": ["Make it shorter", "Add a call to action", "Try a bolder tone"]}'
        assert parse_suggestions(content) == [
            "Make it shorter",
            "Add a call to action",
            "Try a bolder tone",
        ]

    def test_bare_array(self):
        assert parse_suggestions('["One", "Two"]') == ["One", "Two"]

    def test_object_embedded_in_prose(self):
        content = 'Here you go:\n{"suggestions": ["A", "B", "C", "D"]}\nEnjoy!'
        assert parse_suggestions(content) == ["A", "B", "C"]

    def test_array_embedded_in_prose(self):
        content = 'Sure thing ["First idea", "Second idea"] hope that helps'
        assert parse_suggestions(content) == ["First idea", "Second idea"]

    def test_line_fallback_strips_markers(self):
        content = '1. "Show me an example",\n- Compare pricing\n* What about SEO?\n'
        assert parse_suggestions(content) == [
            "Show me an example",
            "Compare pricing",
            "What about SEO?",
        ]

    def test_line_fallback_skips_long_and_bracket_lines(self):
        content = "{broken json\n" + "x" * 60 + "\nShort one\n"
        assert parse_suggestions(content) == ["Short one"]

    def test_blank_items_dropped(self):
        assert parse_suggestions('{"suggestions": ["  ", "Real", 3]}') == ["Real"]

    def test_empty_content(self):
        assert parse_suggestions("   ") == []

    def test_respects_limit(self):
        assert parse_suggestions('["a", "b", "c", "d"]', limit=2) == ["a", "b"]

    @given(st.text())
    def test_never_raises(self, content: str):
        """Property test: any model output parses to at most three strings."""
        result = parse_suggestions(content)
        assert len(result) <= 3
        assert all(isinstance(item, str) and item for item in result)


class TestFallbackSuggestions:
    """Tests for the static fallback list."""

    def test_named_tool(self):
        assert fallback_suggestions("Copy Polisher") == [
            "How does Copy Polisher work?",
            "What can I do with Copy Polisher?",
            "Show me examples",
        ]

    def test_generic(self):
        assert fallback_suggestions() == [
            "Tell me more",
            "How do I get started?",
            "What are the main features?",
        ]

    def test_limit(self):
        assert len(fallback_suggestions("X", limit=1)) == 1


class TestLLMSuggestionService:
    """Tests for the model-backed service."""

    @pytest.mark.asyncio
    async def test_generates_from_model_output(self, tool):
        provider = FakeProvider(replies=['{"suggestions": ["Shorten it", "Add emoji", "Make it formal"]}'])
        service = LLMSuggestionService(provider, model="small-model", max_tokens=150)

        suggestions = await service.generate(
            tool,
            "Here is your shorter copy.",
            [ChatMessage(role="user", content="shorten my tagline")],
            3,
        )

        assert suggestions == ["Shorten it", "Add emoji", "Make it formal"]
        sent = provider.calls[0]
        assert sent[0].role == "system"
        assert tool.tool_name in sent[0].content
        assert "Here is your shorter copy." in sent[1].content
        assert "shorten my tagline" in sent[1].content
        assert provider.kwargs[0]["model"] == "small-model"
        assert provider.kwargs[0]["max_tokens"] == 150

    def test_prompt_keeps_recent_turns_only(self):
        service = LLMSuggestionService(FakeProvider(), context_turns=2)
        history = [ChatMessage(role="user", content=f"turn {i}") for i in range(5)]

        prompt = service.build_user_prompt("last", history, 3)

        assert "turn 2" not in prompt
        assert "turn 3" in prompt and "turn 4" in prompt
        assert "exactly 3" in prompt

    @pytest.mark.asyncio
    async def test_requires_last_message(self, tool):
        service = LLMSuggestionService(FakeProvider())
        with pytest.raises(ValueError):
            await service.generate(tool, "  ", [], 3)

    @pytest.mark.asyncio
    async def test_rate_limited(self, tool):
        limiter = RateLimiter(max_requests=0, window=60)
        service = LLMSuggestionService(FakeProvider(), rate_limiter=limiter)
        with pytest.raises(RateLimitExceeded):
            await service.generate(tool, "reply", [], 3)

    @pytest.mark.asyncio
    async def test_timeout_propagates(self, tool):
        service = LLMSuggestionService(FakeProvider(hold=True), timeout=0.01)
        with pytest.raises(asyncio.TimeoutError):
            await service.generate(tool, "reply", [], 3)


class TestSuggestionEngine:
    """Tests for SuggestionEngine."""

    @pytest.mark.asyncio
    async def test_no_service_uses_fallback(self, tool):
        engine = SuggestionEngine()
        assert await engine.generate(tool, "reply") == fallback_suggestions(tool.tool_name)

    @pytest.mark.asyncio
    async def test_service_result_used(self, tool):
        service = Mock(spec=SuggestionService)
        service.generate = AsyncMock(return_value=["A", "B", "C"])
        engine = SuggestionEngine(service)

        assert await engine.generate(tool, "reply") == ["A", "B", "C"]
        service.generate.assert_awaited_once_with(tool, "reply", (), 3)

    @pytest.mark.asyncio
    async def test_failure_falls_back(self, tool):
        service = Mock(spec=SuggestionService)
        service.generate = AsyncMock(side_effect=RuntimeError("model offline"))
        engine = SuggestionEngine(service)

        assert await engine.generate(tool, "reply") == fallback_suggestions(tool.tool_name)

    @pytest.mark.asyncio
    async def test_empty_result_falls_back(self, tool):
        service = Mock(spec=SuggestionService)
        service.generate = AsyncMock(return_value=["", "   "])
        engine = SuggestionEngine(service)

        assert await engine.generate(tool, "reply") == fallback_suggestions(tool.tool_name)

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, tool):
        service = Mock(spec=SuggestionService)
        service.generate = AsyncMock(side_effect=asyncio.CancelledError())
        engine = SuggestionEngine(service)

        with pytest.raises(asyncio.CancelledError):
            await engine.generate(tool, "reply")

    @pytest.mark.asyncio
    async def test_count_is_clamped(self, tool):
        service = Mock(spec=SuggestionService)
        service.generate = AsyncMock(return_value=["A", "B", "C", "D", "E"])
        engine = SuggestionEngine(service)

        assert await engine.generate(tool, "reply", count=9) == ["A", "B", "C", "D"]
        assert service.generate.await_args.args[3] == 4
