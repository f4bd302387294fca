"""Provider factory functions for CLI.

Centralizes creation of the completion backend, sponsor inventory, history
store and conversation session from environment variables.
Hides configuration details from command implementations.
"""

import os
from typing import Any

from rich.console import Console

from ..animation import TypingAnimator
from ..completion import CompletionClient, RateLimiter
from ..llm import LLMProvider, create_llm_provider
from ..memory import ChatHistoryStore, create_chat_history_store
from ..models import ToolContext
from ..session import ConversationSession, LoggingAnalyticsRecorder, Notifier
from ..sponsor import SponsorGate, SponsorInventory, create_sponsor_inventory
from ..suggestions import LLMSuggestionService, SuggestionEngine

# Default console for output
_console = Console()

# Retries are owned by CompletionClient, not the SDK clients
_CLIENT_KWARGS: dict[str, Any] = {"max_retries": 0}


def get_llm(console: Console | None = None) -> LLMProvider | None:
    """Create LLM provider from environment variables.

    Args:
        console: Optional Rich console for output

    Returns:
        LLM provider instance, or None if not configured

    Environment variables:
        LLM_PROVIDER: Provider type (openrouter, openai, anthropic; default: openrouter)
        OPENROUTER_API_KEY: OpenRouter API key (for openrouter provider)
        OPENROUTER_MODEL: OpenRouter model (default: meta-llama/llama-4-maverick:free)
        OPENROUTER_BASE_URL: Override for the OpenRouter endpoint
        OPENAI_API_KEY: OpenAI API key (for openai provider)
        OPENAI_CHAT_MODEL: OpenAI model (default: gpt-4o-mini)
        ANTHROPIC_API_KEY: Anthropic API key (for anthropic provider)
        ANTHROPIC_MODEL: Anthropic model (default: claude-sonnet-4-20250514)
    """
    con = console or _console
    llm_provider = os.getenv("LLM_PROVIDER", "openrouter").lower()

    if llm_provider == "openrouter":
        api_key = os.getenv("OPENROUTER_API_KEY")
        if not api_key:
            con.print("[yellow]Warning: OPENROUTER_API_KEY not set, replies disabled[/yellow]")
            return None
        config: dict[str, Any] = {"api_key": api_key, "app_title": "toolchat", **_CLIENT_KWARGS}
        if os.getenv("OPENROUTER_MODEL"):
            config["model"] = os.getenv("OPENROUTER_MODEL")
        if os.getenv("OPENROUTER_BASE_URL"):
            config["base_url"] = os.getenv("OPENROUTER_BASE_URL")
        return create_llm_provider("openrouter", **config)

    elif llm_provider == "openai":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            con.print("[yellow]Warning: OPENAI_API_KEY not set, replies disabled[/yellow]")
            return None
        model = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
        return create_llm_provider("openai", api_key=api_key, model=model, **_CLIENT_KWARGS)

    elif llm_provider in ("anthropic", "claude"):
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            con.print("[yellow]Warning: ANTHROPIC_API_KEY not set, replies disabled[/yellow]")
            return None
        model = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
        return create_llm_provider("anthropic", api_key=api_key, model=model, **_CLIENT_KWARGS)

    else:
        con.print(f"[red]Error: Unknown LLM provider: {llm_provider}[/red]")
        return None


def get_sponsor_inventory() -> SponsorInventory:
    """Create sponsor inventory from environment variables.

    Environment variables:
        TOOLCHAT_SPONSOR_BACKEND: memory or sqlite (default: sqlite)
        TOOLCHAT_SPONSOR_DB: SQLite file (default: ./sponsors.db)
    """
    backend = os.getenv("TOOLCHAT_SPONSOR_BACKEND", "sqlite").lower()
    if backend == "sqlite":
        return create_sponsor_inventory("sqlite", path=os.getenv("TOOLCHAT_SPONSOR_DB", "./sponsors.db"))
    return create_sponsor_inventory(backend)


def get_history_store() -> ChatHistoryStore:
    """Create chat history store from environment variables.

    Environment variables:
        TOOLCHAT_HISTORY_BACKEND: memory or sqlite (default: sqlite)
        TOOLCHAT_HISTORY_DB: SQLite file (default: ./chat_history.db)
    """
    backend = os.getenv("TOOLCHAT_HISTORY_BACKEND", "sqlite").lower()
    if backend == "sqlite":
        return create_chat_history_store("sqlite", path=os.getenv("TOOLCHAT_HISTORY_DB", "./chat_history.db"))
    return create_chat_history_store(backend)


def build_session(
    tool: ToolContext,
    llm: LLMProvider | None,
    inventory: SponsorInventory | None = None,
    *,
    authenticated: bool = False,
    animator: TypingAnimator | None = None,
    notifier: Notifier | None = None,
) -> ConversationSession:
    """Assemble a conversation session around one provider.

    Replies and suggestions share a client-side rate limiter.

    Environment variables:
        SUGGESTION_MODEL: Model override for follow-up suggestions
        TOOLCHAT_GUEST_TURN_LIMIT: Turns allowed without --authenticated
            (default: unlimited)
    """
    rate_limiter = RateLimiter()
    client = CompletionClient(llm, rate_limiter=rate_limiter)

    guest_limit = os.getenv("TOOLCHAT_GUEST_TURN_LIMIT")

    suggestion_engine = None
    if tool.suggestions_enabled:
        service = None
        if llm is not None:
            service = LLMSuggestionService(
                llm,
                model=os.getenv("SUGGESTION_MODEL") or None,
                rate_limiter=rate_limiter,
            )
        suggestion_engine = SuggestionEngine(service)

    return ConversationSession(
        tool,
        client,
        SponsorGate(inventory) if inventory is not None else None,
        animator=animator,
        suggestion_engine=suggestion_engine,
        notifier=notifier or Notifier(analytics=LoggingAnalyticsRecorder()),
        authenticated=authenticated,
        guest_turn_limit=int(guest_limit) if guest_limit else None,
    )
