"""Main Textual chat application.

Binds one ConversationSession to the widgets: the session drives every
redraw through its listener, and the app only forwards visitor actions.
"""

import asyncio
import logging

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Static

from ..memory import ChatHistoryStore
from ..models import ErrorNotice
from ..session import ConversationSession, TurnState
from .styles import APP_CSS
from .widgets import ChatInputBar, MessageBubble, MessageList, SuggestionBar

logger = logging.getLogger(__name__)

_STATUS_TEXT = {
    TurnState.GATING: "Sending...",
    TurnState.COMPOSING: "Thinking...",
    TurnState.STREAMING: "Typing... (Esc shows the whole reply)",
}


class ToolChatApp(App):
    """Textual chat surface for a single tool."""

    CSS = APP_CSS
    TITLE = "toolchat"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("escape", "stop", "Stop"),
        Binding("ctrl+k", "reset", "Reset Chat"),
        Binding("ctrl+o", "open_sponsor", "Open Sponsor"),
    ]

    def __init__(
        self,
        session: ConversationSession,
        history: ChatHistoryStore | None = None,
    ) -> None:
        super().__init__()
        self._session = session
        self._history = history
        self._was_busy = False

    @property
    def session(self) -> ConversationSession:
        return self._session

    def compose(self) -> ComposeResult:
        yield Header()
        yield MessageList(id="messages")
        yield SuggestionBar(id="suggestions")
        yield Static("", id="status")
        yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    async def on_mount(self) -> None:
        """Restore the saved conversation and start listening to the session."""
        self.theme = "catppuccin-mocha"
        self.sub_title = self._session.tool.tool_name

        if self._history is not None:
            try:
                transcript = await self._history.load(self._session.tool.tool_id)
            except Exception as e:
                logger.warning("Could not load saved conversation: %s", e)
                transcript = None
            if transcript is not None:
                self._session.restore(transcript)

        self._session.add_listener(self._on_session_change)
        self._session.add_error_listener(self._on_session_error)
        self._session.open()
        self._refresh()
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def on_unmount(self) -> None:
        self._session.remove_listener(self._on_session_change)
        self._session.close()

    def _refresh(self) -> None:
        session = self._session
        interstitial = session.interstitial
        seconds_left = interstitial.seconds_left if interstitial is not None else None

        self.query_one("#messages", MessageList).sync(session.messages, seconds_left)
        self.query_one("#suggestions", SuggestionBar).show(
            session.suggestions.items if session.can_send else ()
        )
        self.query_one("#chat-input-bar", ChatInputBar).set_busy(not session.can_send)

        status = self.query_one("#status", Static)
        if session.is_showing_ad and seconds_left is not None:
            status.update(f"Sponsored message, {seconds_left}s")
        else:
            status.update(_STATUS_TEXT.get(session.turn_state, ""))
        status.set_class(not session.can_send, "busy")

    def _on_session_change(self, session: ConversationSession) -> None:
        self._refresh()
        if session.can_send and self._was_busy:
            self._save_transcript()
        self._was_busy = not session.can_send

    def _on_session_error(self, notice: ErrorNotice) -> None:
        self.notify(
            notice.message,
            title=notice.title,
            severity="error",
            timeout=notice.duration_seconds,
        )

    @work(exclusive=True, group="history")
    async def _save_transcript(self) -> None:
        if self._history is None:
            return
        try:
            await self._history.save(self._session.to_transcript())
        except Exception as e:
            logger.warning("Could not save conversation: %s", e)

    @work(exclusive=True, group="history")
    async def _clear_transcript(self) -> None:
        if self._history is None:
            return
        try:
            await self._history.clear(self._session.tool.tool_id)
        except Exception as e:
            logger.warning("Could not clear saved conversation: %s", e)

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle user input submission."""
        self._send(event.value)

    def on_suggestion_bar_selected(self, event: SuggestionBar.Selected) -> None:
        self._send(event.value)

    def on_chat_input_bar_stop_requested(self, event: ChatInputBar.StopRequested) -> None:
        self.action_stop()

    def on_message_bubble_sponsor_clicked(self, event: MessageBubble.SponsorClicked) -> None:
        self._open_sponsor(event.message_id)

    def _send(self, text: str) -> None:
        if self._session.submit(text):
            return
        limit = self._session.max_message_length
        if len(text) > limit:
            self.notify(
                f"Message is too long (max {limit} characters)",
                severity="warning",
                timeout=3,
            )
        elif not self._session.can_send:
            self.notify("Please wait for the current reply", severity="warning", timeout=2)

    def _open_sponsor(self, message_id: str) -> None:
        link = self._session.click_sponsor(message_id)
        if link is None:
            self.notify("Available when the countdown ends", timeout=2)
            return
        self.open_url(link)

    def action_stop(self) -> None:
        """Show the whole reply now."""
        self._session.stop()

    def action_reset(self) -> None:
        """Return to the welcome message and forget the saved conversation."""
        self._session.reset()
        self._was_busy = False
        self._refresh()
        self._clear_transcript()
        self.notify("Chat cleared", timeout=2)

    def action_open_sponsor(self) -> None:
        """Open the most recent sponsor shown in this conversation."""
        sponsors = self._session.sponsor_messages
        if not sponsors:
            self.notify("No sponsor to open", severity="warning", timeout=2)
            return
        self._open_sponsor(sponsors[-1].id)


async def run_chat_app(
    session: ConversationSession,
    history: ChatHistoryStore | None = None,
) -> None:
    """Run the chat surface until the visitor quits.

    Args:
        session: Conversation to display
        history: Store the conversation is loaded from and saved to
    """
    app = ToolChatApp(session, history)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        session.reset()
