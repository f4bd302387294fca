"""Custom Textual widgets for the chat surface.

Hides widget implementation details:
- How session messages map onto bubbles and are kept in sync
- Sponsor countdown rendering
- Suggestion buttons
- Input history and submit shortcuts
"""

from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message as TextualMessage
from textual.widgets import Button, Static, TextArea

from ..session import Message, MessageRole


def _sponsor_text(message: Message, seconds_left: int | None) -> str:
    sponsor = message.sponsor
    lines = [f"[b]{sponsor.title}[/b]"] if sponsor else ["[b]Sponsored[/b]"]
    if sponsor and sponsor.description:
        lines.append(sponsor.description)
    if message.is_sponsor_resolved:
        label = sponsor.link_text if sponsor else "Learn more"
        lines.append(f"[dim]{label}: click or press ctrl+o[/dim]")
    elif seconds_left is not None:
        lines.append(f"[dim]Your answer continues in {seconds_left}s[/dim]")
    return "\n".join(lines)


class MessageBubble(Vertical):
    """One rendered session message."""

    class SponsorClicked(TextualMessage):
        """Posted when a resolved sponsor bubble is clicked."""

        def __init__(self, message_id: str) -> None:
            super().__init__()
            self.message_id = message_id

    def __init__(self, message: Message, *args, **kwargs) -> None:
        role_class = f"{message.role.value}-bubble"
        super().__init__(*args, classes=f"bubble {role_class}", **kwargs)
        self._message = message
        self._rendered: str | None = None
        self._header = Static(self._header_text(), classes="bubble-header")
        self._body = Static("", classes="bubble-body", markup=message.role == MessageRole.SPONSOR)

    @property
    def message_id(self) -> str:
        return self._message.id

    def compose(self):
        yield self._header
        yield self._body

    def on_mount(self) -> None:
        self.refresh_from(self._message)

    def _header_text(self) -> str:
        if self._message.role == MessageRole.USER:
            return "> You"
        if self._message.role == MessageRole.SPONSOR:
            return "◆ Sponsored"
        return "< Assistant"

    def refresh_from(self, message: Message, seconds_left: int | None = None) -> None:
        """Redraw if the message text or flags changed."""
        self._message = message
        if message.role == MessageRole.SPONSOR:
            text = _sponsor_text(message, seconds_left)
            self.set_class(message.is_sponsor_resolved, "resolved")
        elif message.is_pending:
            text = "…"
        else:
            text = message.rendered_text
        self.set_class(message.is_typing, "typing")
        if text != self._rendered:
            self._rendered = text
            self._body.update(text)

    def on_click(self, event: Click) -> None:
        if self._message.role == MessageRole.SPONSOR:
            event.stop()
            self.post_message(self.SponsorClicked(self._message.id))


class MessageList(VerticalScroll):
    """Scrollable conversation kept in step with the session's messages."""

    BORDER_TITLE = "Chat"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._bubbles: dict[str, MessageBubble] = {}

    def sync(self, messages: tuple[Message, ...], seconds_left: int | None = None) -> None:
        """Mount new messages, drop removed ones and redraw the rest."""
        wanted = {message.id for message in messages}
        for message_id in [mid for mid in self._bubbles if mid not in wanted]:
            self._bubbles.pop(message_id).remove()

        added = False
        for message in messages:
            bubble = self._bubbles.get(message.id)
            if bubble is None:
                bubble = MessageBubble(message)
                self._bubbles[message.id] = bubble
                self.mount(bubble)
                added = True
            else:
                bubble.refresh_from(message, seconds_left)

        self.border_subtitle = f"{len(messages)} messages"
        if added or any(message.is_typing for message in messages):
            self.scroll_end(animate=False)


class SuggestionBar(Horizontal):
    """Follow-up suggestions as buttons."""

    class Selected(TextualMessage):
        """Posted when a suggestion is picked."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._items: tuple[str, ...] = ()

    def show(self, items: tuple[str, ...]) -> None:
        if items == self._items:
            return
        self._items = items
        self.remove_children()
        for index, item in enumerate(items):
            self.mount(Button(item, name=str(index), variant="primary"))
        self.set_class(bool(items), "visible")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        index = int(event.button.name)
        if index < len(self._items):
            self.post_message(self.Selected(self._items[index]))


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea, Send and Stop buttons."""

    class Submitted(TextualMessage):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    class StopRequested(TextualMessage):
        """Message sent when the Stop button is pressed."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Send message (Ctrl+J)"
        )
        yield Button("Stop", id="stop-btn", variant="warning", disabled=True).with_tooltip(
            "Show the whole reply now (Esc)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.focus()
        text_area.highlight_cursor_line = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()
        elif event.button.id == "stop-btn":
            self.post_message(self.StopRequested())

    def on_key(self, event) -> None:
        """Ctrl+J submits (terminals do not report ctrl+enter)."""
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()

    def _cursor_at_start(self) -> bool:
        return self.query_one("#chat-input", TextArea).cursor_location == (0, 0)

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        self.query_one("#chat-input", TextArea).text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        if value:
            if not self._history or self._history[-1] != value:
                self._history.append(value)
            self._history_index = -1
            text_area.text = ""
            self.post_message(self.Submitted(value))

    def set_busy(self, busy: bool) -> None:
        """Disable sending while a turn is in flight."""
        self.query_one("#send-btn", Button).disabled = busy
        self.query_one("#stop-btn", Button).disabled = not busy

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()
