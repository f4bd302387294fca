"""Terminal chat surface for toolchat.

Module structure (each module hides a design decision):
- widgets.py: How messages, suggestions and input are rendered
- styles.py: CSS styling (layout decisions)
- app.py: Application orchestration (visitor interaction flow)
"""

from .app import ToolChatApp, run_chat_app
from .widgets import ChatInputBar, MessageBubble, MessageList, SuggestionBar

__all__ = [
    "ChatInputBar",
    "MessageBubble",
    "MessageList",
    "SuggestionBar",
    "ToolChatApp",
    "run_chat_app",
]
