"""
toolchat: the conversational session engine of an AI-tool directory.

Turns a visitor's message into a displayed assistant reply, with sponsored
interstitials, bounded context, progressive "typing" rendering and follow-up
suggestions. Each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .completion import CompletionClient, CompletionError
from .context import ContextWindower
from .errors import ToolChatError
from .models import ErrorNotice, ToolContext
from .session import ConversationSession, Message, MessageRole, TurnState
from .sponsor import SponsorGate, SponsorRecord
from .suggestions import SuggestionEngine

__all__ = [
    "CompletionClient",
    "CompletionError",
    "ContextWindower",
    "ConversationSession",
    "ErrorNotice",
    "Message",
    "MessageRole",
    "SponsorGate",
    "SponsorRecord",
    "SuggestionEngine",
    "ToolChatError",
    "ToolContext",
    "TurnState",
]
