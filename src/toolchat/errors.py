"""Base error contract for toolchat.

Every error raised by the package derives from ToolChatError so callers can
catch project errors without catching programming mistakes.
"""

from typing import Any


class ToolChatError(Exception):
    """Base class for all toolchat errors.

    Carries an operator-facing message plus a short user-facing hint.
    """

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        user_hint: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.user_hint = user_hint or "An internal error occurred."
        self.details = details or {}
