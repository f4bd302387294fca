"""Completion error taxonomy.

Every failure of a completion request is reported as exactly one of the
classes below. Each class fixes whether the request may be retried and what
the visitor is told.
"""

import asyncio
from typing import Any

import anthropic
import openai

from ..config import TOAST_RATE_LIMIT_SECONDS, TOAST_SECONDS
from ..errors import ToolChatError
from ..models import ErrorNotice


class CompletionError(ToolChatError):
    """Base class for completion failures."""

    code = "UNKNOWN_ERROR"
    retryable = False
    default_hint = "Sorry, I'm having trouble responding right now. Please try again in a moment."
    toast_seconds = TOAST_SECONDS

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            original_error=original_error,
            user_hint=self.default_hint,
            details=details,
        )
        self.status_code = status_code

    def to_notice(self) -> ErrorNotice:
        """Build the toast shown to the visitor."""
        return ErrorNotice(
            kind=self.code,
            message=self.user_hint,
            duration_seconds=self.toast_seconds,
        )


class RateLimitExceeded(CompletionError):
    """The backend (or the client-side limiter) signaled throttling."""

    code = "RATE_LIMIT_EXCEEDED"
    default_hint = "I'm receiving too many requests right now. Please wait a moment and try again."
    toast_seconds = TOAST_RATE_LIMIT_SECONDS

    def __init__(self, message: str, retry_after: float | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        if retry_after is not None:
            self.details.setdefault("retry_after", retry_after)


class InputTooLong(CompletionError):
    """The text exceeds the provider input limit."""

    code = "INPUT_TOO_LONG"
    default_hint = "Your message is too long. Please try with a shorter message."


class CompletionTimeout(CompletionError):
    """No response arrived within the per-attempt timeout."""

    code = "TIMEOUT"
    retryable = True
    default_hint = "The request took too long. Please try again with a simpler question."


class MissingCredentials(CompletionError):
    """The API key is absent; an operator problem, not a visitor problem."""

    code = "MISSING_API_KEY"
    default_hint = "Service configuration error. Please contact support."


class UnknownCompletionError(CompletionError):
    """Any other transport or parse failure."""

    code = "UNKNOWN_ERROR"
    retryable = True


_TIMEOUT_TYPES: tuple[type[BaseException], ...] = (
    asyncio.TimeoutError,
    TimeoutError,
    openai.APITimeoutError,
    anthropic.APITimeoutError,
)


def classify_error(exc: BaseException) -> CompletionError:
    """Map an arbitrary exception onto the completion taxonomy.

    Args:
        exc: Exception raised while performing one attempt

    Returns:
        The matching CompletionError (exc itself if already classified)
    """
    if isinstance(exc, CompletionError):
        return exc

    if isinstance(exc, _TIMEOUT_TYPES):
        return CompletionTimeout("Completion request timed out", original_error=exc)

    status = getattr(exc, "status_code", None)
    if not isinstance(status, int):
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)

    message = str(exc) or exc.__class__.__name__
    if status == 429:
        return RateLimitExceeded(message, original_error=exc, status_code=status)
    if status == 413:
        return InputTooLong(message, original_error=exc, status_code=status)
    if status in (408, 504):
        return CompletionTimeout(message, original_error=exc, status_code=status)

    return UnknownCompletionError(
        message,
        original_error=exc,
        status_code=status if isinstance(status, int) else None,
    )
