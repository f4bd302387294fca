"""Completion module: typed, bounded calls to the text-generation service."""

from .client import CompletionClient, Reply
from .errors import (
    CompletionError,
    CompletionTimeout,
    InputTooLong,
    MissingCredentials,
    RateLimitExceeded,
    UnknownCompletionError,
    classify_error,
)
from .rate_limiter import RateLimiter

__all__ = [
    "CompletionClient",
    "CompletionError",
    "CompletionTimeout",
    "InputTooLong",
    "MissingCredentials",
    "RateLimitExceeded",
    "RateLimiter",
    "Reply",
    "UnknownCompletionError",
    "classify_error",
]
