"""Follow-up suggestion generation."""

from .engine import SuggestionEngine
from .parsing import fallback_suggestions, parse_suggestions
from .service import LLMSuggestionService, SuggestionService

__all__ = [
    "LLMSuggestionService",
    "SuggestionEngine",
    "SuggestionService",
    "fallback_suggestions",
    "parse_suggestions",
]
