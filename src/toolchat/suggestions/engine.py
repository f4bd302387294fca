"""Best-effort follow-up suggestions."""

import asyncio
import logging
from collections.abc import Sequence

from ..config import SUGGESTION_COUNT, SUGGESTION_MAX_COUNT
from ..llm import ChatMessage
from ..models import ToolContext
from .parsing import fallback_suggestions
from .service import SuggestionService

logger = logging.getLogger(__name__)


class SuggestionEngine:
    """Wraps a SuggestionService so that generation can never fail.

    Any exception or empty result is replaced with the static fallback list.
    Without a service, the fallback list is always returned.
    """

    def __init__(
        self,
        service: SuggestionService | None = None,
        default_count: int = SUGGESTION_COUNT,
    ):
        self._service = service
        self._default_count = default_count

    async def generate(
        self,
        tool: ToolContext,
        last_assistant_text: str,
        recent_history: Sequence[ChatMessage] = (),
        count: int | None = None,
    ) -> list[str]:
        """Suggestions for the visitor's next message.

        Args:
            tool: Tool the conversation is bound to
            last_assistant_text: The reply just shown
            recent_history: Recent user/assistant turns
            count: Number of suggestions wanted (clamped to 1-4)

        Returns:
            Between 1 and ``count`` suggestions
        """
        wanted = max(1, min(count or self._default_count, SUGGESTION_MAX_COUNT))
        if self._service is None:
            return fallback_suggestions(tool.tool_name, wanted)

        try:
            suggestions = await self._service.generate(
                tool, last_assistant_text, recent_history, wanted
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Suggestion generation failed for tool %s, using fallback: %s", tool.tool_id, e)
            return fallback_suggestions(tool.tool_name, wanted)

        suggestions = [s for s in suggestions if isinstance(s, str) and s.strip()][:wanted]
        if not suggestions:
            logger.warning("No usable suggestions for tool %s, using fallback", tool.tool_id)
            return fallback_suggestions(tool.tool_name, wanted)
        return suggestions
