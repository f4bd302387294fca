"""Turning free-form model output into a short list of suggestions."""

import json
import re
from typing import Any

from ..config import SUGGESTION_COUNT, SUGGESTION_LINE_MAX_CHARS

_EMBEDDED_OBJECT = re.compile(r"\{[\s\S]*\"suggestions\"[\s\S]*\}")
_EMBEDDED_ARRAY = re.compile(r"\[[\s\S]*\]")
_NUMBERING = re.compile(r"^\d+[.)]\s*")
_BULLET = re.compile(r"^[-*•]\s*")

_GENERIC_FALLBACK = (
    "Tell me more",
    "How do I get started?",
    "What are the main features?",
)


def _clean_items(items: list[Any], limit: int) -> list[str]:
    cleaned = [item.strip() for item in items if isinstance(item, str) and item.strip()]
    return cleaned[:limit]


def _from_json(text: str, limit: int) -> list[str] | None:
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    if isinstance(parsed, dict) and isinstance(parsed.get("suggestions"), list):
        return _clean_items(parsed["suggestions"], limit)
    if isinstance(parsed, list):
        return _clean_items(parsed, limit)
    return None


def _from_lines(text: str, limit: int) -> list[str]:
    suggestions = []
    for line in text.splitlines():
        line = line.strip()
        line = _NUMBERING.sub("", line)
        line = _BULLET.sub("", line)
        line = line.rstrip(",").strip()
        line = line.strip("\"'").strip()
        if not line or "{" in line or "}" in line or "[" in line or "]" in line:
            continue
        if len(line) >= SUGGESTION_LINE_MAX_CHARS:
            continue
        suggestions.append(line)
    return suggestions[:limit]


def parse_suggestions(content: str, limit: int = SUGGESTION_COUNT) -> list[str]:
    """Extract up to ``limit`` suggestions from model output.

    Tried in order: the whole text as JSON (``{"suggestions": [...]}`` or a
    bare array), a JSON object embedded in prose, a bare array embedded in
    prose, then one suggestion per short line.

    Returns:
        Suggestions in model order; empty if nothing usable was found
    """
    text = content.strip()
    if not text or limit <= 0:
        return []

    parsed = _from_json(text, limit)
    if parsed is not None:
        return parsed

    for pattern in (_EMBEDDED_OBJECT, _EMBEDDED_ARRAY):
        match = pattern.search(text)
        if match:
            parsed = _from_json(match.group(0), limit)
            if parsed:
                return parsed

    return _from_lines(text, limit)


def fallback_suggestions(tool_name: str | None = None, limit: int = SUGGESTION_COUNT) -> list[str]:
    """Static suggestions used whenever generation fails."""
    if tool_name and tool_name.strip():
        name = tool_name.strip()
        items = [
            f"How does {name} work?",
            f"What can I do with {name}?",
            "Show me examples",
        ]
    else:
        items = list(_GENERIC_FALLBACK)
    return items[:max(limit, 0)]
