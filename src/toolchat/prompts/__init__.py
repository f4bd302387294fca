"""Prompt management module.

Externalizes prompts to text files for easy customization.
Prompts can be overridden by placing files in the working directory.
Placeholders use the ``{{NAME}}`` form.
"""

from functools import lru_cache
from pathlib import Path

# Default prompts directory (package location)
_PROMPTS_DIR = Path(__file__).parent


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Load a prompt from file.

    Search order:
    1. Current working directory: ./prompts/{name}.txt
    2. Package prompts directory: toolchat/prompts/{name}.txt

    Args:
        name: Prompt name (without .txt extension)

    Returns:
        Prompt text content

    Raises:
        FileNotFoundError: If prompt file not found in any location
    """
    filename = f"{name}.txt"

    local_path = Path.cwd() / "prompts" / filename
    if local_path.exists():
        return local_path.read_text(encoding="utf-8")

    package_path = _PROMPTS_DIR / filename
    if package_path.exists():
        return package_path.read_text(encoding="utf-8")

    raise FileNotFoundError(
        f"Prompt '{name}' not found. Searched:\n"
        f"  - {local_path}\n"
        f"  - {package_path}"
    )


def render_prompt(name: str, **values: str) -> str:
    """Load a prompt and substitute its ``{{KEY}}`` placeholders.

    Unknown placeholders are left untouched.
    """
    text = load_prompt(name)
    for key, value in values.items():
        text = text.replace("{{" + key + "}}", value)
    return text


def get_tool_system_prompt(tool_name: str, tool_prompt: str) -> str:
    """System prompt for a tool conversation."""
    return render_prompt("quick_tool", TOOL_NAME=tool_name, TOOL_PROMPT=tool_prompt)


def get_suggestion_prompt(tool_name: str) -> str:
    """System prompt for follow-up suggestion generation."""
    return render_prompt("suggestions", TOOL_NAME=tool_name)


def clear_cache() -> None:
    """Clear the prompt cache (useful after modifying prompt files)."""
    load_prompt.cache_clear()


__all__ = [
    "load_prompt",
    "render_prompt",
    "get_tool_system_prompt",
    "get_suggestion_prompt",
    "clear_cache",
]
