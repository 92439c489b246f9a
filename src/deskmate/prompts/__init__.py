"""Style catalog.

Maps a style identifier to the system prompt that shapes the assistant's tone.
Prompts are externalized to text files for easy customization and can be
overridden by placing files in the working directory.

Unknown identifiers (including empty or None) resolve to the default style,
so `resolve_style` never fails.
"""

from functools import lru_cache
from pathlib import Path

# Default prompts directory (package location)
_PROMPTS_DIR = Path(__file__).parent

DEFAULT_STYLE = "default"

STYLES: tuple[str, ...] = ("default", "concise", "dev", "creative", "professional")

STYLE_LABELS: dict[str, str] = {
    "default": "Friendly",
    "concise": "Concise",
    "dev": "Developer",
    "creative": "Creative",
    "professional": "Professional",
}

# Last-resort prompt if the packaged default file is unreadable
_FALLBACK_PROMPT = "You are Deskmate, a helpful and friendly desktop AI assistant."


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Load a prompt from file.

    Search order:
    1. Current working directory: ./prompts/{name}.txt
    2. Package prompts directory: deskmate/prompts/{name}.txt

    Args:
        name: Prompt name (without .txt extension)

    Returns:
        Prompt text content, stripped of surrounding whitespace

    Raises:
        FileNotFoundError: If prompt file not found in any location
    """
    filename = f"{name}.txt"

    # Check working directory first (allows user overrides)
    local_path = Path.cwd() / "prompts" / filename
    if local_path.exists():
        return local_path.read_text(encoding="utf-8").strip()

    # Fall back to package prompts
    package_path = _PROMPTS_DIR / filename
    if package_path.exists():
        return package_path.read_text(encoding="utf-8").strip()

    raise FileNotFoundError(
        f"Prompt '{name}' not found. Searched:\n"
        f"  - {local_path}\n"
        f"  - {package_path}"
    )


def normalize_style(style_id: str | None) -> str:
    """Return `style_id` if it names a known style, otherwise the default style."""
    if style_id:
        candidate = style_id.strip().lower()
        if candidate in STYLES:
            return candidate
    return DEFAULT_STYLE


def resolve_style(style_id: str | None) -> str:
    """Get the system prompt for a style.

    Total function: any unrecognized identifier yields the default style's
    prompt, and the result is never empty.
    """
    name = normalize_style(style_id)
    try:
        prompt = load_prompt(name)
    except (FileNotFoundError, OSError, UnicodeDecodeError):
        prompt = ""

    if prompt:
        return prompt
    if name != DEFAULT_STYLE:
        return resolve_style(DEFAULT_STYLE)
    return _FALLBACK_PROMPT


def list_styles() -> list[tuple[str, str]]:
    """Get (style_id, label) pairs in display order."""
    return [(style, STYLE_LABELS[style]) for style in STYLES]


def clear_cache() -> None:
    """Clear the prompt cache (useful after modifying prompt files)."""
    load_prompt.cache_clear()


__all__ = [
    "DEFAULT_STYLE",
    "STYLES",
    "STYLE_LABELS",
    "clear_cache",
    "list_styles",
    "load_prompt",
    "normalize_style",
    "resolve_style",
]
