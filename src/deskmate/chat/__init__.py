from .assistant import (
    CLIPBOARD_TEMPLATE,
    NO_SPEECH_MESSAGE,
    SUMMARY_PROMPT,
    Assistant,
    render_command,
    render_outcome,
)

__all__ = [
    "CLIPBOARD_TEMPLATE",
    "NO_SPEECH_MESSAGE",
    "SUMMARY_PROMPT",
    "Assistant",
    "render_command",
    "render_outcome",
]
