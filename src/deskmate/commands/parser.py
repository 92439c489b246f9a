"""Command classification.

Decides whether raw input text is a local command, and which one. Rules are
checked in precedence order and the first match wins:

1. starts with "open "              -> open a URL
2. equals a clipboard alias         -> read the clipboard
3. starts with "copy "              -> write the clipboard
4. only arithmetic characters       -> evaluate arithmetic
5. anything else                    -> not a command (route to a model)
"""

import re

from .arithmetic import ALLOWED_CHARS
from .models import CommandKind

OPEN_PREFIX = "open "
COPY_PREFIX = "copy "

CLIPBOARD_ALIASES: frozenset[str] = frozenset({"clipboard", "paste", "summarize clipboard"})
SUMMARIZE_ALIASES: frozenset[str] = frozenset({"summarize clipboard"})

URL_SCHEMES: tuple[str, ...] = ("http://", "https://", "ftp://", "file://", "mailto:")
DEFAULT_SCHEME = "https://"

_DIGIT = re.compile(r"\d")
_OPEN_RE = re.compile(r"^\s*open\s+", re.IGNORECASE)
_COPY_RE = re.compile(r"^\s*copy\s+", re.IGNORECASE)


def classify(text: str) -> CommandKind | None:
    """Classify input text.

    Args:
        text: Raw user input

    Returns:
        The command kind, or None if the text should go to a model
    """
    lower = text.strip().lower()

    if lower.startswith(OPEN_PREFIX):
        return CommandKind.OPEN_URL

    if lower in CLIPBOARD_ALIASES:
        return CommandKind.CLIPBOARD_READ

    if lower.startswith(COPY_PREFIX):
        return CommandKind.CLIPBOARD_WRITE

    if ALLOWED_CHARS.match(lower) and _DIGIT.search(lower):
        return CommandKind.ARITHMETIC

    return None


def is_command(text: str) -> bool:
    """Check whether input text is a local command."""
    return classify(text) is not None


def open_target(text: str) -> str:
    """Get the target of an open command, as typed."""
    return _OPEN_RE.sub("", text, count=1).strip()


def copy_payload(text: str) -> str:
    """Get the literal text of a copy command."""
    return _COPY_RE.sub("", text, count=1).strip()


def normalize_url(target: str) -> str:
    """Prefix a secure scheme unless the target already names a recognized one."""
    if target.lower().startswith(URL_SCHEMES):
        return target
    return f"{DEFAULT_SCHEME}{target}"


def wants_summary(text: str) -> bool:
    """Check whether a clipboard command asks for a summary."""
    return text.strip().lower() in SUMMARIZE_ALIASES
