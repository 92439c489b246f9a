"""Local command execution.

The resolver classifies input text and executes recognized commands against
a `ShellBridge`. It never talks to a model backend: text that is not a command
yields None and the caller routes it to the provider router instead.
"""

import logging

from .arithmetic import EvaluationError, InvalidExpressionError, evaluate
from .base import ShellBridge
from .models import (
    ClipboardPayload,
    CommandError,
    CommandErrorKind,
    CommandKind,
    CommandResult,
    MathResult,
    SystemNotice,
)
from .parser import classify, copy_payload, normalize_url, open_target, wants_summary

logger = logging.getLogger(__name__)

EMPTY_CLIPBOARD_MESSAGE = "Clipboard is empty"
COPIED_MESSAGE = "Copied to clipboard!"


class CommandResolver:
    """Classifies and executes local commands.

    Example:
        resolver = CommandResolver(SystemShell())
        result = resolver.execute("open example.com")
        # SystemNotice(text="Opening example.com...")
    """

    def __init__(self, shell: ShellBridge) -> None:
        self._shell = shell

    def classify(self, text: str) -> CommandKind | None:
        """Classify input text (None means route to a model)."""
        return classify(text)

    def execute(self, text: str) -> CommandResult | None:
        """Execute input text if it is a command.

        Args:
            text: Raw user input

        Returns:
            The command result, or None if the text is not a command

        Raises:
            Exception: Whatever the shell bridge raises when opening a URL
                or writing the clipboard
        """
        kind = classify(text)
        if kind is None:
            return None

        logger.debug("Executing %s command", kind.value)

        if kind is CommandKind.OPEN_URL:
            return self._open_url(text)
        if kind is CommandKind.CLIPBOARD_READ:
            return self._read_clipboard(text)
        if kind is CommandKind.CLIPBOARD_WRITE:
            return self._write_clipboard(text)
        return self._evaluate(text)

    def _open_url(self, text: str) -> SystemNotice:
        target = open_target(text)
        url = normalize_url(target)
        self._shell.open_external(url)
        return SystemNotice(text=f"Opening {target}...")

    def _read_clipboard(self, text: str) -> ClipboardPayload:
        summarize = wants_summary(text)
        try:
            content = self._shell.read_clipboard()
        except Exception as e:
            logger.warning("Clipboard read failed: %s", e)
            return ClipboardPayload(
                error=CommandErrorKind.EMPTY_CLIPBOARD,
                error_message=f"Clipboard is unavailable: {e}",
                summarize=summarize,
            )

        if not content:
            return ClipboardPayload(
                error=CommandErrorKind.EMPTY_CLIPBOARD,
                error_message=EMPTY_CLIPBOARD_MESSAGE,
                summarize=summarize,
            )
        return ClipboardPayload(text=content, summarize=summarize)

    def _write_clipboard(self, text: str) -> SystemNotice:
        self._shell.write_clipboard(copy_payload(text))
        return SystemNotice(text=COPIED_MESSAGE)

    def _evaluate(self, text: str) -> MathResult | CommandError:
        try:
            return MathResult(value=evaluate(text.strip()))
        except InvalidExpressionError as e:
            return CommandError(kind=CommandErrorKind.INVALID_EXPRESSION, text=str(e))
        except EvaluationError as e:
            return CommandError(kind=CommandErrorKind.EVALUATION_ERROR, text=str(e))
