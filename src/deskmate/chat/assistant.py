"""Chat control flow.

Every submission goes to the command resolver first; only text that is not a
local command is routed to a model backend. Results of either path come back
as new chat messages for the caller to display and persist.
"""

import logging
from collections.abc import Sequence

from ..commands import (
    ClipboardPayload,
    CommandError,
    CommandResolver,
    CommandResult,
    MathResult,
    SystemNotice,
)
from ..llm import ChatMessage, Outcome, ProviderConfig, ProviderRouter

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = "Please summarize this text concisely:\n\n{text}"
CLIPBOARD_TEMPLATE = "Clipboard content:\n\n{text}"
NO_SPEECH_MESSAGE = "No speech detected. Try again!"


def render_outcome(outcome: Outcome) -> ChatMessage:
    """Assistant message for a provider outcome."""
    if outcome.ok:
        return ChatMessage(role="assistant", content=outcome.text)
    return ChatMessage(role="assistant", content=outcome.message)


def render_command(result: CommandResult) -> ChatMessage:
    """Message for a command result (summaries excluded)."""
    if isinstance(result, SystemNotice):
        return ChatMessage(role="system", content=result.text)
    if isinstance(result, MathResult):
        return ChatMessage(role="assistant", content=f"= {result.display}")
    if isinstance(result, ClipboardPayload):
        if result.error is not None:
            return ChatMessage(role="assistant", content=result.error_message or "Clipboard is empty")
        return ChatMessage(role="assistant", content=CLIPBOARD_TEMPLATE.format(text=result.text))
    if isinstance(result, CommandError):
        return ChatMessage(role="assistant", content=f"Error: {result.text}")
    raise TypeError(f"Unknown command result: {type(result).__name__}")


class Assistant:
    """Submits user input to the command resolver or the provider router.

    Example:
        assistant = Assistant(CommandResolver(SystemShell()), ProviderRouter())
        new_messages = await assistant.submit("2+3*4", history)
        # [user "2+3*4", assistant "= 14"]
    """

    def __init__(self, resolver: CommandResolver, router: ProviderRouter) -> None:
        self._resolver = resolver
        self._router = router

    @property
    def router(self) -> ProviderRouter:
        return self._router

    async def submit(
        self,
        text: str,
        history: Sequence[ChatMessage] = (),
        config: ProviderConfig | None = None,
        style: str | None = None,
    ) -> list[ChatMessage]:
        """Handle one user submission.

        Args:
            text: Raw user input
            history: Conversation so far, oldest first (not mutated)
            config: Provider selection for model requests
            style: Style override (None uses config.style)

        Returns:
            New messages, starting with the user's own message. Empty for blank input.
        """
        text = text.strip()
        if not text:
            return []

        user_message = ChatMessage(role="user", content=text)

        try:
            result = self._resolver.execute(text)
        except Exception as e:
            logger.warning("Command failed: %s", e)
            return [user_message, ChatMessage(role="assistant", content=f"Error: {e}")]

        if result is None:
            outcome = await self._router.route([*history, user_message], style, config)
            return [user_message, render_outcome(outcome)]

        if isinstance(result, ClipboardPayload) and result.summarize and result.error is None:
            return [user_message, await self._summarize(result.text, config, style)]

        return [user_message, render_command(result)]

    async def _summarize(self, text: str, config: ProviderConfig | None, style: str | None) -> ChatMessage:
        prompt = ChatMessage(role="user", content=SUMMARY_PROMPT.format(text=text))
        outcome = await self._router.route([prompt], style, config)
        if outcome.ok:
            return ChatMessage(role="assistant", content=outcome.text)
        logger.info("Summary failed (%s); showing clipboard content", outcome.kind.value)
        return ChatMessage(role="assistant", content=CLIPBOARD_TEMPLATE.format(text=text))
