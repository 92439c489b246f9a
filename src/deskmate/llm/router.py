"""Provider routing.

Turns the caller's chat history into a normalized request and dispatches it to
the adapter selected by the provider configuration. The router is a pure
function of (messages, style, config): it keeps no per-call state, so
overlapping `route` calls resolve independently.

The router performs no retries and never falls back to another provider; a
failed Outcome goes back to the caller as-is.
"""

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from ..prompts import resolve_style
from .base import ChatAdapter
from .errors import make_failure
from .factory import create_default_adapters
from .models import (
    ChatMessage,
    FailureKind,
    NormalizedRequest,
    Outcome,
    ProviderConfig,
    ProviderKind,
    ProviderStatus,
    Turn,
)

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 10


def window_turns(messages: Sequence[ChatMessage], limit: int = HISTORY_WINDOW) -> tuple[Turn, ...]:
    """Keep the most recent `limit` non-system messages, oldest first.

    System messages are local annotations and are dropped even when they are
    the most recent entries.
    """
    turns = [Turn(role=m.role, content=m.content) for m in messages if m.role != "system"]
    if limit <= 0:
        return ()
    return tuple(turns[-limit:])


def build_request(
    messages: Sequence[ChatMessage],
    style: str | None,
    limit: int = HISTORY_WINDOW,
) -> NormalizedRequest:
    """Build the normalized request for a chat history and style."""
    return NormalizedRequest(system_prompt=resolve_style(style), turns=window_turns(messages, limit))


class ProviderRouter:
    """Dispatches chat requests to model adapters.

    Example:
        router = ProviderRouter()
        outcome = await router.route(messages, "dev", ProviderConfig(provider="cloud"))
        if outcome.ok:
            print(outcome.text)
        else:
            print(outcome.message)
    """

    def __init__(
        self,
        adapters: Mapping[ProviderKind, ChatAdapter] | None = None,
        history_window: int = HISTORY_WINDOW,
    ) -> None:
        """Initialize the router.

        Args:
            adapters: Adapter per provider kind (default: one of each built-in adapter)
            history_window: Number of recent turns sent upstream
        """
        table = dict(adapters) if adapters is not None else create_default_adapters()
        if ProviderKind.LOCAL not in table:
            raise ValueError("ProviderRouter requires an adapter for the local provider")
        self._adapters = MappingProxyType(table)
        self._history_window = history_window

    @property
    def adapters(self) -> Mapping[ProviderKind, ChatAdapter]:
        return self._adapters

    def select_adapter(self, provider: str | ProviderKind | None) -> ChatAdapter:
        """Pick the adapter for a provider name; unknown or missing names mean local."""
        kind = ProviderKind.parse(provider)
        return self._adapters.get(kind) or self._adapters[ProviderKind.LOCAL]

    async def route(
        self,
        messages: Sequence[ChatMessage],
        style: str | None = None,
        config: ProviderConfig | None = None,
    ) -> Outcome:
        """Send the conversation to the configured backend.

        Args:
            messages: Full chat history including the new user message (never mutated)
            style: Style id for the system prompt (None uses config.style)
            config: Provider selection (None means local with defaults)

        Returns:
            The adapter's Outcome, unchanged
        """
        config = config or ProviderConfig()
        request = build_request(messages, style if style is not None else config.style, self._history_window)

        adapter = self.select_adapter(config.kind)
        model_id = config.model_id
        logger.info("Routing %d turn(s) to %s (model=%s)", len(request.turns), adapter.name, model_id)

        try:
            outcome = await adapter.send(request, model_id=model_id, credential=config.credential_value())
        except Exception as e:
            # Adapters classify their own failures; this only guards third-party adapters
            logger.exception("Adapter %s raised instead of returning an outcome", adapter.name)
            return make_failure(FailureKind.UNKNOWN, detail=str(e) or type(e).__name__, provider=adapter.name)

        if not outcome.ok:
            logger.warning("%s failed: %s", adapter.name, outcome.kind.value)
        return outcome

    async def status(self, provider: str | ProviderKind | None = None) -> ProviderStatus:
        """Get the status of one backend (default: local)."""
        return await self.select_adapter(provider).status()

    async def close(self) -> None:
        """Close every adapter."""
        for adapter in self._adapters.values():
            await adapter.close()
