"""Chat history persisted in a key-value store.

The history is an ordered, append-only list of messages stored as one JSON
value. Only the most recent `max_messages` entries are kept.
"""

import asyncio
import logging
from collections.abc import Iterable

from pydantic import ValidationError

from ..llm.models import ChatMessage
from .base import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "chat_history"
MAX_HISTORY_MESSAGES = 500


class ChatHistory:
    """Loads, appends and clears the persisted chat history."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = HISTORY_KEY,
        max_messages: int = MAX_HISTORY_MESSAGES,
    ) -> None:
        self._store = store
        self._key = key
        self._max_messages = max_messages
        self._lock = asyncio.Lock()

    async def load(self) -> list[ChatMessage]:
        """Get all stored messages, oldest first. Unreadable entries are skipped."""
        raw = await self._store.get(self._key, [])
        if not isinstance(raw, list):
            logger.warning("Stored chat history is not a list; ignoring it")
            return []

        messages = []
        for item in raw:
            try:
                messages.append(ChatMessage.model_validate(item))
            except ValidationError:
                logger.warning("Skipping unreadable history entry")
        return messages

    async def append(self, *messages: ChatMessage) -> list[ChatMessage]:
        """Append messages and return the updated history."""
        return await self.extend(messages)

    async def extend(self, messages: Iterable[ChatMessage]) -> list[ChatMessage]:
        """Append messages in order and return the updated history."""
        async with self._lock:
            history = await self.load()
            history.extend(messages)
            history = history[-self._max_messages:]
            await self._store.set(self._key, [m.model_dump(mode="json") for m in history])
            return history

    async def recent(self, limit: int = 20) -> list[ChatMessage]:
        """Get the most recent messages, oldest first."""
        if limit <= 0:
            return []
        return (await self.load())[-limit:]

    async def clear(self) -> None:
        """Remove all messages."""
        async with self._lock:
            await self._store.set(self._key, [])
