"""Abstract base class for settings/history storage backends.

This module defines the persistent key-value store the UI layer uses for
settings and chat history. The abstraction hides:
- Storage format (JSON text, SQLite rows)
- Persistence mechanism (file, database, in-memory)
- Connection management

Values are JSON-compatible (dicts, lists, strings, numbers, booleans, None).
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
    """Abstract persistent key-value store.

    Supports async context manager protocol:
        async with create_store("sqlite", path="deskmate.db") as store:
            await store.set("settings", {...})
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store backend gracefully."""

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Get the value stored under `key`, or `default` if absent."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value under `key`."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove `key` if present."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "KeyValueStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
