"""In-memory key-value store.

Simple dict-based storage for session-only use.
Data is lost when the application exits.
"""

import json
from typing import Any

from .base import KeyValueStore


class InMemoryStore(KeyValueStore):
    """In-memory store (session-only).

    Values are kept as JSON text so callers get the same copy semantics and
    serialization errors as with the persistent backend.
    """

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    async def connect(self) -> None:
        """Initialize store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close store (no-op for in-memory)."""
        pass

    async def get(self, key: str, default: Any = None) -> Any:
        raw = self._values.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        self._values[key] = json.dumps(value)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    @property
    def backend_type(self) -> str:
        return "memory"
