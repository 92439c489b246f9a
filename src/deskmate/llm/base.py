from abc import ABC, abstractmethod
from typing import Any

from .models import NormalizedRequest, Outcome, ProviderStatus

DEFAULT_TIMEOUT_S = 60.0


class ChatAdapter(ABC):
    """Abstract base class for model backend adapters.

    This module hides the design decision of how a backend is called.
    Implementations must handle backend-specific details like:
    - Wire format of the request (system prompt placement, role labels)
    - Authentication
    - Parsing the response into a normalized Outcome
    - Classifying every failure (no exception may escape `send`)

    Supports async context manager protocol for proper resource cleanup:
        async with adapter:
            outcome = await adapter.send(request, "mistral:latest")
    """

    timeout_s: float = DEFAULT_TIMEOUT_S

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name used in messages."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used when the caller does not name one."""

    @abstractmethod
    async def send(
        self,
        request: NormalizedRequest,
        model_id: str | None = None,
        credential: str | None = None,
    ) -> Outcome:
        """Send a chat request.

        Args:
            request: System prompt plus oldest-first turns
            model_id: Model to use (None uses the adapter's default)
            credential: Caller-supplied secret, if the backend needs one

        Returns:
            Success with the reply text, or a classified Failure
        """

    @abstractmethod
    async def status(self) -> ProviderStatus:
        """Report backend reachability. Never raises."""

    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ChatAdapter":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            # Suppress harmless cleanup errors from httpx/anyio
            if "Event loop is closed" not in str(e):
                raise
