"""Local model adapter for an Ollama server.

Talks to the Ollama HTTP API on the loopback interface:
- POST /api/chat  (non-streaming chat completion)
- GET  /api/tags  (installed models)

Reference: https://github.com/ollama/ollama/blob/main/docs/api.md
"""

import asyncio
import logging
import os
from typing import Any

import httpx

from ..base import DEFAULT_TIMEOUT_S, ChatAdapter
from ..errors import make_failure
from ..models import FailureKind, NormalizedRequest, Outcome, ProviderStatus, Success

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:11434"
DEFAULT_LOCAL_MODEL = "mistral:latest"
STATUS_TIMEOUT_S = 3.0

_CONTEXT = {"provider": "Ollama", "start_hint": "ollama serve"}


class LocalModelAdapter(ChatAdapter):
    """Ollama adapter.

    Hidden design decisions:
    - Endpoint layout and JSON body of the Ollama chat API
    - System prompt sent as the first message of the conversation
    - Connection refused means the local service is not started

    A fresh HTTP client is opened per call, so concurrent calls share nothing.
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str = DEFAULT_LOCAL_MODEL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the local adapter.

        Args:
            base_url: Server address (default: $OLLAMA_BASE_URL or http://127.0.0.1:11434)
            model: Default model tag
            timeout_s: Ceiling for a whole chat call in seconds
            transport: Custom httpx transport (used by tests)
        """
        self._base_url = (base_url or os.getenv("OLLAMA_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self._model = model
        self.timeout_s = timeout_s
        self._transport = transport

    @property
    def name(self) -> str:
        return "Ollama"

    @property
    def default_model(self) -> str:
        return self._model

    @property
    def base_url(self) -> str:
        return self._base_url

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            transport=self._transport,
        )

    def build_payload(self, request: NormalizedRequest, model_id: str) -> dict[str, Any]:
        """Convert a normalized request into an Ollama chat body."""
        messages = [{"role": "system", "content": request.system_prompt}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in request.turns)
        return {"model": model_id, "messages": messages, "stream": False}

    async def send(
        self,
        request: NormalizedRequest,
        model_id: str | None = None,
        credential: str | None = None,
    ) -> Outcome:
        """Send a chat request to Ollama. The credential is ignored."""
        model_to_use = model_id or self._model
        payload = self.build_payload(request, model_to_use)
        logger.debug("Ollama chat: model=%s turns=%d", model_to_use, len(request.turns))

        try:
            return await asyncio.wait_for(self._chat(payload), timeout=self.timeout_s)
        except httpx.ConnectError as e:
            logger.warning("Cannot connect to Ollama at %s: %s", self._base_url, e)
            return make_failure(FailureKind.SERVICE_UNAVAILABLE, detail=str(e) or None, **_CONTEXT)
        except (TimeoutError, httpx.TimeoutException):
            logger.warning("Request to Ollama timed out after %.0fs", self.timeout_s)
            return make_failure(
                FailureKind.UNKNOWN, detail=f"Ollama did not answer within {self.timeout_s:.0f} seconds", **_CONTEXT
            )
        except httpx.HTTPError as e:
            logger.warning("Ollama transport error: %s", e)
            return make_failure(FailureKind.UNKNOWN, detail=str(e) or "Failed to connect to Ollama", **_CONTEXT)
        except Exception as e:
            logger.exception("Unexpected Ollama failure")
            return make_failure(FailureKind.UNKNOWN, detail=str(e) or type(e).__name__, **_CONTEXT)

    async def _chat(self, payload: dict[str, Any]) -> Outcome:
        async with self._client(self.timeout_s) as client:
            response = await client.post("/api/chat", json=payload)

        try:
            data = response.json()
        except ValueError:
            data = None

        content = _message_content(data)
        if response.is_success and content:
            return Success(text=content)

        detail = _error_text(data) or ("No response from Ollama" if response.is_success else None)
        if detail is None:
            detail = f"Ollama returned status {response.status_code}"
        return make_failure(FailureKind.UNKNOWN, detail=detail, **_CONTEXT)

    async def status(self) -> ProviderStatus:
        """Check whether Ollama is running and list installed models."""
        try:
            async with self._client(STATUS_TIMEOUT_S) as client:
                response = await client.get("/api/tags")
            data = response.json()
        except Exception as e:
            logger.debug("Ollama status check failed: %s", e)
            return ProviderStatus(running=False, models=[])

        models = data.get("models", []) if isinstance(data, dict) else []
        names = [m.get("name") or m.get("model") for m in models if isinstance(m, dict)]
        return ProviderStatus(running=True, models=[name for name in names if name])


def _message_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    message = data.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


def _error_text(data: Any) -> str | None:
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return None
