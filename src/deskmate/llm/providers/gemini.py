"""Google Gemini cloud model adapter.

Uses the official Google GenAI SDK for async chat completions.
Reference: https://github.com/googleapis/python-genai

The SDK issues POST .../models/{model}:generateContent and raises
`google.genai.errors.APIError` (ClientError for 4xx, ServerError for 5xx)
carrying the HTTP status code, which this adapter maps to failure kinds.
"""

import asyncio
import logging
import os
from collections.abc import Callable
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..base import DEFAULT_TIMEOUT_S, ChatAdapter
from ..errors import make_failure
from ..models import FailureKind, NormalizedRequest, Outcome, ProviderStatus, Success

logger = logging.getLogger(__name__)

DEFAULT_CLOUD_MODEL = "gemini-2.0-flash"
API_KEY_ENV = "GEMINI_API_KEY"
TEMPERATURE = 0.7
MAX_OUTPUT_TOKENS = 1000

_CONTEXT = {"provider": "Gemini", "env_var": API_KEY_ENV}

ClientFactory = Callable[[str, float], Any]


def _default_client_factory(api_key: str, timeout_s: float) -> genai.Client:
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
    )


class CloudModelAdapter(ChatAdapter):
    """Google Gemini adapter.

    Hidden design decisions:
    - Google GenAI client lifecycle (one cached client per credential, closed by close())
    - Message format conversion (system instruction field, 'model' role label)
    - Fixed generation parameters
    - HTTP status to failure kind mapping
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_CLOUD_MODEL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client_factory: ClientFactory | None = None,
    ):
        """Initialize Gemini adapter.

        Args:
            api_key: Fallback API key when a call supplies none (default: $GEMINI_API_KEY)
            model: Default model (gemini-2.0-flash, gemini-2.5-flash, gemini-2.5-pro)
            timeout_s: Ceiling for a whole call in seconds
            client_factory: Builds a GenAI client from (api_key, timeout_s); used by tests
        """
        self._api_key = api_key
        self._model = model
        self.timeout_s = timeout_s
        self._client_factory = client_factory or _default_client_factory
        self._clients: dict[str, Any] = {}

    @property
    def name(self) -> str:
        return "Gemini"

    @property
    def default_model(self) -> str:
        return self._model

    def resolve_credential(self, credential: str | None = None) -> str | None:
        """Pick the per-call key, then the configured key, then the environment."""
        return credential or self._api_key or os.getenv(API_KEY_ENV) or None

    def _client_for(self, api_key: str) -> Any:
        client = self._clients.get(api_key)
        if client is None:
            client = self._client_factory(api_key, self.timeout_s)
            self._clients[api_key] = client
        return client

    def _convert_request(self, request: NormalizedRequest) -> list[types.Content]:
        """Convert turns to Gemini contents ('assistant' becomes 'model')."""
        contents = []
        for turn in request.turns:
            role = "model" if turn.role == "assistant" else "user"
            contents.append(types.Content(role=role, parts=[types.Part(text=turn.content)]))
        return contents

    def _build_config(self, request: NormalizedRequest) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=request.system_prompt,
            temperature=TEMPERATURE,
            max_output_tokens=MAX_OUTPUT_TOKENS,
        )

    def _extract_content(self, response: Any) -> str:
        """Extract text content from Gemini response, handling empty responses.

        Args:
            response: Gemini GenerateContentResponse

        Returns:
            Text content or empty string
        """
        candidates = getattr(response, "candidates", None)
        if candidates:
            candidate = candidates[0]
            content = getattr(candidate, "content", None)
            if content and content.parts:
                texts = [part.text for part in content.parts if getattr(part, "text", None)]
                if texts:
                    return "".join(texts)

        # Fallback to response.text (may raise or return None)
        try:
            return getattr(response, "text", None) or ""
        except (ValueError, AttributeError):
            return ""

    async def send(
        self,
        request: NormalizedRequest,
        model_id: str | None = None,
        credential: str | None = None,
    ) -> Outcome:
        """Generate a reply with Gemini.

        A missing credential is reported before any network call is made.
        """
        api_key = self.resolve_credential(credential)
        if not api_key:
            logger.warning("Gemini request rejected: no API key configured")
            return make_failure(FailureKind.MISSING_CREDENTIAL, **_CONTEXT)

        model_to_use = model_id or self._model
        logger.debug("Gemini chat: model=%s turns=%d", model_to_use, len(request.turns))

        try:
            client = self._client_for(api_key)
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=model_to_use,
                    contents=self._convert_request(request),
                    config=self._build_config(request),
                ),
                timeout=self.timeout_s,
            )
        except genai_errors.APIError as e:
            return self._classify_api_error(e)
        except (TimeoutError, httpx.TimeoutException):
            logger.warning("Gemini request timed out after %.0fs", self.timeout_s)
            return make_failure(
                FailureKind.UNKNOWN, detail=f"Gemini did not answer within {self.timeout_s:.0f} seconds", **_CONTEXT
            )
        except httpx.HTTPError as e:
            logger.warning("Gemini transport error: %s", e)
            return make_failure(FailureKind.UNKNOWN, detail=str(e) or "Network error", **_CONTEXT)
        except Exception as e:
            logger.exception("Unexpected Gemini failure")
            return make_failure(FailureKind.UNKNOWN, detail=str(e) or type(e).__name__, **_CONTEXT)

        content = self._extract_content(response)
        if content:
            return Success(text=content)
        logger.warning("Gemini returned no text (model=%s)", model_to_use)
        return make_failure(FailureKind.UNKNOWN, detail="No response from Gemini", **_CONTEXT)

    def _classify_api_error(self, error: genai_errors.APIError) -> Outcome:
        code = getattr(error, "code", None)
        upstream = getattr(error, "message", None) or None
        logger.warning("Gemini API error %s: %s", code, upstream)

        if code in (401, 403):
            return make_failure(FailureKind.INVALID_CREDENTIAL, detail=upstream, **_CONTEXT)
        if code == 429:
            return make_failure(FailureKind.RATE_LIMITED, detail=upstream, **_CONTEXT)
        return make_failure(FailureKind.UNKNOWN, detail=upstream or "Gemini request failed", **_CONTEXT)

    async def status(self) -> ProviderStatus:
        """Report whether a credential is configured (no network call)."""
        if self.resolve_credential():
            return ProviderStatus(running=True, models=[self._model])
        return ProviderStatus(running=False, models=[])

    async def close(self) -> None:
        """Close every cached GenAI client."""
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            await client.aio.aclose()
