import asyncio
import logging
import os
from collections.abc import AsyncIterator, Callable
from typing import Any

import openai
from openai import AsyncOpenAI

from ..base import AudioRecorder, RecognitionBackend
from ..models import Errored, Final, RecognitionEvent, SpeechErrorKind, Started

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "OPENAI_API_KEY"
DEFAULT_MODEL = "whisper-1"


def language_hint(language: str | None) -> str | None:
    """Primary language subtag ('en-US' -> 'en'), or None for auto-detect."""
    if not language or language.lower() == "auto":
        return None
    return language.split("-")[0].lower()


class CloudTranscriptionBackend(RecognitionBackend):
    """Batch transcription through the OpenAI audio API.

    Hidden design decisions:
    - Audio is recorded until stop() and uploaded once
    - Credential lookup (constructor, then $OPENAI_API_KEY)
    - Mapping of API errors onto speech error kinds
    """

    def __init__(
        self,
        recorder: AudioRecorder | None = None,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        client_factory: Callable[[str], Any] | None = None,
    ):
        """Initialize the backend.

        Args:
            recorder: Microphone capture (None means no capture device)
            api_key: OpenAI API key (falls back to $OPENAI_API_KEY at listen time)
            model: Transcription model
            client_factory: Builds the API client from a key (for testing)
        """
        self._recorder = recorder
        self._api_key = api_key
        self._model = model
        self._client_factory = client_factory or (lambda key: AsyncOpenAI(api_key=key))
        self._stop_requested: asyncio.Event | None = None
        self._aborted = False

    @property
    def name(self) -> str:
        return "openai"

    def _resolve_key(self) -> str | None:
        return self._api_key or os.getenv(API_KEY_ENV_VAR) or None

    async def is_available(self) -> bool:
        return self._recorder is not None and self._resolve_key() is not None

    async def listen(self, language: str) -> AsyncIterator[RecognitionEvent]:
        api_key = self._resolve_key()
        if api_key is None:
            yield Errored(
                kind=SpeechErrorKind.NOT_SUPPORTED,
                message=f"OpenAI API key not configured. Set {API_KEY_ENV_VAR}.",
            )
            return
        if self._recorder is None:
            yield Errored(kind=SpeechErrorKind.AUDIO_CAPTURE_UNAVAILABLE, message="No audio recorder available")
            return

        self._stop_requested = asyncio.Event()
        self._aborted = False
        try:
            await self._recorder.start()
        except PermissionError as e:
            yield Errored(kind=SpeechErrorKind.PERMISSION_DENIED, message=str(e) or None)
            return
        except OSError as e:
            yield Errored(kind=SpeechErrorKind.AUDIO_CAPTURE_UNAVAILABLE, message=str(e) or None)
            return

        try:
            yield Started()
            await self._stop_requested.wait()
        finally:
            audio = await self._recorder.stop()
            self._stop_requested = None

        if self._aborted or not audio:
            yield Final(text="")
            return

        logger.debug("Uploading %d bytes for transcription", len(audio))
        client = self._client_factory(api_key)
        kwargs: dict[str, Any] = {"model": self._model, "file": (self._recorder.filename, audio)}
        hint = language_hint(language)
        if hint:
            kwargs["language"] = hint

        try:
            result = await client.audio.transcriptions.create(**kwargs)
        except openai.AuthenticationError:
            event = Errored(kind=SpeechErrorKind.PERMISSION_DENIED, message="Invalid OpenAI API key")
        except openai.RateLimitError:
            event = Errored(kind=SpeechErrorKind.NETWORK_ERROR, message="Rate limit exceeded. Try again later.")
        except openai.APIConnectionError as e:
            event = Errored(kind=SpeechErrorKind.NETWORK_ERROR, message=str(e))
        except openai.APIError as e:
            logger.warning("Transcription failed: %s", e)
            event = Errored(kind=SpeechErrorKind.UNKNOWN, message=str(e))
        else:
            event = Final(text=(getattr(result, "text", "") or "").strip())
        finally:
            await client.close()
        yield event

    async def stop(self) -> None:
        if self._stop_requested is not None:
            self._stop_requested.set()

    async def abort(self) -> None:
        self._aborted = True
        await self.stop()
