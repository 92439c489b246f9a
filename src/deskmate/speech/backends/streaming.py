"""Streaming online recognition.

Wraps a RecognitionEngine that reports partial and final results as the user
speaks. Every result produces an Interim event carrying the text recognized so
far; the session's Final text is the concatenation of the engine's final
results.
"""

import logging
from collections.abc import AsyncIterator

from ..base import EngineError, RecognitionBackend, RecognitionEngine
from ..models import Errored, Final, Interim, RecognitionEvent, SpeechErrorKind, Started

logger = logging.getLogger(__name__)

ENGINE_ERROR_KINDS: dict[str, SpeechErrorKind] = {
    "no-speech": SpeechErrorKind.NO_SPEECH_DETECTED,
    "audio-capture": SpeechErrorKind.AUDIO_CAPTURE_UNAVAILABLE,
    "not-allowed": SpeechErrorKind.PERMISSION_DENIED,
    "service-not-allowed": SpeechErrorKind.PERMISSION_DENIED,
    "network": SpeechErrorKind.NETWORK_ERROR,
    "language-not-supported": SpeechErrorKind.NOT_SUPPORTED,
}


def classify_engine_error(code: str) -> SpeechErrorKind:
    return ENGINE_ERROR_KINDS.get(code, SpeechErrorKind.UNKNOWN)


def _join(parts: list[str]) -> str:
    return " ".join(p for p in parts if p).strip()


class StreamingBackend(RecognitionBackend):
    """Recognition through a streaming engine with interim results."""

    supports_interim = True

    def __init__(self, engine: RecognitionEngine | None = None):
        self._engine = engine

    @property
    def name(self) -> str:
        return "browser"

    async def is_available(self) -> bool:
        return self._engine is not None

    async def listen(self, language: str) -> AsyncIterator[RecognitionEvent]:
        if self._engine is None:
            yield Errored(kind=SpeechErrorKind.NOT_SUPPORTED, message="No streaming recognizer configured")
            return

        yield Started()
        finals: list[str] = []
        async for item in self._engine.stream(language):
            if isinstance(item, EngineError):
                if item.code == "aborted":
                    # Aborted sessions keep whatever was already final
                    yield Final(text=_join(finals))
                    return
                logger.debug("Engine error %s: %s", item.code, item.message)
                yield Errored(kind=classify_engine_error(item.code), message=item.message or item.code)
                return

            text = item.text.strip()
            if item.is_final:
                finals.append(text)
                yield Interim(text=_join(finals))
            else:
                yield Interim(text=_join([*finals, text]))

        yield Final(text=_join(finals))

    async def stop(self) -> None:
        if self._engine is not None:
            await self._engine.stop()

    async def abort(self) -> None:
        if self._engine is not None:
            await self._engine.abort()
