"""Abstract speech collaborators.

Hides which engine captures audio, recognizes speech, or speaks text. The
gateway and synthesizer only depend on these interfaces.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass

from .models import RecognitionEvent, VoiceOptions


class RecognitionBackend(ABC):
    """One speech recognition transport.

    `listen` is an async generator yielding the session's event stream. A
    backend serves at most one session at a time; the gateway guarantees it.
    """

    supports_interim: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used in logs and messages."""

    async def is_available(self) -> bool:
        """Check whether this backend can run on this machine."""
        return True

    @abstractmethod
    def listen(self, language: str) -> AsyncIterator[RecognitionEvent]:
        """Start recognition and yield Started, Interim*, then Final or Errored."""

    @abstractmethod
    async def stop(self) -> None:
        """Request graceful finalization of the current session (no-op when idle)."""

    async def abort(self) -> None:
        """Stop immediately, discarding pending audio. Defaults to a graceful stop."""
        await self.stop()


@dataclass(frozen=True)
class EngineResult:
    """A recognition result from a streaming engine."""

    text: str
    is_final: bool = False


@dataclass(frozen=True)
class EngineError:
    """An error code from a streaming engine.

    Codes follow the browser speech API vocabulary: 'no-speech',
    'audio-capture', 'not-allowed', 'network', 'aborted', ...
    """

    code: str
    message: str | None = None


class RecognitionEngine(ABC):
    """Online streaming recognizer producing partial and final results."""

    @abstractmethod
    def stream(self, language: str) -> AsyncIterator[EngineResult | EngineError]:
        """Yield results until the engine finishes or reports an error."""

    @abstractmethod
    async def stop(self) -> None:
        """Finish the current utterance and end the stream."""

    async def abort(self) -> None:
        await self.stop()


class AudioRecorder(ABC):
    """Microphone capture for batch transcription."""

    filename: str = "speech.wav"

    @abstractmethod
    async def start(self) -> None:
        """Begin capturing.

        Raises:
            PermissionError: Microphone access denied
            OSError: No capture device
        """

    @abstractmethod
    async def stop(self) -> bytes:
        """Stop capturing and return the encoded recording (empty if nothing was captured)."""


class SynthesisEngine(ABC):
    """Text-to-speech engine that speaks one utterance at a time."""

    @abstractmethod
    async def speak(self, text: str, options: VoiceOptions) -> None:
        """Speak `text` and return when done.

        Raises:
            SynthesisError: The utterance could not be spoken
        """

    @abstractmethod
    async def cancel(self) -> None:
        """Interrupt the utterance in progress, if any."""
