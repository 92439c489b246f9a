"""Data models for speech recognition and synthesis.

A recognition session produces an ordered stream of tagged events:

    Started, Interim(text)*, Final(text) | Errored(kind)

Only streaming backends emit Interim events.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class BackendChoice(str, Enum):
    """Speech recognition transports."""

    BROWSER = "browser"  # streaming online recognizer
    NATIVE = "native"  # platform helper process (offline)
    CLOUD = "openai"  # recorded audio uploaded for batch transcription

    @classmethod
    def parse(cls, value: "str | BackendChoice | None") -> "BackendChoice":
        if isinstance(value, BackendChoice):
            return value
        name = (value or "").strip().lower()
        aliases = {"cloud": cls.CLOUD, "whisper": cls.CLOUD, "macos": cls.NATIVE}
        if name in aliases:
            return aliases[name]
        try:
            return cls(name)
        except ValueError:
            return cls.BROWSER


class SessionState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    FINALIZING = "finalizing"
    ERRORING = "erroring"


class SpeechErrorKind(str, Enum):
    """Classified transcription failures."""

    NOT_SUPPORTED = "not_supported"
    PERMISSION_DENIED = "permission_denied"
    NO_SPEECH_DETECTED = "no_speech_detected"
    AUDIO_CAPTURE_UNAVAILABLE = "audio_capture_unavailable"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


SPEECH_ERROR_MESSAGES: dict[SpeechErrorKind, str] = {
    SpeechErrorKind.NOT_SUPPORTED: "Speech recognition is not available with this backend. Pick another one in Settings.",
    SpeechErrorKind.PERMISSION_DENIED: "Microphone blocked. Allow mic access in System Settings → Privacy → Microphone.",
    SpeechErrorKind.NO_SPEECH_DETECTED: "No speech detected.",
    SpeechErrorKind.AUDIO_CAPTURE_UNAVAILABLE: "No microphone found.",
    SpeechErrorKind.NETWORK_ERROR: "Voice requires internet. Check connection.",
    SpeechErrorKind.UNKNOWN: "Mic error: {detail}",
}


class TranscriptionError(Exception):
    """A listening session ended with a classified failure."""

    def __init__(self, kind: SpeechErrorKind, message: str | None = None):
        self.kind = kind
        self.detail = message
        super().__init__(message or kind.value)

    @property
    def user_message(self) -> str:
        """Actionable text for the user."""
        template = SPEECH_ERROR_MESSAGES[self.kind]
        return template.format(detail=self.detail or "recognition failed")


class SynthesisError(Exception):
    """An utterance could not be spoken."""


class Started(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["started"] = "started"


class Interim(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["interim"] = "interim"
    text: str


class Final(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["final"] = "final"
    text: str


class Errored(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    kind: SpeechErrorKind
    message: str | None = None


RecognitionEvent = Annotated[Started | Interim | Final | Errored, Field(discriminator="type")]


class VoiceOptions(BaseModel):
    """Synthesis parameters relative to the engine's normal voice."""

    model_config = ConfigDict(frozen=True)

    rate: float = Field(default=1.0, ge=0.5, le=2.0)
    pitch: float = Field(default=1.0, ge=0.5, le=1.5)


SUPPORTED_LANGUAGES: list[tuple[str, str]] = [
    ("en-US", "English (US)"),
    ("en-GB", "English (UK)"),
    ("es-ES", "Spanish"),
    ("fr-FR", "French"),
    ("de-DE", "German"),
    ("it-IT", "Italian"),
    ("pt-BR", "Portuguese (Brazil)"),
    ("ru-RU", "Russian"),
    ("ja-JP", "Japanese"),
    ("zh-CN", "Chinese (Simplified)"),
    ("ko-KR", "Korean"),
    ("hi-IN", "Hindi"),
]
