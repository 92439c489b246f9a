from .backends import CloudTranscriptionBackend, NativeHelperBackend, StreamingBackend
from .base import (
    AudioRecorder,
    EngineError,
    EngineResult,
    RecognitionBackend,
    RecognitionEngine,
    SynthesisEngine,
)
from .factory import DEFAULT_FALLBACKS, create_gateway, create_recognition_backends
from .gateway import RecognitionSession, TranscriptionGateway
from .models import (
    SPEECH_ERROR_MESSAGES,
    SUPPORTED_LANGUAGES,
    BackendChoice,
    Errored,
    Final,
    Interim,
    RecognitionEvent,
    SessionState,
    SpeechErrorKind,
    Started,
    SynthesisError,
    TranscriptionError,
    VoiceOptions,
)
from .recorder import MicrophoneRecorder, encode_wav
from .synthesis import CommandVoice, SpeechSynthesizer, voice_command

__all__ = [
    "SPEECH_ERROR_MESSAGES",
    "SUPPORTED_LANGUAGES",
    "AudioRecorder",
    "BackendChoice",
    "CloudTranscriptionBackend",
    "CommandVoice",
    "DEFAULT_FALLBACKS",
    "EngineError",
    "EngineResult",
    "Errored",
    "Final",
    "Interim",
    "MicrophoneRecorder",
    "NativeHelperBackend",
    "RecognitionBackend",
    "RecognitionEngine",
    "RecognitionEvent",
    "RecognitionSession",
    "SessionState",
    "SpeechErrorKind",
    "SpeechSynthesizer",
    "Started",
    "StreamingBackend",
    "SynthesisEngine",
    "SynthesisError",
    "TranscriptionError",
    "TranscriptionGateway",
    "VoiceOptions",
    "create_gateway",
    "create_recognition_backends",
    "encode_wav",
    "voice_command",
]
