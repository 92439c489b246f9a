from collections.abc import Sequence

from .backends import CloudTranscriptionBackend, NativeHelperBackend, StreamingBackend
from .base import AudioRecorder, RecognitionBackend, RecognitionEngine
from .gateway import STOP_TIMEOUT_S, TranscriptionGateway
from .models import BackendChoice

# Offline helper first, then the cloud upload
DEFAULT_FALLBACKS = (BackendChoice.NATIVE, BackendChoice.CLOUD)


def create_recognition_backends(
    engine: RecognitionEngine | None = None,
    helper_command: Sequence[str] | str | None = None,
    recorder: AudioRecorder | None = None,
    openai_api_key: str | None = None,
) -> dict[BackendChoice, RecognitionBackend]:
    """Create one backend per transport.

    Args:
        engine: Streaming recognizer for the browser backend
        helper_command: Native helper argv (default: $DESKMATE_SPEECH_HELPER)
        recorder: Microphone capture for cloud transcription
        openai_api_key: Cloud transcription key (default: $OPENAI_API_KEY)
    """
    return {
        BackendChoice.BROWSER: StreamingBackend(engine),
        BackendChoice.NATIVE: NativeHelperBackend(helper_command),
        BackendChoice.CLOUD: CloudTranscriptionBackend(recorder=recorder, api_key=openai_api_key),
    }


def create_gateway(
    stop_timeout_s: float = STOP_TIMEOUT_S,
    fallbacks: Sequence[BackendChoice] = (),
    **backend_config,
) -> TranscriptionGateway:
    """Create a transcription gateway over the built-in backends."""
    return TranscriptionGateway(
        create_recognition_backends(**backend_config),
        stop_timeout_s=stop_timeout_s,
        fallbacks=fallbacks,
    )
