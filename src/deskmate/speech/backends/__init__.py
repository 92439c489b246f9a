from .native import NativeHelperBackend
from .streaming import StreamingBackend
from .whisper import CloudTranscriptionBackend

__all__ = ["CloudTranscriptionBackend", "NativeHelperBackend", "StreamingBackend"]
