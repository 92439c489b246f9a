"""Microphone capture for batch transcription.

Audio is captured with sounddevice as 16 kHz mono 16-bit PCM and handed
back as a WAV file image, which is what the transcription API accepts.
"""

import asyncio
import io
import logging
import threading
import wave
from collections.abc import Callable
from typing import Any

from .base import AudioRecorder

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
CHANNELS = 1
SAMPLE_WIDTH = 2  # int16

StreamFactory = Callable[[Callable[..., None]], Any]


def encode_wav(pcm: bytes, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS) -> bytes:
    """Wrap raw 16-bit PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


def open_input_stream(callback: Callable[..., None]) -> Any:
    """Open the default input device as a raw int16 stream."""
    import sounddevice as sd

    return sd.RawInputStream(
        samplerate=SAMPLE_RATE,
        channels=CHANNELS,
        dtype="int16",
        callback=callback,
    )


class MicrophoneRecorder(AudioRecorder):
    """Records from the default microphone until stopped.

    PortAudio calls are blocking C calls, so opening and closing the stream
    run in a worker thread. Frames arrive on the audio thread and are
    appended under a lock.
    """

    def __init__(self, stream_factory: StreamFactory | None = None):
        self._stream_factory = stream_factory or open_input_stream
        self._stream: Any = None
        self._chunks: list[bytes] = []
        self._lock = threading.Lock()

    @property
    def recording(self) -> bool:
        return self._stream is not None

    def _on_audio(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        with self._lock:
            self._chunks.append(bytes(indata))

    def _open(self) -> Any:
        try:
            stream = self._stream_factory(self._on_audio)
            stream.start()
        except OSError:
            raise
        except Exception as e:
            # PortAudioError and device lookup failures
            raise OSError(f"Microphone unavailable: {e}") from e
        return stream

    async def start(self) -> None:
        if self._stream is not None:
            return
        with self._lock:
            self._chunks = []
        self._stream = await asyncio.to_thread(self._open)
        logger.debug("Recording started")

    async def stop(self) -> bytes:
        stream, self._stream = self._stream, None
        if stream is not None:
            await asyncio.to_thread(self._close, stream)
        with self._lock:
            pcm = b"".join(self._chunks)
            self._chunks = []
        if not pcm:
            return b""
        logger.debug("Recorded %d bytes of audio", len(pcm))
        return encode_wav(pcm)

    @staticmethod
    def _close(stream: Any) -> None:
        try:
            stream.stop()
        finally:
            stream.close()
