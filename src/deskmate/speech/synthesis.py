"""Text-to-speech.

SpeechSynthesizer speaks one utterance at a time: a new request cancels the
one in flight. Speech comes from the platform's command-line voice (`say` on
macOS, `espeak` elsewhere).
"""

import asyncio
import logging
import shutil
import sys
from contextlib import suppress
from dataclasses import dataclass, field

from .base import SynthesisEngine
from .models import SynthesisError, VoiceOptions

logger = logging.getLogger(__name__)

BASE_WORDS_PER_MINUTE = 175
BASE_ESPEAK_PITCH = 50
EXIT_TIMEOUT_S = 2.0


def voice_command(text: str, options: VoiceOptions, platform: str | None = None) -> list[str]:
    """Build the argv for the platform voice."""
    platform = platform or sys.platform
    words_per_minute = str(round(BASE_WORDS_PER_MINUTE * options.rate))
    if platform == "darwin":
        return ["say", "-r", words_per_minute, text]
    pitch = str(min(99, round(BASE_ESPEAK_PITCH * options.pitch)))
    return ["espeak", "-s", words_per_minute, "-p", pitch, text]


@dataclass
class _Utterance:
    process: asyncio.subprocess.Process | None = None
    cancelled: bool = False
    done: asyncio.Event = field(default_factory=asyncio.Event)


async def _reap(process: asyncio.subprocess.Process) -> None:
    """Terminate a voice process that is still running and wait for it to exit."""
    if process.returncode is not None:
        return
    with suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=EXIT_TIMEOUT_S)
    except TimeoutError:
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()


class CommandVoice(SynthesisEngine):
    """Synthesis through the `say` or `espeak` command.

    The voice process never outlives `speak`: cancelling the task that runs
    it terminates the process before the cancellation propagates.
    """

    def __init__(self, platform: str | None = None):
        self._platform = platform or sys.platform
        self._current: _Utterance | None = None

    def is_available(self) -> bool:
        program = "say" if self._platform == "darwin" else "espeak"
        return shutil.which(program) is not None

    async def speak(self, text: str, options: VoiceOptions) -> None:
        argv = voice_command(text, options, self._platform)
        utterance = _Utterance()
        self._current = utterance
        try:
            try:
                utterance.process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise SynthesisError(f"No speech synthesizer found ({argv[0]}): {e}") from e
            if utterance.cancelled:
                return

            _, stderr = await utterance.process.communicate()
            code = utterance.process.returncode
            if code != 0 and not utterance.cancelled:
                detail = stderr.decode("utf-8", errors="replace").strip() or f"exit status {code}"
                raise SynthesisError(f"{argv[0]} failed: {detail}")
        finally:
            if utterance.process is not None:
                await _reap(utterance.process)
            utterance.done.set()
            if self._current is utterance:
                self._current = None

    async def cancel(self) -> None:
        utterance = self._current
        if utterance is None:
            return
        utterance.cancelled = True
        self._current = None
        if utterance.process is not None and utterance.process.returncode is None:
            with suppress(ProcessLookupError):
                utterance.process.terminate()
        await utterance.done.wait()


class SpeechSynthesizer:
    """Speaks assistant replies, one utterance at a time.

    Each utterance runs in its own task. Starting one interrupts the previous
    task and waits for it to finish under a lock, so overlapping `speak` calls
    never leave two utterances running.
    """

    def __init__(self, engine: SynthesisEngine | None = None):
        self._engine = engine or CommandVoice()
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._interrupted: set[asyncio.Task] = set()

    @property
    def speaking(self) -> bool:
        return self._task is not None and not self._task.done()

    async def speak(self, text: str, rate: float = 1.0, pitch: float = 1.0) -> bool:
        """Speak text, interrupting any utterance in progress.

        Cancelling the caller stops the utterance as well.

        Args:
            text: Text to speak
            rate: Speaking rate, 0.5-2.0
            pitch: Voice pitch, 0.5-1.5

        Returns:
            True when the utterance completed, False when it was interrupted

        Raises:
            SynthesisError: The engine could not speak
            ValueError: rate or pitch out of range
        """
        options = VoiceOptions(rate=rate, pitch=pitch)
        async with self._lock:
            await self._interrupt()
            task = asyncio.create_task(self._engine.speak(text, options))
            self._task = task

        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task not in self._interrupted or (current is not None and current.cancelling()):
                raise
        finally:
            interrupted = task in self._interrupted
            self._interrupted.discard(task)
            if self._task is task:
                self._task = None
        return not interrupted

    async def stop(self) -> None:
        """Interrupt the current utterance, if any, and wait until it has ended."""
        async with self._lock:
            await self._interrupt()

    async def _interrupt(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        self._interrupted.add(task)
        await self._engine.cancel()
        task.cancel()
        await asyncio.wait({task})
