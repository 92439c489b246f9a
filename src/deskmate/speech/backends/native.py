"""Platform speech recognition through a helper process.

The helper is an external program (on macOS, typically a small Swift script
built on the Speech framework) that writes one status line at a time to
stdout:

    AUTHORIZED          recognition permission granted
    PARTIAL:<text>      best transcription so far
    FINAL:<text>        recognition complete (RESULT:<text> is accepted too)
    ERROR:<message>     recognition failed

SIGINT asks the helper to finish; the last partial becomes the final text when
the helper exits without a FINAL line. Partial lines are tracked but never
surfaced as interim events.
"""

import asyncio
import logging
import os
import shlex
import signal
from collections.abc import AsyncIterator, Sequence
from contextlib import suppress

from ..base import RecognitionBackend
from ..models import Errored, Final, RecognitionEvent, SpeechErrorKind, Started

logger = logging.getLogger(__name__)

HELPER_ENV_VAR = "DESKMATE_SPEECH_HELPER"
LANGUAGE_ENV_VAR = "DESKMATE_SPEECH_LANGUAGE"
NOT_AUTHORIZED_MESSAGE = "Speech recognition not authorized"
EXIT_TIMEOUT_S = 5.0


def classify_helper_error(message: str) -> SpeechErrorKind:
    """Map a helper ERROR line onto a speech error kind."""
    text = message.lower()
    if "not authorized" in text or "denied" in text:
        return SpeechErrorKind.PERMISSION_DENIED
    if "no speech" in text:
        return SpeechErrorKind.NO_SPEECH_DETECTED
    if "microphone" in text or "audio" in text:
        return SpeechErrorKind.AUDIO_CAPTURE_UNAVAILABLE
    if "not available" in text or "not supported" in text:
        return SpeechErrorKind.NOT_SUPPORTED
    return SpeechErrorKind.UNKNOWN


class NativeHelperBackend(RecognitionBackend):
    """Offline recognition via a line-protocol helper process."""

    def __init__(self, command: Sequence[str] | str | None = None):
        """Initialize the backend.

        Args:
            command: Helper argv or a shell-style string (default: $DESKMATE_SPEECH_HELPER)
        """
        if command is None:
            command = os.getenv(HELPER_ENV_VAR) or None
        if isinstance(command, str):
            command = shlex.split(command)
        self._command: list[str] = list(command or [])
        self._process: asyncio.subprocess.Process | None = None

    @property
    def name(self) -> str:
        return "native"

    @property
    def command(self) -> list[str]:
        return list(self._command)

    async def is_available(self) -> bool:
        return bool(self._command)

    async def listen(self, language: str) -> AsyncIterator[RecognitionEvent]:
        if not self._command:
            yield Errored(
                kind=SpeechErrorKind.NOT_SUPPORTED,
                message=f"No speech helper configured. Set {HELPER_ENV_VAR}.",
            )
            return

        env = {**os.environ, LANGUAGE_ENV_VAR: language}
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            logger.warning("Could not start speech helper %s: %s", self._command[0], e)
            yield Errored(kind=SpeechErrorKind.NOT_SUPPORTED, message=str(e))
            return

        self._process = process
        stderr_task = asyncio.create_task(self._drain_stderr(process))
        authorized = False
        partial = ""
        try:
            yield Started()
            async for raw in process.stdout:
                line = raw.decode("utf-8", errors="replace").strip()
                if not line:
                    continue
                if line == "AUTHORIZED":
                    authorized = True
                elif line.startswith("PARTIAL:"):
                    partial = line[len("PARTIAL:"):].strip()
                elif line.startswith(("FINAL:", "RESULT:")):
                    yield Final(text=line.split(":", 1)[1].strip())
                    return
                elif line.startswith("ERROR:"):
                    message = line[len("ERROR:"):].strip()
                    yield Errored(kind=classify_helper_error(message), message=message)
                    return
                else:
                    logger.debug("Ignoring helper output: %s", line)

            await process.wait()
            if not authorized:
                yield Errored(kind=SpeechErrorKind.PERMISSION_DENIED, message=NOT_AUTHORIZED_MESSAGE)
            else:
                yield Final(text=partial)
        finally:
            await self._reap(process)
            stderr_task.cancel()
            with suppress(asyncio.CancelledError):
                await stderr_task
            if self._process is process:
                self._process = None

    async def stop(self) -> None:
        """Ask the helper to finish with what it has heard."""
        process = self._process
        if process is None or process.returncode is not None:
            return
        with suppress(ProcessLookupError):
            process.send_signal(signal.SIGINT)

    async def abort(self) -> None:
        process = self._process
        if process is None or process.returncode is not None:
            return
        with suppress(ProcessLookupError):
            process.kill()

    @staticmethod
    async def _reap(process: asyncio.subprocess.Process) -> None:
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

    @staticmethod
    async def _drain_stderr(process: asyncio.subprocess.Process) -> None:
        async for raw in process.stderr:
            logger.debug("speech helper: %s", raw.decode("utf-8", errors="replace").rstrip())
