"""Transcription gateway.

Owns at most one recognition session at a time. Starting a new session first
stops the previous one and waits until it has fully ended, so two sessions
never hold the microphone at once.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from contextlib import aclosing

from .base import RecognitionBackend
from .models import (
    BackendChoice,
    Errored,
    Final,
    RecognitionEvent,
    SessionState,
    SpeechErrorKind,
    TranscriptionError,
)

logger = logging.getLogger(__name__)

STOP_TIMEOUT_S = 5.0

EventCallback = Callable[[RecognitionEvent], None]


class RecognitionSession:
    """One listening session bound to a backend."""

    def __init__(
        self,
        backend: RecognitionBackend,
        language: str,
        on_event: EventCallback | None = None,
    ):
        self.backend = backend
        self.language = language
        self.state = SessionState.IDLE
        self._on_event = on_event
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _emit(self, event: RecognitionEvent) -> None:
        if self._on_event is None:
            return
        try:
            self._on_event(event)
        except Exception:
            logger.exception("Speech event callback failed")

    async def run(self) -> str:
        """Listen until a final transcript or an error.

        Returns:
            Final transcript ("" when no speech was detected)

        Raises:
            TranscriptionError: Recognition failed
        """
        self.state = SessionState.LISTENING
        try:
            async with aclosing(self.backend.listen(self.language)) as events:
                async for event in events:
                    self._emit(event)
                    if isinstance(event, Final):
                        self.state = SessionState.FINALIZING
                        return event.text
                    if isinstance(event, Errored):
                        if event.kind is SpeechErrorKind.NO_SPEECH_DETECTED:
                            return ""
                        self.state = SessionState.ERRORING
                        raise TranscriptionError(event.kind, event.message)
            return ""
        except (TranscriptionError, asyncio.CancelledError):
            raise
        except Exception as e:
            self.state = SessionState.ERRORING
            logger.exception("%s recognition crashed", self.backend.name)
            raise TranscriptionError(SpeechErrorKind.UNKNOWN, str(e) or type(e).__name__) from e
        finally:
            self.state = SessionState.IDLE
            self._closed.set()

    async def stop(self) -> None:
        if self.closed:
            return
        if self.state is SessionState.LISTENING:
            self.state = SessionState.FINALIZING
        await self.backend.stop()

    async def abort(self) -> None:
        if self.closed:
            return
        await self.backend.abort()

    async def wait_closed(self) -> None:
        await self._closed.wait()


class TranscriptionGateway:
    """Single-slot speech-to-text service.

    Example:
        gateway = create_gateway()
        text = await gateway.start_listening("en-US", backend="native")
        # elsewhere, when the user releases the mic button:
        await gateway.stop_listening()
    """

    def __init__(
        self,
        backends: Mapping[BackendChoice, RecognitionBackend],
        stop_timeout_s: float = STOP_TIMEOUT_S,
        fallbacks: Sequence[BackendChoice] = (),
    ):
        """Initialize the gateway.

        Args:
            backends: Recognition transport per choice
            stop_timeout_s: How long a session may take to end before it is aborted
            fallbacks: Backends tried in order when the requested one is unavailable
                (empty means an unavailable backend is an error)
        """
        self._backends = dict(backends)
        self._stop_timeout_s = stop_timeout_s
        self._fallbacks = tuple(fallbacks)
        self._session: RecognitionSession | None = None

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def state(self) -> SessionState:
        return self._session.state if self._session is not None else SessionState.IDLE

    def backend_for(self, choice: BackendChoice | str | None) -> RecognitionBackend | None:
        return self._backends.get(BackendChoice.parse(choice))

    async def select_backend(self, choice: BackendChoice | str | None) -> RecognitionBackend:
        """The requested backend, or the first available fallback.

        Raises:
            TranscriptionError: NOT_SUPPORTED when nothing can run
        """
        requested = BackendChoice.parse(choice)
        for candidate in (requested, *self._fallbacks):
            recognizer = self._backends.get(candidate)
            if recognizer is not None and await recognizer.is_available():
                if candidate is not requested:
                    logger.info("%s speech backend not available; using %s", requested.value, recognizer.name)
                return recognizer
        raise TranscriptionError(
            SpeechErrorKind.NOT_SUPPORTED,
            f"The {requested.value} speech backend is not available",
        )

    async def start_listening(
        self,
        language: str = "en-US",
        backend: BackendChoice | str | None = BackendChoice.BROWSER,
        on_event: EventCallback | None = None,
    ) -> str:
        """Start a listening session and wait for its transcript.

        Any session already in progress is stopped and awaited first.

        Args:
            language: BCP-47 language tag
            backend: Which recognition transport to use
            on_event: Receives Started/Interim/Final/Errored events as they occur

        Returns:
            Final transcript ("" when no speech was detected)

        Raises:
            TranscriptionError: Backend unavailable or recognition failed
        """
        recognizer = await self.select_backend(backend)

        while self._session is not None:
            await self._release(self._session)

        session = RecognitionSession(recognizer, language, on_event)
        self._session = session
        logger.info("Listening with %s (%s)", recognizer.name, language)
        try:
            return await session.run()
        finally:
            if self._session is session:
                self._session = None

    async def stop_listening(self) -> None:
        """Finalize the active session. Safe to call when idle."""
        if self._session is not None:
            await self._session.stop()

    async def cancel(self) -> None:
        """Abort the active session, discarding pending audio."""
        if self._session is not None:
            await self._session.abort()

    async def _release(self, session: RecognitionSession) -> None:
        await session.stop()
        try:
            await asyncio.wait_for(session.wait_closed(), self._stop_timeout_s)
        except TimeoutError:
            logger.warning("%s did not stop in time; aborting", session.backend.name)
            await session.abort()
            try:
                await asyncio.wait_for(session.wait_closed(), self._stop_timeout_s)
            except TimeoutError:
                logger.error("%s session could not be released", session.backend.name)
        if self._session is session:
            self._session = None
