"""Unit tests for the transcription gateway, recognition backends and synthesis."""
import asyncio
import io
import os
import sys
import textwrap
import wave
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from deskmate.speech import (
    BackendChoice,
    CloudTranscriptionBackend,
    EngineError,
    EngineResult,
    Errored,
    Final,
    Interim,
    MicrophoneRecorder,
    NativeHelperBackend,
    RecognitionBackend,
    RecognitionEngine,
    SessionState,
    SpeechErrorKind,
    SpeechSynthesizer,
    Started,
    StreamingBackend,
    SynthesisEngine,
    SynthesisError,
    TranscriptionError,
    TranscriptionGateway,
    create_gateway,
    voice_command,
)
from deskmate.speech.backends.whisper import language_hint
from deskmate.speech.models import VoiceOptions
from deskmate.speech.synthesis import CommandVoice


class ScriptedBackend(RecognitionBackend):
    """Backend that listens until stopped and logs its lifecycle."""

    def __init__(self, name: str, log: list[tuple[str, str]], honor_stop: bool = True):
        self._name = name
        self.log = log
        self.honor_stop = honor_stop
        self.listening = asyncio.Event()
        self._done: asyncio.Event | None = None

    @property
    def name(self) -> str:
        return self._name

    async def listen(self, language):
        self.log.append(("start", self._name))
        self._done = asyncio.Event()
        yield Started()
        yield Interim(text=f"{language} partial")
        self.listening.set()
        await self._done.wait()
        self.log.append(("end", self._name))
        yield Final(text=f"{self._name} heard")

    async def stop(self):
        self.log.append(("stop", self._name))
        if self.honor_stop and self._done is not None:
            self._done.set()

    async def abort(self):
        self.log.append(("abort", self._name))
        if self._done is not None:
            self._done.set()


class OneShotBackend(RecognitionBackend):
    """Backend that replays a fixed event list."""

    def __init__(self, *events, available: bool = True, error: Exception | None = None):
        self.events = events
        self.available = available
        self.error = error

    @property
    def name(self) -> str:
        return "one-shot"

    async def is_available(self):
        return self.available

    async def listen(self, language):
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error

    async def stop(self):
        pass


class TestTranscriptionGateway:
    """Tests for single-session ownership."""

    @pytest.mark.asyncio
    async def test_new_session_waits_for_previous_to_end(self):
        log: list[tuple[str, str]] = []
        first = ScriptedBackend("first", log)
        second = ScriptedBackend("second", log)
        gateway = TranscriptionGateway({BackendChoice.BROWSER: first, BackendChoice.NATIVE: second})

        task1 = asyncio.create_task(gateway.start_listening(backend="browser"))
        await first.listening.wait()
        task2 = asyncio.create_task(gateway.start_listening(backend="native"))

        assert await task1 == "first heard"
        await second.listening.wait()
        assert log == [("start", "first"), ("stop", "first"), ("end", "first"), ("start", "second")]

        await gateway.stop_listening()
        assert await task2 == "second heard"
        assert not gateway.active

    @pytest.mark.asyncio
    async def test_stubborn_session_is_aborted_after_timeout(self):
        log: list[tuple[str, str]] = []
        stubborn = ScriptedBackend("stubborn", log, honor_stop=False)
        other = ScriptedBackend("other", log)
        gateway = TranscriptionGateway(
            {BackendChoice.BROWSER: stubborn, BackendChoice.NATIVE: other}, stop_timeout_s=0.05
        )

        task1 = asyncio.create_task(gateway.start_listening(backend="browser"))
        await stubborn.listening.wait()
        task2 = asyncio.create_task(gateway.start_listening(backend="native"))

        assert await task1 == "stubborn heard"
        await other.listening.wait()
        assert ("abort", "stubborn") in log
        assert log.index(("end", "stubborn")) < log.index(("start", "other"))

        await gateway.cancel()
        await task2

    @pytest.mark.asyncio
    async def test_events_reach_the_callback_in_order(self):
        log: list[tuple[str, str]] = []
        backend = ScriptedBackend("mic", log)
        gateway = TranscriptionGateway({BackendChoice.BROWSER: backend})
        events = []

        task = asyncio.create_task(gateway.start_listening("fr-FR", on_event=events.append))
        await backend.listening.wait()
        assert gateway.state is SessionState.LISTENING

        await gateway.stop_listening()
        assert await task == "mic heard"
        assert events == [Started(), Interim(text="fr-FR partial"), Final(text="mic heard")]
        assert gateway.state is SessionState.IDLE

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_end_the_session(self):
        gateway = TranscriptionGateway({BackendChoice.BROWSER: OneShotBackend(Started(), Final(text="ok"))})

        def explode(event):
            raise RuntimeError("ui gone")

        assert await gateway.start_listening(on_event=explode) == "ok"

    @pytest.mark.asyncio
    async def test_stop_when_idle_is_a_no_op(self):
        gateway = TranscriptionGateway({})
        await gateway.stop_listening()
        await gateway.cancel()
        assert gateway.state is SessionState.IDLE

    @pytest.mark.asyncio
    async def test_missing_backend_is_not_supported(self):
        gateway = TranscriptionGateway({})

        with pytest.raises(TranscriptionError) as exc_info:
            await gateway.start_listening(backend="native")

        assert exc_info.value.kind is SpeechErrorKind.NOT_SUPPORTED
        assert str(exc_info.value) == "The native speech backend is not available"

    @pytest.mark.asyncio
    async def test_unavailable_backend_is_not_supported(self):
        gateway = TranscriptionGateway({BackendChoice.BROWSER: OneShotBackend(available=False)})

        with pytest.raises(TranscriptionError) as exc_info:
            await gateway.start_listening()

        assert exc_info.value.kind is SpeechErrorKind.NOT_SUPPORTED

    @pytest.mark.asyncio
    async def test_unavailable_backend_falls_back_in_order(self):
        cloud = OneShotBackend(Started(), Final(text="from the fallback"))
        gateway = TranscriptionGateway(
            {
                BackendChoice.BROWSER: OneShotBackend(available=False),
                BackendChoice.NATIVE: OneShotBackend(available=False),
                BackendChoice.CLOUD: cloud,
            },
            fallbacks=(BackendChoice.NATIVE, BackendChoice.CLOUD),
        )

        assert await gateway.select_backend("browser") is cloud
        assert await gateway.start_listening(backend="browser") == "from the fallback"

    @pytest.mark.asyncio
    async def test_no_available_fallback_is_not_supported(self):
        gateway = TranscriptionGateway(
            {BackendChoice.BROWSER: OneShotBackend(available=False)},
            fallbacks=(BackendChoice.NATIVE, BackendChoice.CLOUD),
        )

        with pytest.raises(TranscriptionError) as exc_info:
            await gateway.start_listening()

        assert exc_info.value.kind is SpeechErrorKind.NOT_SUPPORTED

    @pytest.mark.asyncio
    async def test_no_speech_is_an_empty_transcript(self):
        backend = OneShotBackend(Started(), Errored(kind=SpeechErrorKind.NO_SPEECH_DETECTED))
        gateway = TranscriptionGateway({BackendChoice.BROWSER: backend})

        assert await gateway.start_listening() == ""

    @pytest.mark.asyncio
    async def test_errors_are_raised_with_their_kind(self):
        backend = OneShotBackend(Started(), Errored(kind=SpeechErrorKind.PERMISSION_DENIED, message="denied"))
        gateway = TranscriptionGateway({BackendChoice.BROWSER: backend})

        with pytest.raises(TranscriptionError) as exc_info:
            await gateway.start_listening()

        assert exc_info.value.kind is SpeechErrorKind.PERMISSION_DENIED
        assert "Microphone blocked" in exc_info.value.user_message
        assert not gateway.active

    @pytest.mark.asyncio
    async def test_backend_crash_is_unknown(self):
        backend = OneShotBackend(Started(), error=RuntimeError("driver fault"))
        gateway = TranscriptionGateway({BackendChoice.BROWSER: backend})

        with pytest.raises(TranscriptionError) as exc_info:
            await gateway.start_listening()

        assert exc_info.value.kind is SpeechErrorKind.UNKNOWN
        assert exc_info.value.user_message == "Mic error: driver fault"

    def test_create_gateway_without_configuration(self, monkeypatch):
        monkeypatch.delenv("DESKMATE_SPEECH_HELPER", raising=False)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        gateway = create_gateway()

        assert isinstance(gateway.backend_for("native"), NativeHelperBackend)
        assert isinstance(gateway.backend_for("whisper"), CloudTranscriptionBackend)
        assert isinstance(gateway.backend_for(None), StreamingBackend)


class TestBackendChoice:
    @pytest.mark.parametrize(
        ("value", "choice"),
        [
            ("browser", BackendChoice.BROWSER),
            ("native", BackendChoice.NATIVE),
            ("macos", BackendChoice.NATIVE),
            ("openai", BackendChoice.CLOUD),
            ("Cloud", BackendChoice.CLOUD),
            ("carrier pigeon", BackendChoice.BROWSER),
            (None, BackendChoice.BROWSER),
        ],
    )
    def test_parse(self, value, choice):
        assert BackendChoice.parse(value) is choice


class ScriptedEngine(RecognitionEngine):
    def __init__(self, *items):
        self.items = items
        self.stopped = False

    async def stream(self, language):
        for item in self.items:
            yield item

    async def stop(self):
        self.stopped = True


async def collect(backend, language="en-US"):
    return [event async for event in backend.listen(language)]


class TestStreamingBackend:
    """Tests for interim and final event assembly."""

    @pytest.mark.asyncio
    async def test_interim_and_final_text(self):
        engine = ScriptedEngine(
            EngineResult("hello"),
            EngineResult("hello", is_final=True),
            EngineResult("wor"),
            EngineResult("world", is_final=True),
        )

        events = await collect(StreamingBackend(engine))

        assert events == [
            Started(),
            Interim(text="hello"),
            Interim(text="hello"),
            Interim(text="hello wor"),
            Interim(text="hello world"),
            Final(text="hello world"),
        ]

    @pytest.mark.parametrize(
        ("code", "kind"),
        [
            ("no-speech", SpeechErrorKind.NO_SPEECH_DETECTED),
            ("audio-capture", SpeechErrorKind.AUDIO_CAPTURE_UNAVAILABLE),
            ("not-allowed", SpeechErrorKind.PERMISSION_DENIED),
            ("network", SpeechErrorKind.NETWORK_ERROR),
            ("bad-grammar", SpeechErrorKind.UNKNOWN),
        ],
    )
    @pytest.mark.asyncio
    async def test_engine_errors(self, code, kind):
        events = await collect(StreamingBackend(ScriptedEngine(EngineError(code))))

        assert events[-1] == Errored(kind=kind, message=code)

    @pytest.mark.asyncio
    async def test_aborted_keeps_final_text(self):
        engine = ScriptedEngine(EngineResult("kept", is_final=True), EngineResult("lost"), EngineError("aborted"))

        events = await collect(StreamingBackend(engine))

        assert events[-1] == Final(text="kept")

    @pytest.mark.asyncio
    async def test_without_engine(self):
        backend = StreamingBackend()

        assert not await backend.is_available()
        assert (await collect(backend))[0].kind is SpeechErrorKind.NOT_SUPPORTED

    @pytest.mark.asyncio
    async def test_stop_reaches_engine(self):
        engine = ScriptedEngine()
        await StreamingBackend(engine).stop()
        assert engine.stopped


def helper(script: str) -> list[str]:
    return [sys.executable, "-c", textwrap.dedent(script)]


class TestNativeHelperBackend:
    """Tests for the line-protocol helper process."""

    @pytest.mark.asyncio
    async def test_final_line(self):
        backend = NativeHelperBackend(
            helper(
                """
                import os
                print("AUTHORIZED", flush=True)
                print("PARTIAL:hel", flush=True)
                print("FINAL:hello " + os.environ["DESKMATE_SPEECH_LANGUAGE"], flush=True)
                """
            )
        )

        events = await collect(backend, "fr-FR")

        assert events == [Started(), Final(text="hello fr-FR")]

    @pytest.mark.asyncio
    async def test_last_partial_becomes_final_on_exit(self):
        backend = NativeHelperBackend(helper('print("AUTHORIZED"); print("PARTIAL:half done")'))

        events = await collect(backend)

        assert events[-1] == Final(text="half done")

    @pytest.mark.asyncio
    async def test_exit_without_authorization(self):
        events = await collect(NativeHelperBackend(helper("pass")))

        assert events[-1] == Errored(kind=SpeechErrorKind.PERMISSION_DENIED, message="Speech recognition not authorized")

    @pytest.mark.asyncio
    async def test_error_line(self):
        backend = NativeHelperBackend(helper('print("AUTHORIZED"); print("ERROR:No speech detected")'))

        events = await collect(backend)

        assert events[-1].kind is SpeechErrorKind.NO_SPEECH_DETECTED

    @pytest.mark.asyncio
    async def test_stop_sends_interrupt(self, tmp_path):
        ready = tmp_path / "ready"
        backend = NativeHelperBackend(
            helper(
                f"""
                import pathlib, signal, sys, time
                def finish(signum, frame):
                    print("FINAL:stopped early", flush=True)
                    sys.exit(0)
                signal.signal(signal.SIGINT, finish)
                print("AUTHORIZED", flush=True)
                pathlib.Path({str(ready)!r}).touch()
                while True:
                    time.sleep(0.05)
                """
            )
        )
        gateway = TranscriptionGateway({BackendChoice.NATIVE: backend})

        task = asyncio.create_task(gateway.start_listening(backend="native"))
        for _ in range(200):
            if ready.exists():
                break
            await asyncio.sleep(0.05)
        await gateway.stop_listening()

        assert await asyncio.wait_for(task, timeout=10) == "stopped early"

    @pytest.mark.asyncio
    async def test_missing_program(self, tmp_path):
        backend = NativeHelperBackend([str(tmp_path / "no-such-helper")])

        events = await collect(backend)

        assert events[-1].kind is SpeechErrorKind.NOT_SUPPORTED

    def test_command_from_environment(self, monkeypatch):
        monkeypatch.setenv("DESKMATE_SPEECH_HELPER", "swift '/opt/speech helper.swift'")

        assert NativeHelperBackend().command == ["swift", "/opt/speech helper.swift"]

    @pytest.mark.asyncio
    async def test_unconfigured(self, monkeypatch):
        monkeypatch.delenv("DESKMATE_SPEECH_HELPER", raising=False)
        assert not await NativeHelperBackend().is_available()


class FakeRecorder:
    filename = "speech.wav"

    def __init__(self, audio: bytes = b"RIFF-audio", start_error: Exception | None = None):
        self.audio = audio
        self.start_error = start_error
        self.started = asyncio.Event()
        self.stopped = False

    async def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started.set()

    async def stop(self) -> bytes:
        self.stopped = True
        return self.audio


def transcription_client(text: str = " hello world ", error: Exception | None = None):
    create = AsyncMock(return_value=SimpleNamespace(text=text), side_effect=error)
    return SimpleNamespace(audio=SimpleNamespace(transcriptions=SimpleNamespace(create=create)), close=AsyncMock())


def status_error(cls, status: int, message: str):
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    return cls(message, response=httpx.Response(status, request=request), body=None)


class TestCloudTranscriptionBackend:
    """Tests for record-then-upload transcription."""

    @pytest.fixture(autouse=True)
    def no_env_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    async def listen_and_stop(self, backend, recorder, language="en-US"):
        gateway = TranscriptionGateway({BackendChoice.CLOUD: backend})
        task = asyncio.create_task(gateway.start_listening(language, backend="openai"))
        await recorder.started.wait()
        await gateway.stop_listening()
        return await task

    @pytest.mark.asyncio
    async def test_transcribes_recording(self):
        recorder = FakeRecorder()
        client = transcription_client()
        backend = CloudTranscriptionBackend(recorder, api_key="sk-test", client_factory=lambda key: client)

        assert await self.listen_and_stop(backend, recorder) == "hello world"

        assert recorder.stopped
        client.audio.transcriptions.create.assert_awaited_once_with(
            model="whisper-1", file=("speech.wav", b"RIFF-audio"), language="en"
        )
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_auto_language_sends_no_hint(self):
        recorder = FakeRecorder()
        client = transcription_client()
        backend = CloudTranscriptionBackend(recorder, api_key="sk-test", client_factory=lambda key: client)

        await self.listen_and_stop(backend, recorder, language="auto")

        assert "language" not in client.audio.transcriptions.create.await_args.kwargs

    @pytest.mark.asyncio
    async def test_empty_recording_skips_upload(self):
        recorder = FakeRecorder(audio=b"")
        client = transcription_client()
        backend = CloudTranscriptionBackend(recorder, api_key="sk-test", client_factory=lambda key: client)

        assert await self.listen_and_stop(backend, recorder) == ""
        client.audio.transcriptions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_discards_audio(self):
        recorder = FakeRecorder()
        client = transcription_client()
        backend = CloudTranscriptionBackend(recorder, api_key="sk-test", client_factory=lambda key: client)
        gateway = TranscriptionGateway({BackendChoice.CLOUD: backend})

        task = asyncio.create_task(gateway.start_listening(backend="openai"))
        await recorder.started.wait()
        await gateway.cancel()

        assert await task == ""
        client.audio.transcriptions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_key(self):
        recorder = FakeRecorder()
        client = transcription_client(error=status_error(openai.AuthenticationError, 401, "bad key"))
        backend = CloudTranscriptionBackend(recorder, api_key="sk-bad", client_factory=lambda key: client)

        with pytest.raises(TranscriptionError) as exc_info:
            await self.listen_and_stop(backend, recorder)

        assert exc_info.value.kind is SpeechErrorKind.PERMISSION_DENIED
        assert exc_info.value.detail == "Invalid OpenAI API key"
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        recorder = FakeRecorder()
        client = transcription_client(error=status_error(openai.RateLimitError, 429, "slow down"))
        backend = CloudTranscriptionBackend(recorder, api_key="sk-test", client_factory=lambda key: client)

        with pytest.raises(TranscriptionError) as exc_info:
            await self.listen_and_stop(backend, recorder)

        assert exc_info.value.kind is SpeechErrorKind.NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_microphone_denied(self):
        recorder = FakeRecorder(start_error=PermissionError("mic blocked"))
        backend = CloudTranscriptionBackend(recorder, api_key="sk-test")

        with pytest.raises(TranscriptionError) as exc_info:
            await TranscriptionGateway({BackendChoice.CLOUD: backend}).start_listening(backend="openai")

        assert exc_info.value.kind is SpeechErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_no_capture_device(self):
        recorder = FakeRecorder(start_error=OSError("no input device"))
        backend = CloudTranscriptionBackend(recorder, api_key="sk-test")

        events = await collect(backend)

        assert events == [Errored(kind=SpeechErrorKind.AUDIO_CAPTURE_UNAVAILABLE, message="no input device")]

    @pytest.mark.asyncio
    async def test_requires_key_and_recorder(self, monkeypatch):
        assert not await CloudTranscriptionBackend(FakeRecorder()).is_available()
        assert not await CloudTranscriptionBackend(api_key="sk-test").is_available()

        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        assert await CloudTranscriptionBackend(FakeRecorder()).is_available()

    @pytest.mark.parametrize(
        ("language", "hint"),
        [("en-US", "en"), ("pt-BR", "pt"), ("de", "de"), ("auto", None), ("", None)],
    )
    def test_language_hint(self, language, hint):
        assert language_hint(language) == hint


class FakeInputStream:
    """Stands in for a sounddevice raw input stream."""

    def __init__(self, callback, start_error: Exception | None = None):
        self.callback = callback
        self.start_error = start_error
        self.started = False
        self.closed = False

    def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True

    def feed(self, pcm: bytes):
        self.callback(pcm, len(pcm) // 2, None, None)


class TestMicrophoneRecorder:
    """Tests for microphone capture and WAV encoding."""

    def recorder(self, start_error: Exception | None = None):
        streams: list[FakeInputStream] = []

        def factory(callback):
            streams.append(FakeInputStream(callback, start_error))
            return streams[-1]

        return MicrophoneRecorder(stream_factory=factory), streams

    @pytest.mark.asyncio
    async def test_recording_is_returned_as_wav(self):
        recorder, streams = self.recorder()

        await recorder.start()
        assert recorder.recording
        streams[0].feed(b"\x01\x00" * 100)
        streams[0].feed(b"\x02\x00" * 60)
        audio = await recorder.stop()

        assert streams[0].closed
        with wave.open(io.BytesIO(audio)) as wav:
            assert wav.getframerate() == 16000
            assert wav.getnchannels() == 1
            assert wav.getsampwidth() == 2
            assert wav.getnframes() == 160

    @pytest.mark.asyncio
    async def test_silence_is_an_empty_recording(self):
        recorder, _ = self.recorder()

        await recorder.start()

        assert await recorder.stop() == b""
        assert not recorder.recording

    @pytest.mark.asyncio
    async def test_each_recording_starts_empty(self):
        recorder, streams = self.recorder()
        await recorder.start()
        streams[0].feed(b"\x01\x00" * 10)
        await recorder.stop()

        await recorder.start()
        streams[1].feed(b"\x01\x00" * 4)

        with wave.open(io.BytesIO(await recorder.stop())) as wav:
            assert wav.getnframes() == 4

    @pytest.mark.asyncio
    async def test_device_errors_become_os_errors(self):
        recorder, _ = self.recorder(start_error=RuntimeError("Error querying device -1"))

        with pytest.raises(OSError, match="Microphone unavailable"):
            await recorder.start()
        assert not recorder.recording

    @pytest.mark.asyncio
    async def test_recording_feeds_cloud_transcription(self):
        recorder, streams = self.recorder()
        client = transcription_client("hello there")
        backend = CloudTranscriptionBackend(recorder=recorder, api_key="sk-test", client_factory=lambda key: client)
        gateway = TranscriptionGateway({BackendChoice.CLOUD: backend})

        task = asyncio.create_task(gateway.start_listening("en-US", backend="openai"))
        while not streams or not streams[0].started:
            await asyncio.sleep(0.01)
        streams[0].feed(b"\x03\x00" * 320)
        await gateway.stop_listening()

        assert await task == "hello there"
        upload = client.audio.transcriptions.create.await_args.kwargs["file"]
        assert upload[0] == "speech.wav"
        assert upload[1].startswith(b"RIFF")


class FakeVoice(SynthesisEngine):
    """Engine that speaks until released or cancelled."""

    def __init__(self):
        self.spoken: list[tuple[str, VoiceOptions]] = []
        self.started = asyncio.Event()
        self._release: asyncio.Event | None = None

    async def speak(self, text, options):
        self.spoken.append((text, options))
        self._release = asyncio.Event()
        self.started.set()
        await self._release.wait()

    async def cancel(self):
        if self._release is not None:
            self._release.set()

    def finish(self):
        self._release.set()


class CountingVoice(SynthesisEngine):
    """Engine that speaks until cancelled and tracks how many utterances overlap."""

    def __init__(self):
        self.spoken: list[str] = []
        self.active = 0
        self.peak = 0

    async def speak(self, text, options):
        self.spoken.append(text)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(30)
        finally:
            self.active -= 1

    async def cancel(self):
        pass


def write_pid_and_wait(pid_file) -> list[str]:
    return helper(
        f"""
        import os, pathlib, time
        pathlib.Path({str(pid_file)!r}).write_text(str(os.getpid()))
        time.sleep(30)
        """
    )


async def wait_for_pid(pid_file) -> int:
    for _ in range(200):
        if pid_file.exists() and pid_file.read_text():
            return int(pid_file.read_text())
        await asyncio.sleep(0.05)
    raise AssertionError("voice process did not start")


def process_exists(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


class TestSpeechSynthesizer:
    """Tests for one-utterance-at-a-time playback."""

    @pytest.mark.asyncio
    async def test_new_utterance_interrupts_the_previous_one(self):
        voice = FakeVoice()
        synthesizer = SpeechSynthesizer(voice)

        first = asyncio.create_task(synthesizer.speak("one"))
        await voice.started.wait()
        voice.started.clear()
        second = asyncio.create_task(synthesizer.speak("two", rate=1.5))
        await voice.started.wait()

        assert await first is False
        assert synthesizer.speaking

        voice.finish()
        assert await second is True
        assert not synthesizer.speaking
        assert [text for text, _ in voice.spoken] == ["one", "two"]
        assert voice.spoken[1][1].rate == 1.5

    @pytest.mark.asyncio
    async def test_stop(self):
        voice = FakeVoice()
        synthesizer = SpeechSynthesizer(voice)

        task = asyncio.create_task(synthesizer.speak("long reply"))
        await voice.started.wait()
        await synthesizer.stop()

        assert await task is False

    @pytest.mark.asyncio
    async def test_options_are_validated(self):
        with pytest.raises(ValueError):
            await SpeechSynthesizer(FakeVoice()).speak("hi", rate=3.0)

    @pytest.mark.asyncio
    async def test_overlapping_requests_keep_one_utterance(self):
        voice = CountingVoice()
        synthesizer = SpeechSynthesizer(voice)

        first = asyncio.create_task(synthesizer.speak("one"))
        while voice.active == 0:
            await asyncio.sleep(0.01)
        second = asyncio.create_task(synthesizer.speak("two"))
        third = asyncio.create_task(synthesizer.speak("three"))
        while voice.spoken[-1] != "three":
            await asyncio.sleep(0.01)

        assert voice.peak == 1
        assert voice.active == 1
        assert synthesizer.speaking

        await synthesizer.stop()

        assert await asyncio.gather(first, second, third) == [False, False, False]
        assert voice.active == 0
        assert not synthesizer.speaking

    @pytest.mark.asyncio
    async def test_cancelled_caller_stops_the_voice_process(self, monkeypatch, tmp_path):
        pid_file = tmp_path / "voice.pid"
        monkeypatch.setattr(
            "deskmate.speech.synthesis.voice_command", lambda text, options, platform: write_pid_and_wait(pid_file)
        )
        synthesizer = SpeechSynthesizer(CommandVoice("linux"))

        task = asyncio.create_task(synthesizer.speak("a long reply"))
        pid = await wait_for_pid(pid_file)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert not synthesizer.speaking
        assert not process_exists(pid)


class TestCommandVoice:
    def test_voice_command(self):
        assert voice_command("hi", VoiceOptions(), "darwin") == ["say", "-r", "175", "hi"]
        assert voice_command("hi", VoiceOptions(rate=2.0, pitch=1.5), "linux") == [
            "espeak", "-s", "350", "-p", "75", "hi"
        ]

    @pytest.mark.asyncio
    async def test_successful_utterance(self, monkeypatch):
        monkeypatch.setattr(
            "deskmate.speech.synthesis.voice_command", lambda text, options, platform: helper("pass")
        )
        await CommandVoice("linux").speak("hi", VoiceOptions())

    @pytest.mark.asyncio
    async def test_failed_utterance(self, monkeypatch):
        monkeypatch.setattr(
            "deskmate.speech.synthesis.voice_command",
            lambda text, options, platform: helper("import sys; sys.exit(3)"),
        )
        with pytest.raises(SynthesisError, match="exit status 3"):
            await CommandVoice("linux").speak("hi", VoiceOptions())

    @pytest.mark.asyncio
    async def test_missing_program(self, monkeypatch, tmp_path):
        monkeypatch.setattr(
            "deskmate.speech.synthesis.voice_command", lambda text, options, platform: [str(tmp_path / "no-voice")]
        )
        with pytest.raises(SynthesisError, match="No speech synthesizer found"):
            await CommandVoice("linux").speak("hi", VoiceOptions())

    @pytest.mark.asyncio
    async def test_cancelled_speak_terminates_the_process(self, monkeypatch, tmp_path):
        pid_file = tmp_path / "voice.pid"
        monkeypatch.setattr(
            "deskmate.speech.synthesis.voice_command", lambda text, options, platform: write_pid_and_wait(pid_file)
        )

        task = asyncio.create_task(CommandVoice("linux").speak("hi", VoiceOptions()))
        pid = await wait_for_pid(pid_file)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert not process_exists(pid)
