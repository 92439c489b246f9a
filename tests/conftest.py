"""Pytest configuration and shared fixtures."""
import asyncio
from datetime import datetime, timedelta

import pytest

from deskmate.commands import CommandResolver, ShellBridge
from deskmate.llm import (
    ChatAdapter,
    ChatMessage,
    NormalizedRequest,
    Outcome,
    ProviderKind,
    ProviderRouter,
    ProviderStatus,
    Success,
)
from deskmate.prompts import clear_cache
from deskmate.store import create_store


class FakeShell(ShellBridge):
    """Shell bridge that records calls instead of touching the desktop."""

    def __init__(self, clipboard: str = "", fail_open: Exception | None = None):
        self.clipboard = clipboard
        self.opened: list[str] = []
        self.fail_open = fail_open
        self.read_error: Exception | None = None

    def open_external(self, url: str) -> None:
        if self.fail_open is not None:
            raise self.fail_open
        self.opened.append(url)

    def read_clipboard(self) -> str:
        if self.read_error is not None:
            raise self.read_error
        return self.clipboard

    def write_clipboard(self, text: str) -> None:
        self.clipboard = text


class RecordingAdapter(ChatAdapter):
    """Adapter that records requests and answers with a fixed outcome."""

    def __init__(self, name: str = "Fake", outcome: Outcome | None = None, delay: float = 0.0):
        self._name = name
        self.outcome = outcome or Success(text=f"reply from {name}")
        self.delay = delay
        self.calls: list[tuple[NormalizedRequest, str | None, str | None]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return f"{self._name.lower()}-model"

    async def send(self, request, model_id=None, credential=None):
        self.calls.append((request, model_id, credential))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.outcome

    async def status(self) -> ProviderStatus:
        return ProviderStatus(running=True, models=[self.default_model])

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def prompts_dir(tmp_path, monkeypatch):
    """Empty ./prompts override directory in a fresh working directory."""
    monkeypatch.chdir(tmp_path)
    directory = tmp_path / "prompts"
    directory.mkdir()
    clear_cache()
    yield directory
    clear_cache()


@pytest.fixture
def shell():
    return FakeShell()


@pytest.fixture
def resolver(shell):
    return CommandResolver(shell)


@pytest.fixture
def local_adapter():
    return RecordingAdapter("Local")


@pytest.fixture
def cloud_adapter():
    return RecordingAdapter("Cloud")


@pytest.fixture
def router(local_adapter, cloud_adapter):
    return ProviderRouter({ProviderKind.LOCAL: local_adapter, ProviderKind.CLOUD: cloud_adapter})


@pytest.fixture
async def memory_store():
    store = create_store("memory")
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture
async def sqlite_store(tmp_path):
    store = create_store("sqlite", path=tmp_path / "deskmate.db")
    await store.connect()
    yield store
    await store.disconnect()


def make_history(count: int, start: datetime | None = None) -> list[ChatMessage]:
    """Alternating user/assistant messages numbered from 0."""
    start = start or datetime(2024, 1, 1, 12, 0, 0)
    return [
        ChatMessage(
            role="user" if i % 2 == 0 else "assistant",
            content=f"message {i}",
            timestamp=start + timedelta(seconds=i),
        )
        for i in range(count)
    ]


@pytest.fixture
def history_factory():
    return make_history


@pytest.fixture
def sample_history():
    """Fifteen prior messages followed by a new user turn."""
    history = make_history(15)
    history.append(ChatMessage(role="user", content="latest question"))
    return history
