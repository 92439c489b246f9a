"""Component factory functions for CLI.

Centralizes creation of the store, router, assistant and speech services from
environment variables. Hides configuration details from command implementations.
"""

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from ..chat import Assistant
from ..commands import CommandResolver, SystemShell
from ..llm import ProviderRouter, create_default_adapters
from ..speech import (
    DEFAULT_FALLBACKS,
    MicrophoneRecorder,
    SpeechSynthesizer,
    TranscriptionGateway,
    create_gateway,
)
from ..store import KeyValueStore, create_store

DEFAULT_DB_PATH = Path("~/.deskmate/deskmate.db")
LOG_LEVEL_ENV_VAR = "DESKMATE_LOG_LEVEL"

LOG_LEVELS = ("debug", "info", "warning", "error")

# Stderr console so log output never mixes with command output
_log_console = Console(stderr=True)


def configure_logging(level: str | None = None) -> None:
    """Send log records to stderr through Rich.

    Args:
        level: debug, info, warning or error (default: $DESKMATE_LOG_LEVEL or warning)
    """
    name = (level or os.getenv(LOG_LEVEL_ENV_VAR) or "warning").lower()
    if name not in LOG_LEVELS:
        name = "warning"
    logging.basicConfig(
        level=name.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_log_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # HTTP client chatter is only useful when debugging
    if name != "debug":
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("google_genai").setLevel(logging.WARNING)


def get_store(in_memory: bool = False) -> KeyValueStore:
    """Create the settings and history store.

    Returns:
        SQLite store, or an in-memory store when `in_memory` is set

    Environment variables:
        DESKMATE_DB: SQLite database path (default: ~/.deskmate/deskmate.db)
    """
    if in_memory:
        return create_store("memory")
    return create_store("sqlite", path=Path(os.getenv("DESKMATE_DB") or DEFAULT_DB_PATH).expanduser())


def get_router() -> ProviderRouter:
    """Create the provider router with one adapter per backend.

    Environment variables:
        OLLAMA_BASE_URL: Local model service (default: http://127.0.0.1:11434)
        GEMINI_API_KEY: Cloud credential used when settings carry none
    """
    return ProviderRouter(create_default_adapters())


def get_assistant(router: ProviderRouter | None = None) -> Assistant:
    """Create the chat flow over the host system shell."""
    return Assistant(CommandResolver(SystemShell()), router or get_router())


def get_gateway() -> TranscriptionGateway:
    """Create the transcription gateway.

    The cloud backend records from the default microphone. When the requested
    backend cannot run here, the native helper and then the cloud backend are
    tried instead.

    Environment variables:
        DESKMATE_SPEECH_HELPER: Native speech helper command
        OPENAI_API_KEY: Cloud transcription key
    """
    return create_gateway(recorder=MicrophoneRecorder(), fallbacks=DEFAULT_FALLBACKS)


def get_synthesizer() -> SpeechSynthesizer:
    return SpeechSynthesizer()
