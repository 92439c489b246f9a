"""
Deskmate: a desktop chat assistant shell.

Routes user input either to local commands (open a URL, read or write the
clipboard, evaluate arithmetic) or to a local or cloud language model, and
offers voice input and read-back. Each subpackage hides one design decision:
how commands run, how a model backend is called, how speech is captured, and
where settings live.
"""

__version__ = "0.1.0"

from .chat import Assistant
from .commands import CommandResolver, SystemShell
from .llm import ChatMessage, Outcome, ProviderConfig, ProviderRouter
from .prompts import resolve_style
from .speech import SpeechSynthesizer, TranscriptionGateway, create_gateway

__all__ = [
    "Assistant",
    "ChatMessage",
    "CommandResolver",
    "Outcome",
    "ProviderConfig",
    "ProviderRouter",
    "SpeechSynthesizer",
    "SystemShell",
    "TranscriptionGateway",
    "create_gateway",
    "resolve_style",
]
