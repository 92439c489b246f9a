from .base import DEFAULT_TIMEOUT_S, ChatAdapter
from .errors import FAILURE_MESSAGES, failure_message, make_failure
from .factory import ADAPTERS, create_chat_adapter, create_default_adapters
from .models import (
    ChatMessage,
    Failure,
    FailureKind,
    NormalizedRequest,
    Outcome,
    ProviderConfig,
    ProviderKind,
    ProviderStatus,
    Success,
    Turn,
)
from .providers import CloudModelAdapter, LocalModelAdapter
from .router import HISTORY_WINDOW, ProviderRouter, build_request, window_turns

__all__ = [
    "ADAPTERS",
    "DEFAULT_TIMEOUT_S",
    "FAILURE_MESSAGES",
    "HISTORY_WINDOW",
    "ChatAdapter",
    "ChatMessage",
    "CloudModelAdapter",
    "Failure",
    "FailureKind",
    "LocalModelAdapter",
    "NormalizedRequest",
    "Outcome",
    "ProviderConfig",
    "ProviderKind",
    "ProviderRouter",
    "ProviderStatus",
    "Success",
    "Turn",
    "build_request",
    "create_chat_adapter",
    "create_default_adapters",
    "failure_message",
    "make_failure",
    "window_turns",
]
