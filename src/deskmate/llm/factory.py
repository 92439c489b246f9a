from collections.abc import Callable
from typing import Any

from .base import ChatAdapter
from .models import ProviderKind
from .providers import CloudModelAdapter, LocalModelAdapter

# One adapter class per provider kind; adding a provider means adding a
# ProviderKind member and an entry here.
ADAPTERS: dict[ProviderKind, Callable[..., ChatAdapter]] = {
    ProviderKind.LOCAL: LocalModelAdapter,
    ProviderKind.CLOUD: CloudModelAdapter,
}


def create_chat_adapter(provider: str | ProviderKind, **config: Any) -> ChatAdapter:
    """Create a chat adapter instance.

    This factory function hides the instantiation logic for different backends.

    Args:
        provider: Provider kind or alias ('local'/'ollama', 'cloud'/'gemini')
        **config: Adapter-specific configuration
            For local (Ollama):
                - base_url: str | None (default: $OLLAMA_BASE_URL or http://127.0.0.1:11434)
                - model: str (default: 'mistral:latest')
                - timeout_s: float (default: 60)
            For cloud (Gemini):
                - api_key: str | None (default: $GEMINI_API_KEY at call time)
                - model: str (default: 'gemini-2.0-flash')
                - timeout_s: float (default: 60)

    Returns:
        Initialized adapter instance

    Raises:
        ValueError: If provider name is not supported

    Examples:
        >>> adapter = create_chat_adapter("local", model="llama3")
        >>> adapter = create_chat_adapter("gemini", api_key="...")
    """
    if isinstance(provider, ProviderKind):
        kind = provider
    else:
        name = provider.strip().lower()
        kind = ProviderKind.parse(name)
        if kind is ProviderKind.LOCAL and name not in ("local", "ollama"):
            raise ValueError(
                f"Unsupported provider: {provider}. "
                f"Supported providers: 'local' (ollama), 'cloud' (gemini)"
            )

    return ADAPTERS[kind](**config)


def create_default_adapters(**config_by_kind: dict[str, Any]) -> dict[ProviderKind, ChatAdapter]:
    """Create one adapter per provider kind.

    Args:
        **config_by_kind: Optional per-kind configuration, keyed by kind value
            (e.g. local={"model": "llama3"}, cloud={"api_key": "..."})
    """
    return {
        kind: create_chat_adapter(kind, **config_by_kind.get(kind.value, {}))
        for kind in ADAPTERS
    }
