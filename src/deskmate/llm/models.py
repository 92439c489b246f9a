from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ChatMessage(BaseModel):
    """Represents a chat message in a conversation.

    `system` messages are local-only annotations (notices from commands) and
    are never sent to a model backend.
    """

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"] = Field(
        description="Role of the message sender: 'user', 'assistant', or 'system'"
    )
    content: str = Field(description="Content of the message")
    timestamp: datetime = Field(default_factory=datetime.now)


class Turn(BaseModel):
    """One message of the sequence sent to a model backend."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class NormalizedRequest(BaseModel):
    """Provider-independent chat request built fresh for every call."""

    model_config = ConfigDict(frozen=True)

    system_prompt: str = Field(description="Style prompt injected ahead of the turns")
    turns: tuple[Turn, ...] = Field(default=(), description="Oldest-first conversation turns")


class ProviderKind(str, Enum):
    """Model backends the router can dispatch to."""

    LOCAL = "local"
    CLOUD = "cloud"

    @classmethod
    def parse(cls, value: "str | ProviderKind | None") -> "ProviderKind":
        """Map a configured provider name to a kind, defaulting to LOCAL.

        Accepts the backend names as aliases ("ollama", "gemini").
        """
        if isinstance(value, ProviderKind):
            return value
        name = (value or "").strip().lower()
        return _PROVIDER_ALIASES.get(name, cls.LOCAL)


_PROVIDER_ALIASES = {
    "local": ProviderKind.LOCAL,
    "ollama": ProviderKind.LOCAL,
    "cloud": ProviderKind.CLOUD,
    "gemini": ProviderKind.CLOUD,
}


class ProviderConfig(BaseModel):
    """Per-request provider selection supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    provider: str | None = Field(default="local", description="'local' or 'cloud' (unknown values mean local)")
    local_model_id: str = Field(default="mistral:latest")
    cloud_model_id: str = Field(default="gemini-2.0-flash")
    credential: SecretStr | None = Field(default=None, description="Cloud API key; None falls back to the environment")
    style: str = Field(default="default")

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.parse(self.provider)

    @property
    def model_id(self) -> str:
        """Model id for the selected provider."""
        if self.kind is ProviderKind.CLOUD:
            return self.cloud_model_id
        return self.local_model_id

    def credential_value(self) -> str | None:
        if self.credential is None:
            return None
        return self.credential.get_secret_value() or None


class FailureKind(str, Enum):
    """Classified provider failures."""

    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"


class Success(BaseModel):
    """Model call that produced text."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    text: str

    @property
    def ok(self) -> bool:
        return True


class Failure(BaseModel):
    """Model call that failed, with a user-facing message."""

    model_config = ConfigDict(frozen=True)

    status: Literal["failure"] = "failure"
    kind: FailureKind
    message: str = Field(description="Actionable, human-readable message")
    detail: str | None = Field(default=None, description="Upstream error text, if any")

    @property
    def ok(self) -> bool:
        return False


Outcome = Annotated[Success | Failure, Field(discriminator="status")]


class ProviderStatus(BaseModel):
    """Reachability of a backend and the models it offers."""

    model_config = ConfigDict(frozen=True)

    running: bool = False
    models: list[str] = Field(default_factory=list)
