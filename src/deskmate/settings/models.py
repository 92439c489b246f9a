"""Application settings model.

Defaults match a fresh install: local model backend, friendly style, speech
read-back on, browser-grade speech recognition.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from ..llm.models import ProviderConfig, ProviderKind
from ..prompts import normalize_style


class AppSettings(BaseModel):
    """Persisted user settings."""

    model_config = ConfigDict(validate_assignment=True)

    provider: Literal["local", "cloud"] = Field(default="local", description="Model backend")
    ollama_model: str = Field(default="mistral:latest", description="Local model tag")
    gemini_model: str = Field(default="gemini-2.0-flash", description="Cloud model id")
    gemini_api_key: str = Field(default="", description="Cloud API key (empty uses $GEMINI_API_KEY)")
    style: str = Field(default="default", description="Assistant style id")

    sound_enabled: bool = Field(default=True, description="Read replies aloud")
    speech_rate: float = Field(default=1.0, ge=0.5, le=2.0)
    speech_pitch: float = Field(default=1.0, ge=0.5, le=1.5)

    stt_provider: Literal["browser", "native", "openai"] = Field(default="browser")
    speech_language: str = Field(default="en-US")
    auto_submit_voice: bool = Field(default=True, description="Submit voice input automatically")

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ProviderKind.parse(value).value
        return value

    @field_validator("style", mode="before")
    @classmethod
    def _normalize_style(cls, value: Any) -> str:
        return normalize_style(value if isinstance(value, str) else None)

    @classmethod
    def from_stored(cls, data: Any) -> "AppSettings":
        """Merge stored values over defaults.

        Unknown keys are ignored and invalid values fall back to their defaults.
        """
        settings = cls()
        if not isinstance(data, dict):
            return settings
        for name in cls.model_fields:
            if name not in data:
                continue
            try:
                setattr(settings, name, data[name])
            except ValidationError:
                continue
        return settings

    def to_provider_config(self) -> ProviderConfig:
        """Build the per-request provider configuration."""
        return ProviderConfig(
            provider=self.provider,
            local_model_id=self.ollama_model,
            cloud_model_id=self.gemini_model,
            credential=SecretStr(self.gemini_api_key) if self.gemini_api_key else None,
            style=self.style,
        )

    def masked(self) -> dict[str, Any]:
        """Settings as a dict with the API key hidden."""
        data = self.model_dump()
        if data["gemini_api_key"]:
            data["gemini_api_key"] = "********"
        return data
