"""Modal screens for the TUI.

This module hides the design decisions about:
- Settings dialog layout and widgets
- Keyboard shortcuts for dialogs
- How edited values are handed back to the app
"""

from typing import Any

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, Static, Switch

from ..prompts import STYLE_LABELS, STYLES
from ..settings import AppSettings
from ..speech import SUPPORTED_LANGUAGES

PROVIDER_OPTIONS = [("Ollama (local)", "local"), ("Gemini (cloud)", "cloud")]
STT_OPTIONS = [
    ("Streaming (online)", "browser"),
    ("Native helper (offline)", "native"),
    ("OpenAI Whisper", "openai"),
]


def language_options(current: str) -> list[tuple[str, str]]:
    """Language choices, keeping a stored tag that is not in the built-in list."""
    options = [(name, code) for code, name in SUPPORTED_LANGUAGES]
    if current not in {code for _, code in options}:
        options.append((current, current))
    return options


class SettingsScreen(ModalScreen[dict[str, Any] | None]):
    """Settings dialog.

    Dismisses with a dict of changed values, or None when cancelled.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
        Binding("ctrl+s", "save", "Save", show=False),
    ]

    def __init__(self, settings: AppSettings) -> None:
        super().__init__()
        self._settings = settings

    def compose(self) -> ComposeResult:
        s = self._settings
        with Vertical(id="settings-dialog"):
            yield Static("Settings", id="settings-title")
            with VerticalScroll():
                with Horizontal(classes="setting-row"):
                    yield Label("Model backend")
                    yield Select(PROVIDER_OPTIONS, value=s.provider, allow_blank=False, id="provider")
                with Horizontal(classes="setting-row"):
                    yield Label("Ollama model")
                    yield Input(value=s.ollama_model, id="ollama_model")
                with Horizontal(classes="setting-row"):
                    yield Label("Gemini model")
                    yield Input(value=s.gemini_model, id="gemini_model")
                with Horizontal(classes="setting-row"):
                    yield Label("Gemini API key")
                    yield Input(value=s.gemini_api_key, password=True, placeholder="uses $GEMINI_API_KEY", id="gemini_api_key")
                with Horizontal(classes="setting-row"):
                    yield Label("Style")
                    yield Select(
                        [(STYLE_LABELS[style], style) for style in STYLES],
                        value=s.style,
                        allow_blank=False,
                        id="style",
                    )
                with Horizontal(classes="setting-row"):
                    yield Label("Speech recognition")
                    yield Select(STT_OPTIONS, value=s.stt_provider, allow_blank=False, id="stt_provider")
                with Horizontal(classes="setting-row"):
                    yield Label("Speech language")
                    yield Select(
                        language_options(s.speech_language),
                        value=s.speech_language,
                        allow_blank=False,
                        id="speech_language",
                    )
                with Horizontal(classes="setting-row"):
                    yield Label("Auto-submit voice")
                    yield Switch(value=s.auto_submit_voice, id="auto_submit_voice")
                with Horizontal(classes="setting-row"):
                    yield Label("Read replies aloud")
                    yield Switch(value=s.sound_enabled, id="sound_enabled")
                with Horizontal(classes="setting-row"):
                    yield Label("Speech rate (0.5-2)")
                    yield Input(value=str(s.speech_rate), type="number", id="speech_rate")
                with Horizontal(classes="setting-row"):
                    yield Label("Speech pitch (0.5-1.5)")
                    yield Input(value=str(s.speech_pitch), type="number", id="speech_pitch")
            with Horizontal(id="settings-buttons"):
                yield Button("Save", id="btn-save", variant="success")
                yield Button("Cancel", id="btn-cancel", variant="error")

    def collect(self) -> dict[str, Any]:
        """Values that differ from the current settings."""
        values: dict[str, Any] = {}
        for name in ("provider", "style", "stt_provider", "speech_language"):
            values[name] = self.query_one(f"#{name}", Select).value
        for name in ("ollama_model", "gemini_model", "gemini_api_key", "speech_rate", "speech_pitch"):
            values[name] = self.query_one(f"#{name}", Input).value.strip()
        for name in ("auto_submit_voice", "sound_enabled"):
            values[name] = self.query_one(f"#{name}", Switch).value

        current = self._settings.model_dump()
        return {name: value for name, value in values.items() if str(value) != str(current[name])}

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save":
            self.action_save()
        elif event.button.id == "btn-cancel":
            self.action_cancel()

    def action_save(self) -> None:
        self.dismiss(self.collect())

    def action_cancel(self) -> None:
        self.dismiss(None)
