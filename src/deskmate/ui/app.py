"""Main Textual TUI application.

Orchestrates the UI components and handles user interaction with the chat
flow, settings and voice services.
"""

import asyncio
import logging
from typing import Any

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header

from ..chat import NO_SPEECH_MESSAGE, Assistant
from ..llm import ChatMessage, ProviderKind
from ..settings import AppSettings, load_settings, update_settings
from ..speech import (
    Interim,
    SpeechSynthesizer,
    Started,
    SynthesisError,
    TranscriptionError,
    TranscriptionGateway,
)
from ..store import ChatHistory, KeyValueStore
from .config import HISTORY_DISPLAY_LIMIT, WELCOME_LINES, LogLevel
from .log_handler import install_panel_handler, remove_panel_handler
from .screens import SettingsScreen
from .styles import APP_CSS
from .themes import DESKMATE_MACCHIATO
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel, StatusBar, copy_text

logger = logging.getLogger(__name__)


class DeskmateApp(App):
    """Textual TUI for the desktop assistant."""

    CSS = APP_CSS
    TITLE = "Deskmate"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+k", "clear_chat", "Clear Chat"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
        Binding("ctrl+t", "voice_input", "Voice"),
        Binding("ctrl+s", "open_settings", "Settings"),
        Binding("ctrl+d", "toggle_debug", "Log"),
        Binding("escape", "stop", "Stop"),
    ]

    def __init__(
        self,
        assistant: Assistant,
        store: KeyValueStore,
        gateway: TranscriptionGateway | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._assistant = assistant
        self._store = store
        self._history = ChatHistory(store)
        self._gateway = gateway
        self._synthesizer = synthesizer
        self._log_level = log_level
        self._settings = AppSettings()
        self._messages: list[ChatMessage] = []
        self._log_handler = None

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield ChatHistoryWidget(id="chat-history")
        yield DebugPanel(id="debug-panel")
        with Vertical(id="bottom-bar"):
            yield StatusBar(id="status")
            yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    async def on_mount(self) -> None:
        self.register_theme(DESKMATE_MACCHIATO)
        self.theme = "deskmate-macchiato"

        log_panel = self.query_one("#debug-panel", DebugPanel)
        level = LogLevel.from_string(self._log_level) if self._log_level else LogLevel.INFO
        log_panel.level_name = LogLevel.name(level)
        self._log_handler = install_panel_handler(self, log_panel, level)
        if self._log_level is not None:
            log_panel.set_visible(True)
            logger.info("Log panel enabled with level: %s", LogLevel.name(level))

        self._settings = await load_settings(self._store)
        self._messages = await self._history.load()
        self._refresh_status()

        chat = self.query_one("#chat-history", ChatHistoryWidget)
        if self._messages:
            for message in self._messages[-HISTORY_DISPLAY_LIMIT:]:
                chat.show_message(message)
        else:
            chat.add_message("assistant", "\n".join(WELCOME_LINES))

        self.query_one("#chat-input-bar", ChatInputBar).focus_input()
        self._check_service()

    def on_unmount(self) -> None:
        if self._log_handler is not None:
            remove_panel_handler(self._log_handler)
            self._log_handler = None

    def _refresh_status(self) -> None:
        self.query_one("#status", StatusBar).show_settings(self._settings)
        self.sub_title = f"{self._settings.provider} | {self._settings.style}"

    @work(exclusive=True, group="status")
    async def _check_service(self) -> None:
        """Probe the active backend and show its state in the status bar."""
        status_bar = self.query_one("#status", StatusBar)
        kind = ProviderKind.parse(self._settings.provider)
        status = await self._assistant.router.status(kind)
        if kind is ProviderKind.CLOUD:
            configured = status.running or bool(self._settings.gemini_api_key)
            status_bar.show_service("key set" if configured else "no API key")
        elif status.running:
            status_bar.show_service(f"running ({len(status.models)} models)")
        else:
            status_bar.show_service("not running")

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        self._submit(event.value)

    async def on_chat_input_bar_mic_pressed(self, event: ChatInputBar.MicPressed) -> None:
        await self.action_voice_input()

    @work(exclusive=True, group="chat")
    async def _submit(self, text: str) -> None:
        """Run one submission through the chat flow."""
        chat = self.query_one("#chat-history", ChatHistoryWidget)
        chat.add_message("user", text)

        try:
            new_messages = await self._assistant.submit(
                text, self._messages, self._settings.to_provider_config()
            )
        except asyncio.CancelledError:
            self.notify("Cancelled", severity="warning", timeout=2)
            raise
        except Exception as e:
            logger.exception("Submission failed")
            chat.add_message("assistant", f"Error: {e}")
            return

        for message in new_messages[1:]:
            chat.show_message(message)

        try:
            self._messages = await self._history.extend(new_messages)
        except Exception as e:
            logger.warning("Could not save chat history: %s", e)
            self._messages = [*self._messages, *new_messages]

        reply = new_messages[-1] if len(new_messages) > 1 else None
        if reply is not None and reply.role == "assistant" and self._settings.sound_enabled:
            self._speak(reply.content)

    @work(exclusive=True, group="speech")
    async def _speak(self, text: str) -> None:
        if self._synthesizer is None:
            return
        try:
            await self._synthesizer.speak(text, self._settings.speech_rate, self._settings.speech_pitch)
        except SynthesisError as e:
            logger.warning("Speech synthesis failed: %s", e)

    async def action_voice_input(self) -> None:
        """Start listening, or finish the session in progress."""
        if self._gateway is None:
            self.notify("Voice input is not configured", severity="warning")
            return
        if self._gateway.active:
            await self._gateway.stop_listening()
            return
        self._listen()

    @work(exclusive=True, group="voice")
    async def _listen(self) -> None:
        input_bar = self.query_one("#chat-input-bar", ChatInputBar)
        status_bar = self.query_one("#status", StatusBar)

        def on_event(event) -> None:
            if isinstance(event, Started):
                status_bar.show_voice("Listening...")
            elif isinstance(event, Interim):
                input_bar.set_text(event.text)

        if self._synthesizer is not None:
            await self._synthesizer.stop()

        input_bar.set_listening(True)
        status_bar.show_voice("Starting mic...")
        try:
            text = await self._gateway.start_listening(
                self._settings.speech_language,
                self._settings.stt_provider,
                on_event=on_event,
            )
        except TranscriptionError as e:
            logger.warning("Voice input failed: %s (%s)", e.kind.value, e)
            self.notify(e.user_message, severity="error", timeout=5)
            return
        finally:
            input_bar.set_listening(False)
            status_bar.show_voice("")

        if not text:
            self.query_one("#chat-history", ChatHistoryWidget).add_message("system", NO_SPEECH_MESSAGE)
            return

        if self._settings.auto_submit_voice:
            input_bar.set_text("")
            self._submit(text)
        else:
            input_bar.set_text(text)
            input_bar.focus_input()

    async def action_stop(self) -> None:
        """Finish listening and stop speaking."""
        if self._gateway is not None and self._gateway.active:
            await self._gateway.stop_listening()
        if self._synthesizer is not None and self._synthesizer.speaking:
            await self._synthesizer.stop()

    def action_clear_chat(self) -> None:
        self.query_one("#chat-history", ChatHistoryWidget).clear_history()
        self._messages = []
        self._clear_history()

    @work(group="history")
    async def _clear_history(self) -> None:
        await self._history.clear()
        self.notify("Chat cleared", timeout=2)

    def action_toggle_debug(self) -> None:
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_copy_last_response(self) -> None:
        response = self.query_one("#chat-history", ChatHistoryWidget).get_last_response()
        if response:
            copy_text(self, response, "Response copied")
        else:
            self.notify("No response to copy", severity="warning")

    def action_open_settings(self) -> None:
        self.push_screen(SettingsScreen(self._settings), self._on_settings_closed)

    def _on_settings_closed(self, changes: dict[str, Any] | None) -> None:
        if changes:
            self._save_settings(changes)

    @work(exclusive=True, group="store")
    async def _save_settings(self, changes: dict[str, Any]) -> None:
        try:
            self._settings = await update_settings(self._store, **changes)
        except (KeyError, ValueError) as e:
            self.notify(f"Settings not saved: {e}", severity="error", timeout=5)
            return
        self._refresh_status()
        self._check_service()
        self.notify("Settings saved", timeout=2)


async def run_textual_tui(
    assistant: Assistant,
    store: KeyValueStore,
    gateway: TranscriptionGateway | None = None,
    synthesizer: SpeechSynthesizer | None = None,
    log_level: str | None = None,
) -> None:
    """Run the Textual TUI.

    Args:
        assistant: Chat flow (command resolver + provider router)
        store: Connected store for settings and chat history
        gateway: Speech-to-text service, None disables voice input
        synthesizer: Text-to-speech service, None disables read-back
        log_level: Log level for panel (debug/info/warning/error), None to hide
    """
    app = DeskmateApp(
        assistant=assistant,
        store=store,
        gateway=gateway,
        synthesizer=synthesizer,
        log_level=log_level,
    )
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        if gateway is not None:
            await gateway.cancel()
        if synthesizer is not None:
            await synthesizer.stop()
