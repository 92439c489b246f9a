"""Textual widgets for the chat window: messages, input bar, status line and log panel."""

import pyperclip
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click, Key
from textual.message import Message
from textual.widgets import Button, Markdown, RichLog, Static, TextArea

from ..llm import ChatMessage
from ..prompts import STYLE_LABELS
from ..settings import AppSettings
from .config import CHAT_TIMESTAMP_FORMAT
from .input_history import InputHistory


def copy_text(app, text: str, label: str = "Copied to clipboard") -> None:
    """Copy text with pyperclip, falling back to the terminal's OSC 52."""
    try:
        pyperclip.copy(text)
        app.notify(label, timeout=2)
    except pyperclip.PyperclipException:
        app.copy_to_clipboard(text)
        app.notify(f"{label} (terminal)", timeout=2)


class ClickableMessage(Vertical):
    """A chat message container that copies content when clicked."""

    def __init__(self, content: str, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._content = content

    def on_click(self, event: Click) -> None:
        event.stop()
        copy_text(self.app, self._content)


class ChatInputBar(Horizontal):
    """Multi-line input with mic and send buttons.

    Ctrl+J submits (terminals report Enter without modifiers). Up on the first
    character and Down on the last one browse earlier submissions; once
    browsing, both keep stepping until Down returns to a fresh line.
    """

    class Submitted(Message):
        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    class MicPressed(Message):
        pass

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.history = InputHistory()

    @property
    def _text_area(self) -> TextArea:
        return self.query_one("#chat-input", TextArea)

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        text_area.highlight_cursor_line = False
        yield text_area
        yield Button("Mic", id="mic-btn").with_tooltip("Voice input (Ctrl+T)")
        yield Button("Send", id="send-btn", variant="success").with_tooltip("Send (Ctrl+J)")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()
        elif event.button.id == "mic-btn":
            self.post_message(self.MicPressed())

    def on_key(self, event: Key) -> None:
        text_area = self._text_area
        if event.key == "ctrl+j":
            self._submit()
        elif event.key == "up" and (self.history.browsing or text_area.cursor_location == (0, 0)):
            recalled = self.history.older()
            if recalled is None:
                return
            self.set_text(recalled)
        elif event.key == "down" and (self.history.browsing or text_area.cursor_location == text_area.document.end):
            recalled = self.history.newer()
            if recalled is None:
                return
            self.set_text(recalled)
        else:
            return
        event.prevent_default()
        event.stop()

    def _submit(self) -> None:
        value = self._text_area.text.strip()
        if not value:
            return
        self.history.remember(value)
        self._text_area.text = ""
        self.post_message(self.Submitted(value))

    def set_text(self, text: str) -> None:
        """Replace the input text and put the cursor at its end."""
        text_area = self._text_area
        text_area.text = text
        text_area.move_cursor(text_area.document.end)

    def set_listening(self, listening: bool) -> None:
        button = self.query_one("#mic-btn", Button)
        button.label = "Stop" if listening else "Mic"
        button.set_class(listening, "listening")

    def focus_input(self) -> None:
        self._text_area.focus()


class StatusBar(Static):
    """One-line summary of the active backend, model, style and voice state."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._provider = "local"
        self._model = ""
        self._style = "default"
        self._service = "checking..."
        self._voice = ""

    def on_mount(self) -> None:
        self._update_display()

    def show_settings(self, settings: AppSettings) -> None:
        self._provider = settings.provider
        self._model = settings.gemini_model if settings.provider == "cloud" else settings.ollama_model
        self._style = settings.style
        self._update_display()

    def show_service(self, description: str) -> None:
        self._service = description
        self._update_display()

    def show_voice(self, description: str) -> None:
        self._voice = description
        self.set_class(bool(description), "listening")
        self._update_display()

    def _update_display(self) -> None:
        backend = "Gemini" if self._provider == "cloud" else "Ollama"
        parts = [
            f"[bold cyan]Backend:[/] {backend}",
            f"[bold green]Model:[/] {self._model}",
            f"[bold magenta]Style:[/] {STYLE_LABELS.get(self._style, self._style)}",
            f"[bold yellow]Service:[/] {self._service}",
        ]
        if self._voice:
            parts.append(f"[bold]{self._voice}[/]")
        self.update("  ".join(parts))


class DebugPanel(RichLog):
    """Log panel fed by PanelLogHandler.

    Hidden unless the TUI starts with --log-level; Ctrl+D toggles it and a
    click copies its plain text.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Hidden"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, markup=True, highlight=False, auto_scroll=True, wrap=False, **kwargs)
        self.level_name = "INFO"

    def on_mount(self) -> None:
        self.display = False

    def write_line(self, markup: str) -> None:
        self.write(markup)

    def set_visible(self, visible: bool) -> None:
        self.display = visible
        self.border_subtitle = f"Level: {self.level_name}" if visible else "Hidden"

    def toggle(self) -> bool:
        """Flip visibility and return the new state."""
        self.set_visible(not self.display)
        return bool(self.display)

    def on_click(self, event: Click) -> None:
        event.stop()
        text = "\n".join(line.text for line in self.lines)
        if text.strip():
            copy_text(self.app, text, "Log copied")
        else:
            self.app.notify("Log is empty", timeout=2)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable chat history."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_MAXIMIZE = True

    ROLE_DISPLAY = {
        "user": ("You", "user-message", ">"),
        "assistant": ("Deskmate", "assistant-message", "<"),
        "system": ("System", "system-message", "*"),
    }

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._messages: list[ChatMessage] = []

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def add_message(self, role: str, content: str) -> ChatMessage:
        """Add a new message to the chat history."""
        message = ChatMessage(role=role, content=content)
        self.show_message(message)
        return message

    def show_message(self, message: ChatMessage) -> None:
        """Display an existing message (e.g. from stored history)."""
        self._messages.append(message)
        self._render_message(message)
        self.border_subtitle = f"{len(self._messages)} messages"
        self.scroll_end(animate=False)

    def get_last_response(self) -> str | None:
        """Get the last assistant response."""
        for message in reversed(self._messages):
            if message.role == "assistant":
                return message.content
        return None

    def clear_history(self) -> None:
        self._messages.clear()
        self.remove_children()
        self.border_subtitle = "Conversation history"

    def _render_message(self, message: ChatMessage) -> None:
        prefix, border_class, icon = self.ROLE_DISPLAY[message.role]
        timestamp = message.timestamp.strftime(CHAT_TIMESTAMP_FORMAT)

        container = ClickableMessage(content=message.content, classes=f"chat-message {border_class}")
        container.compose_add_child(Static(f"{icon} {prefix} [{timestamp}]", classes="message-header", markup=False))

        content = message.content.strip()
        if message.role == "assistant" and ("```" in content or "\n" not in content):
            container.compose_add_child(Markdown(content, classes="message-content"))
        else:
            # Multi-line plain text keeps its line breaks
            container.compose_add_child(Static(content, classes="message-content", markup=False))

        self.mount(container)
