"""Terminal UI module for deskmate.

Provides a Textual-based TUI for the chat assistant.

Module structure (each module hides a design decision):
- config.py: Constants and log levels
- widgets.py: Custom widgets (input bar, status line, log panel, chat rendering)
- input_history.py: Up/Down recall of submitted lines
- styles.py: CSS styling (layout decisions)
- themes.py: Color palettes and theme configuration
- screens.py: Modal dialogs (settings screen)
- log_handler.py: How log records reach the log panel
- app.py: Application orchestration (user interaction flow)
"""

from .app import DeskmateApp, run_textual_tui
from .config import LogLevel
from .input_history import InputHistory
from .log_handler import PanelLogHandler
from .screens import SettingsScreen
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel, StatusBar

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "DebugPanel",
    "DeskmateApp",
    "InputHistory",
    "LogLevel",
    "PanelLogHandler",
    "SettingsScreen",
    "StatusBar",
    "run_textual_tui",
]
