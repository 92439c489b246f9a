"""Constants shared by the TUI widgets, log panel and app."""

import logging


class LogLevel:
    """Panel log levels.

    The numbers are the standard `logging` ones, so a handler can be given
    one directly. The panel shows four levels and folds CRITICAL into ERROR.
    """

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARN",
        ERROR: "ERROR",
    }

    _by_flag = {
        "debug": DEBUG,
        "info": INFO,
        "warn": WARNING,
        "warning": WARNING,
        "error": ERROR,
    }

    @classmethod
    def name(cls, level: int) -> str:
        return cls._names[cls.clamp(level)]

    @classmethod
    def from_string(cls, value: str) -> int:
        """Level for a --log-level flag; unrecognised values mean DEBUG."""
        return cls._by_flag.get(value.strip().lower(), cls.DEBUG)

    @classmethod
    def clamp(cls, level: int) -> int:
        """Map any `logging` level onto the nearest panel level at or below it."""
        for candidate in (cls.ERROR, cls.WARNING, cls.INFO):
            if level >= candidate:
                return candidate
        return cls.DEBUG


# Up/Down recall in the input bar
INPUT_HISTORY_MAX_SIZE = 100

# Log panel
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500
LOGGER_NAME = "deskmate"

# Chat view
CHAT_TIMESTAMP_FORMAT = "%H:%M:%S"
HISTORY_DISPLAY_LIMIT = 50  # stored messages shown at startup

WELCOME_LINES = [
    "Welcome to Deskmate!",
    "",
    "Ask me anything, or try a local command:",
    "  open example.com      copy some text      clipboard      2+3*4",
    "",
    "Ctrl+T starts voice input, Ctrl+S opens settings.",
    "Click on any message to copy it to clipboard.",
]
