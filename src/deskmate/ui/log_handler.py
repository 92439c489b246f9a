"""Bridge from the standard logging module to the TUI log panel."""

import asyncio
import logging
from datetime import datetime

from rich.markup import escape

from .config import LOG_MAX_MESSAGE_LENGTH, LOG_TIMESTAMP_FORMAT, LOGGER_NAME, LogLevel

LEVEL_COLORS = {
    LogLevel.DEBUG: "dim white",
    LogLevel.INFO: "cyan",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
}

COMPONENT_COLORS = {
    "ui": "cyan",
    "commands": "green",
    "llm": "magenta",
    "speech": "bright_yellow",
    "store": "bright_green",
    "settings": "bright_blue",
    "chat": "bright_cyan",
}


def component_for(logger_name: str) -> str:
    """Short component label for a logger name ('deskmate.llm.router' -> 'llm')."""
    parts = logger_name.split(".")
    if parts[0] == LOGGER_NAME and len(parts) > 1:
        return parts[1]
    return parts[0]


def format_record(record: logging.LogRecord) -> str:
    """Render a record as one line of panel markup.

    The message is escaped, so text such as "[red]" from upstream errors is
    shown literally.
    """
    message = record.getMessage()
    if record.exc_info and record.exc_info[1] is not None:
        message = f"{message}: {record.exc_info[1]}"
    if len(message) > LOG_MAX_MESSAGE_LENGTH:
        message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

    level = LogLevel.clamp(record.levelno)
    component = component_for(record.name)
    when = datetime.fromtimestamp(record.created).strftime(LOG_TIMESTAMP_FORMAT)
    component_color = COMPONENT_COLORS.get(component, "white")
    return (
        f"[dim]{when}[/] "
        f"[{LEVEL_COLORS[level]}]{LogLevel.name(level):<5}[/] "
        f"[{component_color}]\\[{escape(component)}][/] {escape(message)}"
    )


class PanelLogHandler(logging.Handler):
    """Forwards log records to a DebugPanel.

    Records from the app's event loop are written directly; records from
    other threads are handed over with `call_from_thread`.
    """

    def __init__(self, app, panel, level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self._app = app
        self._panel = panel

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = format_record(record)
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                self._app.call_from_thread(self._panel.write_line, line)
            else:
                self._panel.write_line(line)
        except Exception:
            self.handleError(record)


def install_panel_handler(app, panel, level: int) -> PanelLogHandler:
    """Attach a panel handler to the deskmate logger tree."""
    handler = PanelLogHandler(app, panel, level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


def remove_panel_handler(handler: PanelLogHandler) -> None:
    logging.getLogger(LOGGER_NAME).removeHandler(handler)
