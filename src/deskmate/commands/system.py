"""Default shell bridge backed by the host system.

Uses the standard `webbrowser` module to hand URLs to the system browser and
`pyperclip` for clipboard access (pbcopy/pbpaste on macOS, xclip/xsel or
wl-clipboard on Linux, the Win32 API on Windows).
"""

import logging
import webbrowser

import pyperclip

from .base import ShellBridge

logger = logging.getLogger(__name__)


class SystemShell(ShellBridge):
    """Shell bridge for the local desktop session."""

    def open_external(self, url: str) -> None:
        # new=2 asks for a new tab; open() returns as soon as the handler is launched
        if not webbrowser.open(url, new=2):
            logger.warning("No browser available to open %s", url)

    def read_clipboard(self) -> str:
        return pyperclip.paste() or ""

    def write_clipboard(self, text: str) -> None:
        pyperclip.copy(text)
