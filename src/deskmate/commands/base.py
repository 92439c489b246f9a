"""Abstract OS shell collaborator.

This module hides how the host operating system opens URLs and accesses the
clipboard. The command resolver only talks to this interface.
"""

from abc import ABC, abstractmethod


class ShellBridge(ABC):
    """OS-level integration used by local commands."""

    @abstractmethod
    def open_external(self, url: str) -> None:
        """Open a URL with the system handler without waiting for it to load."""

    @abstractmethod
    def read_clipboard(self) -> str:
        """Get the current clipboard text (empty string if none)."""

    @abstractmethod
    def write_clipboard(self, text: str) -> None:
        """Replace the clipboard contents with `text`."""
