"""Recall of previously submitted input lines.

Kept apart from the input widget so the browsing rules can be exercised
without a running Textual app.
"""

from .config import INPUT_HISTORY_MAX_SIZE


class InputHistory:
    """Bounded list of submitted lines with a browse cursor.

    The cursor is None while the user is typing a fresh line; `older()` walks
    back from the newest entry and `newer()` walks forward until it falls off
    the end, which returns to the fresh line.
    """

    def __init__(self, max_size: int = INPUT_HISTORY_MAX_SIZE) -> None:
        self._entries: list[str] = []
        self._max_size = max_size
        self._cursor: int | None = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def browsing(self) -> bool:
        return self._cursor is not None

    def remember(self, line: str) -> None:
        """Store a submitted line (consecutive duplicates are stored once)."""
        if not self._entries or self._entries[-1] != line:
            self._entries.append(line)
            if len(self._entries) > self._max_size:
                self._entries = self._entries[-self._max_size:]
        self._cursor = None

    def older(self) -> str | None:
        """Step back one entry. None when there is nothing to recall."""
        if not self._entries:
            return None
        if self._cursor is None:
            self._cursor = len(self._entries) - 1
        else:
            self._cursor = max(0, self._cursor - 1)
        return self._entries[self._cursor]

    def newer(self) -> str | None:
        """Step forward one entry. Returns "" when leaving the history, None when not browsing."""
        if self._cursor is None:
            return None
        if self._cursor + 1 >= len(self._entries):
            self._cursor = None
            return ""
        self._cursor += 1
        return self._entries[self._cursor]
