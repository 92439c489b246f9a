"""Data models for local commands.

These models define what the command resolver hands back to the chat flow,
independent of how the command was executed.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class CommandKind(str, Enum):
    """Kinds of local command, in classification precedence order."""

    OPEN_URL = "open_url"
    CLIPBOARD_READ = "clipboard_read"
    CLIPBOARD_WRITE = "clipboard_write"
    ARITHMETIC = "arithmetic"


class CommandErrorKind(str, Enum):
    """Failure kinds for command execution."""

    EMPTY_CLIPBOARD = "empty_clipboard"
    INVALID_EXPRESSION = "invalid_expression"
    EVALUATION_ERROR = "evaluation_error"


class SystemNotice(BaseModel):
    """A notice describing an action the shell performed."""

    model_config = ConfigDict(frozen=True)

    type: Literal["system"] = "system"
    text: str = Field(description="Human-readable description of the action")


class ClipboardPayload(BaseModel):
    """Text read from the clipboard.

    An empty clipboard is still a recognized command; it carries an error
    annotation instead of text.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["clipboard"] = "clipboard"
    text: str = Field(default="", description="Clipboard contents")
    error: CommandErrorKind | None = Field(default=None, description="Set when nothing could be read")
    error_message: str | None = Field(default=None, description="User-facing error text")
    summarize: bool = Field(default=False, description="Caller should summarize the text with a model")


class MathResult(BaseModel):
    """Result of an arithmetic command."""

    model_config = ConfigDict(frozen=True)

    type: Literal["math"] = "math"
    value: float = Field(description="Finite numeric result")

    @property
    def display(self) -> str:
        """Value rendered without a trailing '.0' for integral results."""
        if self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)


class CommandError(BaseModel):
    """A recognized command that could not be executed."""

    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    kind: CommandErrorKind
    text: str = Field(description="User-facing error text")


CommandResult = Annotated[
    SystemNotice | ClipboardPayload | MathResult | CommandError,
    Field(discriminator="type"),
]
