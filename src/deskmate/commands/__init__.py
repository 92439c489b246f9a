from .arithmetic import EvaluationError, ExpressionError, InvalidExpressionError, evaluate
from .base import ShellBridge
from .models import (
    ClipboardPayload,
    CommandError,
    CommandErrorKind,
    CommandKind,
    CommandResult,
    MathResult,
    SystemNotice,
)
from .parser import CLIPBOARD_ALIASES, classify, is_command, normalize_url
from .resolver import CommandResolver
from .system import SystemShell

__all__ = [
    "CLIPBOARD_ALIASES",
    "ClipboardPayload",
    "CommandError",
    "CommandErrorKind",
    "CommandKind",
    "CommandResolver",
    "CommandResult",
    "EvaluationError",
    "ExpressionError",
    "InvalidExpressionError",
    "MathResult",
    "ShellBridge",
    "SystemNotice",
    "SystemShell",
    "classify",
    "evaluate",
    "is_command",
    "normalize_url",
]
