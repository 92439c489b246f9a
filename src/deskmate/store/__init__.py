"""Persistent storage module for deskmate.

Provides the key-value store used for settings and chat history.
"""

from .base import KeyValueStore
from .factory import create_store
from .history import HISTORY_KEY, MAX_HISTORY_MESSAGES, ChatHistory

__all__ = [
    "HISTORY_KEY",
    "MAX_HISTORY_MESSAGES",
    "ChatHistory",
    "KeyValueStore",
    "create_store",
]
