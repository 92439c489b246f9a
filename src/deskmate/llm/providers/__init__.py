from .gemini import CloudModelAdapter
from .ollama import LocalModelAdapter

__all__ = ["CloudModelAdapter", "LocalModelAdapter"]
