"""API routes for the proxy."""

from .chat import chat_completions
from .health import catch_all, health

__all__ = [
    "catch_all",
    "chat_completions",
    "health",
]
