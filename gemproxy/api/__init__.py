"""API module for the proxy."""

from .routes import catch_all, chat_completions, health

__all__ = [
    "catch_all",
    "chat_completions",
    "health",
]
