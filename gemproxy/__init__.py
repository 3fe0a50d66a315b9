"""gemproxy - OpenAI-compatible chat completions served by Google Gemini.

Accepts OpenAI chat completion requests, reshapes the flat message list into
Gemini's alternating user/model conversation, and reshapes Gemini's replies
(including streams) back into OpenAI's schema.

This module provides:
- create_app: FastAPI application factory
- GeminiAdapter: request/response translation around Gemini chat sessions
- ClientCache: one Gemini client per API key

Example:
    >>> from gemproxy import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="0.0.0.0", port=8080)
"""

from .adapter import GeminiAdapter
from .client_cache import ClientCache
from .config_loader import Settings, load_config, load_settings
from .logging import RequestDumpWriter, logger, setup_logging
from .main import create_app, run

__all__ = [
    "ClientCache",
    "GeminiAdapter",
    "RequestDumpWriter",
    "Settings",
    "create_app",
    "load_config",
    "load_settings",
    "logger",
    "run",
    "setup_logging",
]
