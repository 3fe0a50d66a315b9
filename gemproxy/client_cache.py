"""Credential-scoped cache of Gemini clients.

One client is kept per API key. Construction happens outside any lock:
concurrent callers with the same new key may each build a client, but only
the first one installed is kept and the others are closed right away.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from google import genai

logger = logging.getLogger("gemproxy")

ClientFactory = Callable[[str], Any]


def create_gemini_client(api_key: str) -> genai.Client:
    """Default factory: a google-genai client bound to one API key.

    genai.Client falls back to GEMINI_API_KEY / GOOGLE_API_KEY when given an
    empty key, so a blank caller credential is refused here.

    Raises:
        ValueError: ``api_key`` is empty or blank.
    """
    if not api_key or not api_key.strip():
        raise ValueError("missing API key: send 'Authorization: Bearer <key>'")
    return genai.Client(api_key=api_key)


def _mask_key(api_key: str) -> str:
    if len(api_key) <= 8:
        return "***"
    return f"{api_key[:4]}...{api_key[-4:]}"


async def close_client(client: Any) -> None:
    """Release the sync and async transports of a client."""
    aio = getattr(client, "aio", None)
    if aio is not None and callable(getattr(aio, "aclose", None)):
        await aio.aclose()
    if callable(getattr(client, "close", None)):
        client.close()


class ClientCache:
    """Process-wide map from API key to a lazily built client handle.

    Create one per application, pass it to whoever needs clients, and call
    ``aclose()`` once at shutdown. ``aclose()`` must not run concurrently
    with ``get()``.
    """

    def __init__(self, factory: Optional[ClientFactory] = None) -> None:
        self._factory: ClientFactory = factory or create_gemini_client
        self._clients: dict[str, Any] = {}
        self._closing: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, api_key: object) -> bool:
        return api_key in self._clients

    def get(self, api_key: str) -> Any:
        """Return the client for ``api_key``, building it on first use.

        Construction errors propagate and leave the cache untouched.
        """
        client = self._clients.get(api_key)
        if client is not None:
            return client

        created = self._factory(api_key)
        # dict.setdefault is a single atomic load-or-store
        winner = self._clients.setdefault(api_key, created)
        if winner is not created:
            logger.debug("Discarding redundant client for key %s", _mask_key(api_key))
            self._discard(created)
        else:
            logger.info("Created Gemini client for key %s", _mask_key(api_key))
        return winner

    def _discard(self, client: Any) -> None:
        """Release both transports of a client that lost the install race.

        Inside an event loop the close is scheduled as a task; from a plain
        thread it runs to completion on a private loop.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                asyncio.run(close_client(client))
            except Exception as exc:
                logger.warning(f"Failed to close redundant client: {exc}")
            return

        task = loop.create_task(close_client(client))
        self._closing.add(task)
        task.add_done_callback(self._closing_done)

    def _closing_done(self, task: "asyncio.Task[None]") -> None:
        self._closing.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Failed to close redundant client: {task.exception()}")

    async def aclose(self) -> None:
        """Close every cached client and empty the cache."""
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)

        clients = list(self._clients.values())
        self._clients.clear()
        if not clients:
            return
        logger.info("Closing %d cached Gemini clients", len(clients))
        results = await asyncio.gather(
            *(close_client(client) for client in clients),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Failed to close client: {result}")
