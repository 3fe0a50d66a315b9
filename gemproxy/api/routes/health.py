"""Health check and fallback routes."""

import logging

from fastapi import Request
from fastapi.responses import PlainTextResponse

logger = logging.getLogger("gemproxy")


async def health() -> PlainTextResponse:
    """GET /health"""
    return PlainTextResponse("OK")


async def catch_all(request: Request, path: str) -> PlainTextResponse:
    logger.error(f"not found: path=/{path}")
    return PlainTextResponse("404 - Not Found", status_code=404)
