"""Logging module for the proxy."""

from .recorder import RequestDumpWriter, format_request_dump, mask_headers
from .setup import logger, setup_logging

__all__ = [
    "logger",
    "setup_logging",
    "RequestDumpWriter",
    "format_request_dump",
    "mask_headers",
]
