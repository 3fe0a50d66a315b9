"""Write-once dumps of raw requests for offline diagnosis."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger("gemproxy")

SENSITIVE_HEADERS = {"authorization", "x-goog-api-key", "cookie"}


def mask_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` with credentials masked."""
    masked: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            masked[key] = "***"
        else:
            masked[key] = value
    return masked


def format_request_dump(
    method: str,
    path: str,
    headers: Mapping[str, str],
    body: bytes,
    query: str = "",
) -> bytes:
    """Render a raw HTTP request, credentials masked."""
    target = f"{path}?{query}" if query else path
    lines = [f"{method} {target} HTTP/1.1"]
    for key, value in mask_headers(headers).items():
        lines.append(f"{key}: {value}")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("utf-8") + body


class RequestDumpWriter:
    """Persist raw request/response pairs under ``directory``.

    Files are named after the current second and never overwritten: if a
    dump with the same name exists, the new one is skipped.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, timestamp: Optional[datetime] = None) -> Path:
        timestamp = timestamp or datetime.now()
        return self.directory / f"request-{timestamp.strftime('%Y-%m-%d %H:%M:%S')}.txt"

    def record(
        self,
        raw_request: bytes,
        raw_response: bytes = b"",
        timestamp: Optional[datetime] = None,
    ) -> Optional[Path]:
        """Write one dump; returns its path, or None when it already existed.

        Raises:
            OSError: The directory or file could not be written.
        """
        path = self.path_for(timestamp)
        self.directory.mkdir(parents=True, exist_ok=True)

        content = raw_request
        if raw_response:
            content = content + b"\n\n" + raw_response

        try:
            with path.open("xb") as fh:
                fh.write(content)
        except FileExistsError:
            logger.debug(f"Request dump {path.name} already exists; skipping")
            return None

        logger.info(f"Wrote request dump to {path}")
        return path
