"""Conversion of single OpenAI content fragments into Gemini parts."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass

from google.genai import types

from ..core.exceptions import ImageDecodeError, UnsupportedContentError
from ..types.chat import ContentPart, ImagePart, TextPart

logger = logging.getLogger("gemproxy")


@dataclass(frozen=True)
class DecodedImage:
    """Binary image payload decoded from a data URI."""

    mime_subtype: str
    data: bytes

    @property
    def mime_type(self) -> str:
        return f"image/{self.mime_subtype}"


def decode_data_uri(url: str) -> DecodedImage:
    """Decode a ``data:<mime>;base64,<payload>`` literal.

    Raises:
        ImageDecodeError: The literal has no ``;`` separator, is not an image,
            or carries a payload that is not valid base64.
    """
    header, sep, payload = url.partition(";")
    if not sep:
        raise ImageDecodeError("invalid parameters: invalid image url")

    mime_type = header.replace("data:", "")
    if not mime_type.startswith("image/") or mime_type == "image/":
        raise ImageDecodeError(f"invalid parameters: unsupported image mime type: {mime_type!r}")

    encoded = payload.replace("base64,", "")
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"failed to decode base64 image: {exc}") from exc

    return DecodedImage(mime_subtype=mime_type[len("image/"):], data=data)


def convert_part(part: ContentPart) -> types.Part:
    """Convert one decoded content fragment into a Gemini part."""
    if isinstance(part, TextPart):
        return types.Part.from_text(text=part.text)
    if isinstance(part, ImagePart):
        image = decode_data_uri(part.url)
        logger.debug("Decoded inline image: mime=%s bytes=%d", image.mime_type, len(image.data))
        return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)
    raise UnsupportedContentError(type(part).__name__)


def is_text_part(part: types.Part) -> bool:
    """Return True when a Gemini part carries text only."""
    return part.text is not None and part.inline_data is None


def is_inline_data_part(part: types.Part) -> bool:
    return part.inline_data is not None
