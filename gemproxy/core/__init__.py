"""Core module initialization."""

from .exceptions import (
    DecodeError,
    ImageDecodeError,
    InternalConsistencyError,
    InvalidParametersError,
    PartNotTextError,
    ProviderError,
    ProxyError,
    TurnOrderError,
    UnknownFinishReasonError,
    UnknownRoleError,
    UnsupportedContentError,
)
from .sse import DONE_EVENT, encode_sse_stream, format_sse_event

__all__ = [
    "DONE_EVENT",
    "DecodeError",
    "ImageDecodeError",
    "InternalConsistencyError",
    "InvalidParametersError",
    "PartNotTextError",
    "ProviderError",
    "ProxyError",
    "TurnOrderError",
    "UnknownFinishReasonError",
    "UnknownRoleError",
    "UnsupportedContentError",
    "encode_sse_stream",
    "format_sse_event",
]
