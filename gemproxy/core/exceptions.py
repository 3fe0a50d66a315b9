"""Core exceptions for the proxy."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for proxy errors."""

    status_code = 500
    error_type = "server_error"
    code = "internal_error"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_detail(self) -> dict:
        """Render the OpenAI-style error envelope for this error."""
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }


class DecodeError(ProxyError):
    """Raised when an incoming request body cannot be decoded."""

    status_code = 400
    error_type = "invalid_request_error"
    code = "decode_error"


class ImageDecodeError(DecodeError):
    """Raised when an embedded image data URI is malformed."""

    code = "invalid_image"


class InvalidParametersError(ProxyError):
    """Raised when a request cannot be represented by the translation layer."""

    status_code = 400
    error_type = "invalid_request_error"
    code = "invalid_parameters"


class UnknownRoleError(InvalidParametersError):
    """Raised when a message role has no Gemini counterpart."""

    def __init__(self, role: str) -> None:
        super().__init__(f"invalid parameters: failed to map openai role to gemini role: role={role!r}")
        self.role = role


class UnsupportedContentError(InvalidParametersError):
    """Raised for content part types the proxy cannot forward."""

    def __init__(self, part_type: str) -> None:
        super().__init__(f"invalid parameters: unsupported content part type: type={part_type!r}")
        self.part_type = part_type


class UnknownFinishReasonError(InvalidParametersError):
    """Raised when Gemini reports a finish reason outside the known table."""

    def __init__(self, finish_reason: object) -> None:
        super().__init__(
            "invalid parameters: failed to map gemini finish reason to openai finish reason: "
            f"finish_reason={finish_reason!r}"
        )
        self.finish_reason = finish_reason


class InternalConsistencyError(ProxyError):
    """Raised when a later stage finds a shape earlier stages should have rejected."""

    status_code = 500
    error_type = "server_error"
    code = "internal_consistency"


class PartNotTextError(InternalConsistencyError):
    """Raised when a reply part expected to be text is not."""


class TurnOrderError(InternalConsistencyError):
    """Raised when the turn list violates the user-first/user-last contract."""


class ProviderError(ProxyError):
    """Raised when the downstream Gemini call fails."""

    status_code = 422
    error_type = "provider_error"
    code = "provider_error"
