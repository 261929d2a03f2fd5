"""Error taxonomy for the OpenRouter chat-completion client."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .models import RequestMetadata


class ErrorCode(str, enum.Enum):
    MISSING_API_KEY = "MISSING_API_KEY"
    MISSING_USER_MESSAGE = "MISSING_USER_MESSAGE"
    HTTP_ERROR = "HTTP_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    REQUEST_FAILED = "REQUEST_FAILED"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    JSON_PARSE_ERROR = "JSON_PARSE_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class OpenRouterError(Exception):
    """Typed failure raised by ``OpenRouterClient``.

    Carries a machine-readable ``code``, the HTTP status when one was
    received, the lower-level error that caused it and whether the client
    considers it worth retrying. ``metadata`` is filled in by ``send`` once
    the call has finished.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        *,
        status_code: Optional[int] = None,
        original_error: Any = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.original_error = original_error
        self.retryable = retryable
        self.metadata: Optional["RequestMetadata"] = None

    def __repr__(self) -> str:
        return (
            f"OpenRouterError(code={self.code.value!r}, status_code={self.status_code!r}, "
            f"retryable={self.retryable!r}, message={self.message!r})"
        )


__all__ = ["ErrorCode", "OpenRouterError"]
