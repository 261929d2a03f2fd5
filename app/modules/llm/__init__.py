"""OpenRouter chat-completion client exports."""

from .client import OpenRouterClient
from .errors import ErrorCode, OpenRouterError
from .models import ChatRequest, ChatResult, ModelParameters, RequestMetadata

__all__ = [
    "OpenRouterClient",
    "ErrorCode",
    "OpenRouterError",
    "ChatRequest",
    "ChatResult",
    "ModelParameters",
    "RequestMetadata",
]
