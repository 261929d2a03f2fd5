"""Pydantic models for the OpenRouter chat-completion wire format.

``ChatRequest`` is the immutable per-call context: model, sampling
parameters, messages and response format travel together in one value so a
single ``OpenRouterClient`` can serve concurrent callers.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorCode

DEFAULT_MODEL = "gpt-4o-mini"


class ModelParameters(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    temperature: float = 0.7
    top_p: float = 1
    frequency_penalty: float = 0
    presence_penalty: float = 0
    max_tokens: int = 4096


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Everything one ``send`` needs besides the client's own credentials."""

    model_config = ConfigDict(frozen=True)

    model: str = DEFAULT_MODEL
    parameters: ModelParameters = Field(default_factory=ModelParameters)
    system_message: str = ""
    user_message: str = ""
    json_mode: bool = False

    def with_system_message(self, message: str) -> "ChatRequest":
        return self.model_copy(update={"system_message": message})

    def with_user_message(self, message: str) -> "ChatRequest":
        return self.model_copy(update={"user_message": message})

    def with_json_mode(self, enabled: bool = True) -> "ChatRequest":
        return self.model_copy(update={"json_mode": enabled})

    def with_model(self, name: str, **parameters: Any) -> "ChatRequest":
        """Switch model; given parameters are merged over the current ones."""
        merged = ModelParameters.model_validate(
            {**self.parameters.model_dump(), **parameters}
        )
        return self.model_copy(update={"model": name, "parameters": merged})

    def messages(self) -> list[ChatMessage]:
        out: list[ChatMessage] = []
        if self.system_message:
            out.append(ChatMessage(role="system", content=self.system_message))
        out.append(ChatMessage(role="user", content=self.user_message))
        return out

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [m.model_dump() for m in self.messages()],
            **self.parameters.model_dump(),
        }
        if self.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload


class CompletionMessage(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class CompletionChoice(BaseModel):
    message: CompletionMessage = Field(default_factory=CompletionMessage)
    finish_reason: Optional[str] = None


class Usage(BaseModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ChatCompletionResponse(BaseModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[CompletionChoice] = Field(default_factory=list)
    usage: Optional[Usage] = None


class RequestMetadata(BaseModel):
    """Observability record for one ``send`` call (never persisted)."""

    model: str
    request_start_time: float
    request_end_time: Optional[float] = None
    duration_ms: Optional[int] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    attempts: int = 0
    success: bool = False
    error_code: Optional[ErrorCode] = None
    error_message: Optional[str] = None


class ChatResult(BaseModel):
    """Parsed content of a successful call plus that call's metadata."""

    content: Any
    metadata: RequestMetadata


__all__ = [
    "DEFAULT_MODEL",
    "ModelParameters",
    "ChatMessage",
    "ChatRequest",
    "CompletionMessage",
    "CompletionChoice",
    "Usage",
    "ChatCompletionResponse",
    "RequestMetadata",
    "ChatResult",
]
