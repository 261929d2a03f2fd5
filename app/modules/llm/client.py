"""Resilient client for the OpenRouter chat-completion endpoint.

The client itself only holds the immutable transport policy (credential,
base URL, per-attempt timeout, retry budget, backoff delay) and is safe to
share between concurrent requests. Everything that varies per call lives in
the ``ChatRequest`` handed to ``send``.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.logging import get_logger

from .errors import ErrorCode, OpenRouterError
from .models import ChatCompletionResponse, ChatRequest, ChatResult, RequestMetadata

logger = get_logger(__name__)


class OpenRouterClient:
    """Send chat-completion requests with timeout, retry and response parsing."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        cfg = settings.openrouter
        self.api_key = api_key or cfg.api_key
        if not self.api_key:
            raise OpenRouterError(
                "OpenRouter API key is required. Provide it via api_key or the "
                "OPENROUTER_API_KEY environment variable.",
                ErrorCode.MISSING_API_KEY,
            )
        self.base_url = (base_url or cfg.base_url).rstrip("/")
        self.timeout = cfg.timeout_seconds if timeout is None else timeout
        self.max_retries = cfg.max_retries if max_retries is None else max_retries
        self.retry_delay = cfg.retry_delay_seconds if retry_delay is None else retry_delay
        self._transport = transport

        # Convenience for single-owner callers; concurrent callers should read
        # ``ChatResult.metadata`` / ``OpenRouterError.metadata`` instead.
        self.last_metadata: Optional[RequestMetadata] = None

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": settings.openrouter.site_url,
            "X-Title": settings.openrouter.app_title,
        }

    async def send(self, request: ChatRequest) -> ChatResult:
        """Execute one logical request (possibly several HTTP attempts).

        Returns the message content, decoded from JSON when
        ``request.json_mode`` is set, together with the call's metadata.
        Raises ``OpenRouterError`` on every failure.
        """
        started_at = time.time()
        t0 = time.perf_counter()
        metadata = RequestMetadata(model=request.model, request_start_time=started_at)

        try:
            if not request.user_message:
                raise OpenRouterError(
                    "User message is required. Provide it via ChatRequest.user_message.",
                    ErrorCode.MISSING_USER_MESSAGE,
                )
            payload = request.to_payload()
            self._log_payload(payload)
            body = await self._execute(payload, metadata)
            content = self._parse_response(body, json_mode=request.json_mode)
        except OpenRouterError as e:
            self._finish(metadata, t0, error=e)
            e.metadata = metadata
            raise
        except Exception as e:
            err = OpenRouterError(
                str(e) or "Unknown error", ErrorCode.UNKNOWN_ERROR, original_error=e
            )
            self._finish(metadata, t0, error=err)
            err.metadata = metadata
            raise err from e

        if body.usage is not None:
            metadata.prompt_tokens = body.usage.prompt_tokens
            metadata.completion_tokens = body.usage.completion_tokens
            metadata.total_tokens = body.usage.total_tokens
        self._finish(metadata, t0)
        return ChatResult(content=content, metadata=metadata)

    async def _execute(
        self, payload: dict[str, Any], metadata: RequestMetadata
    ) -> ChatCompletionResponse:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            for attempt in range(self.max_retries + 1):
                metadata.attempts = attempt + 1
                try:
                    return await self._attempt(client, payload)
                except OpenRouterError as e:
                    error = e
                except Exception as e:
                    raise OpenRouterError(
                        f"Request failed after {attempt + 1} attempt(s): {e}",
                        ErrorCode.REQUEST_FAILED,
                        original_error=e,
                    ) from e

                if not error.retryable or attempt >= self.max_retries:
                    raise error

                delay = self.retry_delay * (2**attempt)
                logger.warning(
                    f"[OpenRouter] {error.code.value} on attempt {attempt + 1}, "
                    f"retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

        raise OpenRouterError("Request failed: Unknown error", ErrorCode.UNKNOWN_ERROR)

    async def _attempt(
        self, client: httpx.AsyncClient, payload: dict[str, Any]
    ) -> ChatCompletionResponse:
        try:
            response = await asyncio.wait_for(
                client.post("/chat/completions", json=payload), timeout=self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise OpenRouterError(
                f"Request timed out after {self.timeout}s",
                ErrorCode.TIMEOUT_ERROR,
                original_error=e,
                retryable=True,
            ) from e
        except httpx.TransportError as e:
            raise OpenRouterError(
                f"Network error: {e}",
                ErrorCode.NETWORK_ERROR,
                original_error=e,
                retryable=True,
            ) from e

        if not response.is_success:
            raise self._http_error(response)

        try:
            return ChatCompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise OpenRouterError(
                f"Invalid API response: {e}",
                ErrorCode.INVALID_RESPONSE,
                status_code=response.status_code,
                original_error=e,
            ) from e

    @staticmethod
    def _http_error(response: httpx.Response) -> OpenRouterError:
        try:
            data = response.json()
        except ValueError:
            data = {}

        message = None
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            message = data["error"].get("message")
        if not message:
            message = f"HTTP {response.status_code}: {response.reason_phrase}"

        status = response.status_code
        if status in (401, 403):
            code, retryable = ErrorCode.AUTHENTICATION_ERROR, False
        elif status == 429:
            code, retryable = ErrorCode.RATE_LIMIT_ERROR, True
        elif status >= 500:
            code, retryable = ErrorCode.HTTP_ERROR, True
        else:
            code, retryable = ErrorCode.HTTP_ERROR, False

        logger.debug(f"[OpenRouter] HTTP error {status}: {data!r}")
        return OpenRouterError(
            message,
            code,
            status_code=status,
            original_error=data,
            retryable=retryable,
        )

    @staticmethod
    def _parse_response(body: ChatCompletionResponse, *, json_mode: bool) -> Any:
        if not body.choices:
            raise OpenRouterError(
                "Invalid API response: no choices returned",
                ErrorCode.INVALID_RESPONSE,
            )

        content = body.choices[0].message.content
        if not content:
            raise OpenRouterError(
                "Invalid API response: empty content", ErrorCode.EMPTY_RESPONSE
            )

        if not json_mode:
            return content

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise OpenRouterError(
                f"Failed to parse JSON response: {e}",
                ErrorCode.JSON_PARSE_ERROR,
                original_error=e,
            ) from e

    def _finish(
        self,
        metadata: RequestMetadata,
        t0: float,
        *,
        error: Optional[OpenRouterError] = None,
    ) -> None:
        metadata.request_end_time = time.time()
        metadata.duration_ms = int((time.perf_counter() - t0) * 1000)
        metadata.success = error is None
        if error is not None:
            metadata.error_code = error.code
            metadata.error_message = error.message
        self.last_metadata = metadata

        if metadata.success:
            logger.info(
                f"[OpenRouter] Request successful: model={metadata.model} "
                f"duration={metadata.duration_ms}ms attempts={metadata.attempts} "
                f"tokens={metadata.total_tokens}"
            )
        else:
            logger.error(
                f"[OpenRouter] Request failed: model={metadata.model} "
                f"duration={metadata.duration_ms}ms attempts={metadata.attempts} "
                f"code={metadata.error_code.value if metadata.error_code else None} "
                f"message={metadata.error_message}"
            )

    @staticmethod
    def _log_payload(payload: dict[str, Any]) -> None:
        messages = payload.get("messages", [])
        system_len = sum(len(m["content"]) for m in messages if m["role"] == "system")
        user_len = sum(len(m["content"]) for m in messages if m["role"] == "user")
        logger.debug(
            f"[OpenRouter] Request payload: model={payload.get('model')} "
            f"messages={len(messages)} system_len={system_len} user_len={user_len} "
            f"temperature={payload.get('temperature')} max_tokens={payload.get('max_tokens')} "
            f"response_format={payload.get('response_format')}"
        )
