"""Flashcards generation service.

``FlashcardsGenerator`` drives a single generation attempt: ask the model
for proposals, record the generation, and on any failure write a
generation error log before re-raising. Used by the HTTP handlers; the
record store and model client are injected so background jobs and tests can
supply their own.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from app.core.config import settings
from app.core.db_services import FlashcardRecordStore
from app.core.logging import bind, get_logger
from app.modules.flashcards.errors import GenerationFailed
from app.modules.flashcards.generator import (
    build_chat_request,
    get_model_client,
    parse_proposals,
    source_text_hash,
    translate_model_error,
)
from app.modules.flashcards.models.flashcards import (
    FlashcardProposal,
    GenerationResult,
)
from app.modules.llm import OpenRouterClient, OpenRouterError

logger = get_logger(__name__)

# (error raised while writing the log, error that triggered the log)
ErrorLogObserver = Callable[[Exception, Exception], None]


def _warn_error_log_failure(log_error: Exception, original: Exception) -> None:
    logger.warning(
        f"Failed to log generation error: {log_error!r} (original error: {original!r})"
    )


def error_code_for(exc: Exception) -> str:
    if isinstance(exc, GenerationFailed):
        return exc.code
    if isinstance(exc, OpenRouterError):
        return exc.code.value
    return type(exc).__name__


class FlashcardsGenerator:
    """Generate flashcard proposals from source text and record the attempt."""

    def __init__(
        self,
        store: FlashcardRecordStore,
        *,
        client: Optional[OpenRouterClient] = None,
        model: Optional[str] = None,
        on_error_log_failure: Optional[ErrorLogObserver] = None,
    ) -> None:
        self.store = store
        self._client = client
        self.model = model or settings.generation.model
        self.on_error_log_failure = on_error_log_failure or _warn_error_log_failure

    @property
    def client(self) -> OpenRouterClient:
        if self._client is None:
            self._client = get_model_client()
        return self._client

    async def generate(self, source_text: str, user_id: int) -> GenerationResult:
        # Configuration errors (missing API key) surface before the attempt
        # starts and are not recorded as generation errors
        client = self.client

        started = time.perf_counter()
        text_hash = source_text_hash(source_text)

        try:
            proposals, duration_ms = await self._call_model(client, source_text)
            if duration_ms is None:
                duration_ms = int((time.perf_counter() - started) * 1000)

            generation = await self.store.insert_generation(
                user_id=user_id,
                model=self.model,
                generated_count=len(proposals),
                source_text_hash=text_hash,
                source_text_length=len(source_text),
                generation_duration=duration_ms,
            )
        except Exception as exc:
            await self._log_generation_error(
                exc,
                user_id=user_id,
                text_hash=text_hash,
                text_length=len(source_text),
                elapsed_ms=int((time.perf_counter() - started) * 1000),
            )
            raise

        log = bind(logger, user_id=user_id, generation_id=generation.id)
        log.info(
            f"Generation {generation.id} stored: {len(proposals)} proposals "
            f"in {duration_ms}ms"
        )
        return GenerationResult(
            generation_id=generation.id,
            flashcards_proposals=proposals,
            generated_count=len(proposals),
        )

    async def _call_model(
        self, client: OpenRouterClient, source_text: str
    ) -> tuple[list[FlashcardProposal], Optional[int]]:
        request = build_chat_request(source_text, self.model)
        try:
            result = await client.send(request)
        except OpenRouterError as e:
            logger.error(f"OpenRouter error [{e.code.value}]: {e.message}")
            raise translate_model_error(e) from e
        return parse_proposals(result.content), result.metadata.duration_ms

    async def _log_generation_error(
        self,
        exc: Exception,
        *,
        user_id: int,
        text_hash: str,
        text_length: int,
        elapsed_ms: int,
    ) -> None:
        code = error_code_for(exc)
        bind(logger, user_id=user_id).error(
            f"Generation failed after {elapsed_ms}ms [{code}]: {exc}"
        )
        try:
            await self.store.insert_generation_error_log(
                user_id=user_id,
                model=self.model,
                source_text_hash=text_hash,
                source_text_length=text_length,
                error_code=code,
                error_message=str(exc) or repr(exc),
            )
        except Exception as log_error:
            try:
                self.on_error_log_failure(log_error, exc)
            except Exception:
                logger.exception("Error-log failure observer raised")
