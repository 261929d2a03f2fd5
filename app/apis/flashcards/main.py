from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.apis.deps import CurrentUser, get_batch_writer, get_generator, get_record_store
from app.apis.errors import ApiError
from app.core.config import settings
from app.core.db_services import FlashcardRecordStore
from app.core.logging import bind, get_logger
from app.modules.flashcards import (
    FieldError,
    FlashcardBatchError,
    FlashcardBatchWriter,
    FlashcardsGenerator,
    GenerationFailed,
    validate_flashcards_create,
    validate_generation_request,
)
from .schemas import (
    FlashcardRead,
    FlashcardsCreateResponse,
    GenerationCreateResponse,
    GenerationErrorLogRead,
    GenerationRead,
)


router = APIRouter()

logger = get_logger(__name__)


def _validation_error(details: list[FieldError]) -> ApiError:
    return ApiError(
        status.HTTP_400_BAD_REQUEST, "Validation Error", "Invalid request data", details
    )


def _server_error(message: str) -> ApiError:
    return ApiError(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", message
    )


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "Bad Request", "Invalid JSON in request body"
        ) from None


@router.post(
    f"/{settings.app.version}/generations",
    response_model=GenerationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["generations"],
)
async def create_generation(
    request: Request,
    user: CurrentUser,
    generator: FlashcardsGenerator = Depends(get_generator),
) -> GenerationCreateResponse:
    """Generate flashcard proposals from ``source_text`` (1000-10000 chars)."""
    validation = validate_generation_request(await _read_json(request))
    if not validation.ok:
        raise _validation_error(validation.errors)

    log = bind(logger, user_id=user.id)
    try:
        result = await generator.generate(validation.value.source_text, user.id)
    except GenerationFailed as e:
        log.error(f"[POST /generations] {e.code}: {e}")
        raise _server_error(str(e))
    except Exception:
        log.exception("[POST /generations] Unexpected error")
        raise _server_error(
            "An error occurred while generating flashcards. Please try again later."
        )

    return GenerationCreateResponse.model_validate(result.model_dump())


@router.get(
    f"/{settings.app.version}/generations/{{generation_id:int}}",
    response_model=GenerationRead,
    tags=["generations"],
)
async def get_generation(
    generation_id: int,
    user: CurrentUser,
    store: FlashcardRecordStore = Depends(get_record_store),
) -> GenerationRead:
    generation = await store.get_generation(generation_id, user.id)
    if generation is None:
        raise HTTPException(status_code=404, detail="Generation not found")
    return GenerationRead.model_validate(generation)


@router.get(
    f"/{settings.app.version}/generation-error-logs",
    response_model=list[GenerationErrorLogRead],
    tags=["generations"],
)
async def list_generation_error_logs(
    user: CurrentUser,
    store: FlashcardRecordStore = Depends(get_record_store),
) -> list[GenerationErrorLogRead]:
    logs = await store.list_generation_error_logs(user.id)
    return [GenerationErrorLogRead.model_validate(entry) for entry in logs]


@router.post(
    f"/{settings.app.version}/flashcards",
    response_model=FlashcardsCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["flashcards"],
)
async def create_flashcards(
    request: Request,
    user: CurrentUser,
    writer: FlashcardBatchWriter = Depends(get_batch_writer),
) -> FlashcardsCreateResponse:
    """Save manual or AI-generated flashcards for the current user."""
    validation = validate_flashcards_create(await _read_json(request))
    if not validation.ok:
        raise _validation_error(validation.errors)

    log = bind(logger, user_id=user.id)
    try:
        created = await writer.create_many(validation.value.flashcards, user.id)
    except FlashcardBatchError as e:
        raise _validation_error([FieldError(field=e.field, message=str(e))])
    except Exception:
        log.exception("[POST /flashcards] Unexpected error")
        raise _server_error(
            "An error occurred while creating flashcards. Please try again later."
        )

    return FlashcardsCreateResponse(
        flashcards=[FlashcardRead.model_validate(card) for card in created]
    )


@router.get(
    f"/{settings.app.version}/flashcards",
    response_model=list[FlashcardRead],
    tags=["flashcards"],
)
async def list_flashcards(
    user: CurrentUser,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    store: FlashcardRecordStore = Depends(get_record_store),
) -> list[FlashcardRead]:
    cards = await store.list_flashcards(user.id, limit=limit, offset=offset)
    return [FlashcardRead.model_validate(card) for card in cards]
