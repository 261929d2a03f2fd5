"""Prompting and response handling for AI flashcard generation.

The shared ``OpenRouterClient`` is created lazily so importing this module
never fails when the API key is missing.
"""

from __future__ import annotations

import hashlib
from typing import Any, Optional

from app.core.config import settings
from app.core.db.schemas.flashcards import BACK_MAX_LENGTH, FRONT_MAX_LENGTH
from app.core.logging import get_logger
from app.modules.flashcards.errors import GenerationFailed
from app.modules.flashcards.models.flashcards import FlashcardProposal
from app.modules.llm import ChatRequest, ErrorCode, OpenRouterClient, OpenRouterError

logger = get_logger(__name__)

EXPECTED_FLASHCARDS = 5

SYSTEM_PROMPT = f"""You are an expert educational AI assistant specialized in creating high-quality flashcards for learning.

Your task is to generate exactly {EXPECTED_FLASHCARDS} flashcards from the provided text. Each flashcard should:
1. Have a clear, focused question on the front (max {FRONT_MAX_LENGTH} characters)
2. Have a comprehensive, accurate answer on the back (max {BACK_MAX_LENGTH} characters)
3. Cover different aspects or key concepts from the source text
4. Be educationally valuable and promote active recall
5. Use clear, concise language

Guidelines:
- Focus on important concepts, facts, definitions, or relationships
- Avoid trivial or overly complex questions
- Make questions specific and answerable
- Ensure answers are complete and self-contained
- Vary the question types (what, why, how, when, define, etc.)

IMPORTANT: You must respond with valid JSON in the following format:
{{
  "flashcards": [
    {{
      "front": "Question text here (max {FRONT_MAX_LENGTH} chars)",
      "back": "Answer text here (max {BACK_MAX_LENGTH} chars)"
    }}
  ]
}}

Generate exactly {EXPECTED_FLASHCARDS} flashcards in this JSON format."""


USER_FACING_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTHENTICATION_ERROR: "AI service authentication failed. Please check your API key.",
    ErrorCode.RATE_LIMIT_ERROR: "AI service rate limit exceeded. Please try again later.",
    ErrorCode.TIMEOUT_ERROR: "AI service request timed out. Please try again.",
    ErrorCode.NETWORK_ERROR: "Network error while connecting to AI service. Please check your connection.",
}

INVALID_FORMAT_CODE = "INVALID_RESPONSE_FORMAT"


def _build_instruction(source_text: str) -> str:
    return (
        f"Generate {EXPECTED_FLASHCARDS} educational flashcards from the following text:\n\n"
        f"{source_text}"
    )


def build_chat_request(source_text: str, model: Optional[str] = None) -> ChatRequest:
    return (
        ChatRequest()
        .with_model(model or settings.generation.model, temperature=0.7, max_tokens=2000)
        .with_system_message(SYSTEM_PROMPT)
        .with_json_mode()
        .with_user_message(_build_instruction(source_text))
    )


def source_text_hash(text: str) -> str:
    """SHA-256 hex digest of the raw source text (dedup/analytics key)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def parse_proposals(payload: Any) -> list[FlashcardProposal]:
    """Turn the decoded model output into truncated ``ai-full`` proposals.

    A count other than ``EXPECTED_FLASHCARDS`` is accepted with a warning.
    """
    cards = payload.get("flashcards") if isinstance(payload, dict) else None
    if not isinstance(cards, list):
        raise GenerationFailed(
            "Invalid response format from AI service", code=INVALID_FORMAT_CODE
        )

    if len(cards) != EXPECTED_FLASHCARDS:
        logger.warning(
            f"Expected {EXPECTED_FLASHCARDS} flashcards, got {len(cards)}. "
            "Using available flashcards."
        )

    proposals: list[FlashcardProposal] = []
    for card in cards:
        if not (
            isinstance(card, dict)
            and isinstance(card.get("front"), str)
            and isinstance(card.get("back"), str)
        ):
            raise GenerationFailed(
                "Invalid flashcard in AI service response", code=INVALID_FORMAT_CODE
            )
        proposals.append(
            FlashcardProposal(
                front=card["front"][:FRONT_MAX_LENGTH],
                back=card["back"][:BACK_MAX_LENGTH],
            )
        )
    return proposals


def translate_model_error(error: OpenRouterError) -> GenerationFailed:
    """Map a client error to the message shown to the user; keep the code."""
    message = USER_FACING_MESSAGES.get(error.code, f"AI service error: {error.message}")
    return GenerationFailed(message, code=error.code.value)


_client: Optional[OpenRouterClient] = None


def get_model_client() -> OpenRouterClient:
    global _client
    if _client is None:
        _client = OpenRouterClient(
            timeout=settings.generation.timeout_seconds,
            max_retries=3,
        )
    return _client
