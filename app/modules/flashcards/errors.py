"""Exceptions raised by the flashcard generation and persistence services."""

from __future__ import annotations


class GenerationFailed(Exception):
    """A generation attempt failed; ``str(exc)`` is safe to show to users.

    ``code`` keeps the internal classification (e.g. ``RATE_LIMIT_ERROR``)
    for the error log; the lower-level error is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, code: str) -> None:
        super().__init__(message)
        self.code = code


class FlashcardBatchError(ValueError):
    """A flashcard batch was rejected before anything was written."""

    def __init__(self, message: str, *, field: str = "flashcards") -> None:
        super().__init__(message)
        self.field = field


class PersistenceAnomaly(RuntimeError):
    """The store reported success but returned no rows."""
