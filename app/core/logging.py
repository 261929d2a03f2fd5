import logging
import os
from typing import Any, Optional


DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | user=%(user_id)s "
    "gen=%(generation_id)s | %(message)s"
)


class ContextFilter(logging.Filter):
    """Fills in the request context fields the formatter expects."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "user_id"):
            record.user_id = "-"
        if not hasattr(record, "generation_id"):
            record.generation_id = "-"
        return True


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Initialize root logger with a sane formatter and context filter."""
    resolved_level = getattr(logging, (level or DEFAULT_LEVEL), logging.INFO)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

    root = logging.getLogger()
    root.setLevel(resolved_level)

    # uvicorn --reload re-imports main; drop handlers from the previous run
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; ensure root is initialized."""
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)


def bind(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    """Attach per-request fields (user_id, generation_id) to every record."""
    return logging.LoggerAdapter(logger, context)
