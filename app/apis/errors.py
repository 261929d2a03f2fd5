from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from app.modules.flashcards import FieldError


class ApiError(Exception):
    """Error rendered as ``{"error", "message", "details"?}`` at the top level."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[list[FieldError]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details is not None:
            body["details"] = [d.model_dump() for d in self.details]
        return body


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
