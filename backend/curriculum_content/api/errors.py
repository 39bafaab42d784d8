"""Maps domain errors onto HTTP responses."""
from __future__ import annotations
from fastapi import Request
from fastapi.responses import JSONResponse

from curriculum_content.domain.common.errors import (
    ConflictError,
    ContentError,
    InvalidOrderingError,
    InvalidStateError,
    InvalidTransition,
    MissingComment,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)

STATUS_CODES = {
    ValidationError: 422,
    MissingComment: 400,
    InvalidOrderingError: 400,
    PermissionDenied: 403,
    NotFoundError: 404,
    InvalidTransition: 409,
    InvalidStateError: 409,
    ConflictError: 409,
}


def status_for(error: ContentError) -> int:
    for cls in type(error).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


async def content_error_handler(request: Request, exc: ContentError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": exc.message, "code": exc.code},
    )
