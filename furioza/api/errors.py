"""
Mapping of domain errors onto HTTP responses.
"""

from typing import Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from furioza.kernel.errors import (
    CooldownActive,
    FuriozaError,
    InvalidState,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from furioza.schemas.common import ErrorResponse

STATUS_BY_ERROR: Dict[Type[FuriozaError], int] = {
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    CooldownActive: status.HTTP_429_TOO_MANY_REQUESTS,
    InvalidState: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    # Literal: the constant was renamed between Starlette releases
    ValidationError: 422,
}


def status_for(exc: FuriozaError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


async def furioza_error_handler(request: Request, exc: FuriozaError) -> JSONResponse:
    """Render a domain error as the standard ErrorResponse body."""
    body = ErrorResponse(detail=exc.message, code=exc.code, field=exc.field)
    headers = {}
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
    if isinstance(exc, CooldownActive):
        headers["Retry-After"] = str(exc.days_remaining * 86400)
    return JSONResponse(
        status_code=status_for(exc),
        content=body.model_dump(),
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FuriozaError, furioza_error_handler)
