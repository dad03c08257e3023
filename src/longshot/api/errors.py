"""Error-to-response mapping for the API layer.

Every error body has the shape ``{"detail": ..., "kind": ...}`` so the
client can show a generic retry message while the logs keep the specifics.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING

from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from longshot.errors import (
    ImageDecodeError,
    ImageTooLargeError,
    InvalidImageError,
    LongshotError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

GENERIC_FAILURE_DETAIL = "Processing failed, please retry"

_STATUS_BY_ERROR: dict[type[LongshotError], HTTPStatus] = {
    InvalidImageError: HTTPStatus.UNPROCESSABLE_ENTITY,
    ImageDecodeError: HTTPStatus.BAD_REQUEST,
    ImageTooLargeError: HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
}


class ApiError(HTTPException):
    """An ``HTTPException`` that also names the failure ``kind`` for the client."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        kind: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.kind = kind


def _error_body(detail: str, kind: str) -> dict[str, str]:
    return {"detail": detail, "kind": kind}


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = exc.kind if isinstance(exc, ApiError) else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), kind),
        headers=exc.headers,
    )


async def longshot_error_handler(request: Request, exc: LongshotError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _STATUS_BY_ERROR.items() if isinstance(exc, error_type)),
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )
    logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc)
    return JSONResponse(status_code=int(status_code), content=_error_body(str(exc), exc.kind))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(
        status_code=int(HTTPStatus.UNPROCESSABLE_ENTITY),
        content=_error_body(messages or "Invalid request", "invalid_request"),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=int(HTTPStatus.INTERNAL_SERVER_ERROR),
        content=_error_body(GENERIC_FAILURE_DETAIL, "internal"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers that render every failure as an ``ErrorResponse``."""
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(LongshotError, longshot_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
