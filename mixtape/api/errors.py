"""Translation of media source errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mixtape.errors import (
    InvalidCursor,
    MalformedSource,
    MediaSourceError,
    NotFound,
    TransientError,
    Unauthenticated,
    UnsupportedOperation,
    UpstreamError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[MediaSourceError], int] = {
    Unauthenticated: 401,
    UnsupportedOperation: 400,
    NotFound: 404,
    MalformedSource: 422,
    UpstreamError: 502,
    TransientError: 503,
}


async def media_source_error_handler(
    request: Request, exc: MediaSourceError
) -> JSONResponse:
    """Map a MediaSourceError to its HTTP status."""
    status_code = next(
        (code for kind, code in STATUS_CODES.items() if isinstance(exc, kind)), 500
    )
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "source": exc.source},
    )


async def invalid_cursor_handler(request: Request, exc: InvalidCursor) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers on an application."""
    app.add_exception_handler(MediaSourceError, media_source_error_handler)
    app.add_exception_handler(InvalidCursor, invalid_cursor_handler)
