"""Exception handlers mapping scanner errors to HTTP responses."""

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from ..config.logging import get_logger
from ..exceptions import BandwatchError, UpstreamError
from .models.responses import ErrorResponse

logger = get_logger(__name__)


async def upstream_exception_handler(
    request: Request, exc: UpstreamError
) -> JSONResponse:
    """Upstream failures use the chart wire shape ``{"error": message}``."""
    logger.warning(
        "Upstream error",
        exception_type=type(exc).__name__,
        message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return JSONResponse(status_code=502, content={"error": exc.message})


async def bandwatch_exception_handler(
    request: Request, exc: BandwatchError
) -> JSONResponse:
    """Handle other Bandwatch exceptions."""
    logger.error(
        "Bandwatch exception occurred",
        exception_type=type(exc).__name__,
        message=exc.message,
        details=exc.details,
        path=request.url.path,
        method=request.method,
    )

    error_response = ErrorResponse(
        error={
            "type": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
            "status_code": 500,
        },
    )
    return JSONResponse(status_code=500, content=error_response.model_dump())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )

    error_response = ErrorResponse(
        error={
            "type": "HTTPException",
            "message": str(exc.detail),
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(
        status_code=exc.status_code, content=error_response.model_dump()
    )


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(UpstreamError, upstream_exception_handler)
    app.add_exception_handler(BandwatchError, bandwatch_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
