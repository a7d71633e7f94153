from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import StarSortError, UpstreamError
from ..logging import StarSortLogger
from .schemas import ErrorResponse

_logger = StarSortLogger("starsort.api")


def _envelope(request: Request, code: str, message: str, retryable: bool) -> dict:
    payload = ErrorResponse(
        error=code,
        message=message,
        retryable=retryable,
        requestId=getattr(request.state, "request_id", None),
    )
    return payload.model_dump(by_alias=True, exclude_none=True)


def _with_hint(exc: StarSortError) -> str:
    if not exc.retryable:
        return exc.message
    message = exc.message if exc.message.endswith((".", "!", "?")) else f"{exc.message}."
    return f"{message} Please try again in a few minutes."


async def starsort_exception_handler(request: Request, exc: StarSortError) -> JSONResponse:
    """Map domain errors onto the standard error envelope."""
    level = "error" if isinstance(exc, UpstreamError) and exc.status_code >= 500 else "warning"
    getattr(_logger, level)("Request failed", code=exc.code, status=exc.status_code, error=str(exc))
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(request, exc.code, _with_hint(exc), exc.retryable),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies get the same envelope as domain errors, without echoing input."""
    _logger.warning("Request body rejected", errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content=_envelope(request, "invalid_request", "Request body must be a JSON object with a username", False),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    _logger.error("Unhandled error", error=f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=500,
        content=_envelope(request, "internal_error", "An unexpected error occurred", True),
    )
