"""
Exception handlers mapping the Council exception hierarchy onto HTTP.

Every CouncilException carries its own status code: 503 when no provider is
eligible, 502 when the cascade is exhausted.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from ..core.exceptions import CouncilException
from ..infra.telemetry import get_logger

logger = get_logger(__name__)


async def council_exception_handler(request: Request, exc: CouncilException) -> JSONResponse:
    logger.warning(
        "request_failed",
        path=request.url.path,
        error_code=exc.error_code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "detail": "An unexpected error occurred"},
    )
