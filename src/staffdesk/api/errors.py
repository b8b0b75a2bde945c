"""Exception handlers that turn domain errors into ``{message, code}`` responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from staffdesk.errors import StaffdeskError, parse_error

logger = structlog.get_logger()


async def domain_error_handler(request: Request, exc: StaffdeskError) -> JSONResponse:
    logger.warning(
        "request_failed",
        method=request.method,
        path=request.url.path,
        code=exc.code,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=parse_error(exc))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "code": "internal_error"},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StaffdeskError, domain_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
