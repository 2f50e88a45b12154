"""Exception handlers. Every error body is a JSON object with a ``detail`` key."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


def _error(status_code: int, detail: Any, headers: dict[str, str] | None = None, **extra: Any) -> JSONResponse:  # noqa: ANN401
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra}, headers=headers)


def _public_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ctx can hold the raised ValueError itself
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


def setup_error_handlers(app: FastAPI) -> None:
    """Install the HTTP, validation and catch-all handlers on ``app``."""

    @app.exception_handler(StarletteHTTPException)
    async def on_http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, exc.detail, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("request_invalid", path=request.url.path, error_count=len(exc.errors()))
        return _error(422, "Validation error", errors=_public_errors(exc))

    @app.exception_handler(Exception)
    async def on_unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", path=request.url.path, method=request.method, exc_info=exc)
        return _error(500, "Internal server error")
