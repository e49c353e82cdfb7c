"""Translate Meridian exceptions into the JSON error envelope."""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..brokers.base import UpstreamError
from ..errors import FeatureDisabledError, NotFoundError, ValidationError
from ..log import get_logger

logger = get_logger(__name__)


def _error(status: int, error: object) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": error})


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(exc.status_code, str(exc))


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(exc.status_code, str(exc))


async def _feature_disabled(request: Request, exc: FeatureDisabledError) -> JSONResponse:
    return _error(exc.status_code, str(exc))


async def _upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    # Vendor bodies are relayed verbatim; only the status falls back to 500.
    status = exc.status or 500
    logger.warning(
        "upstream_error_relayed",
        path=request.url.path,
        method=request.method,
        status=status,
    )
    return _error(status, exc.payload if exc.payload is not None else str(exc))


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    loc = tuple(errors[0].get("loc", ())) if errors else ()
    # Bodies are free-form objects, so any body error means the body itself was not an object.
    if not loc or loc[0] == "body":
        return _error(400, "Request body must be a JSON object")
    return _error(400, f"{loc[-1]} is invalid")


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_api_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return _error(500, "Internal server error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(FeatureDisabledError, _feature_disabled)
    app.add_exception_handler(UpstreamError, _upstream_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(Exception, _unhandled)
