"""Exception handlers that render every failure as the JSON error envelope."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from library_api.api.schemas import ErrorBody, ErrorResponse
from library_api.core.config import get_settings
from library_api.core.errors import CatalogError, StorageFailure

logger = logging.getLogger(__name__)

# A blank required string reads the same as a missing one
REQUIRED_ERROR_TYPES = {"missing", "string_too_short"}

HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "RESOURCE_NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a JSON response holding the error envelope."""
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details or None))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def validation_details(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Turn pydantic errors into ``{field, message}`` entries."""
    details = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[-1]) if loc else "request"
        if err.get("type") in REQUIRED_ERROR_TYPES:
            message = f"{field.capitalize()} is required"
        else:
            message = err.get("msg", "Invalid value")
        details.append({"field": field, "message": message})
    return details


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Render a store or pipeline error."""
    details = exc.details
    if isinstance(exc, StorageFailure):
        logger.error(f"{request.method} {request.url.path} failed: {exc.reason}")
        details = []
        if exc.reason and get_settings().is_development:
            details = [{"message": exc.reason}]
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
    return error_response(exc.status_code, exc.code, exc.message, details)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI request validation failures as ``VALIDATION_ERROR``."""
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Invalid request",
        validation_details(exc),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown route, wrong method)."""
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(
        exc.status_code,
        code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error envelope handlers to the application."""
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
