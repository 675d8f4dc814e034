"""Translate core errors into the ``{"success": false, ...}`` envelope."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.core import get_logger
from storefront.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidLineItem,
    NotFoundError,
    StorefrontError,
    ValidationError,
)

logger = get_logger(__name__)

# Checked in order, most specific first
STATUS_CODES = (
    (InvalidLineItem, 422),
    (ValidationError, 400),
    (ConflictError, 409),
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (AuthenticationError, 401),
)

def status_for(exc: StorefrontError) -> int:
    for error_type, status_code in STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500

def error_body(message: str, code: str) -> dict:
    return {"success": False, "error": message, "code": code}

async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        f"Request rejected: {exc.code}",
        path=request.url.path,
        status_code=status_code,
        code=exc.code,
    )
    return JSONResponse(status_code=status_code, content=error_body(exc.message, exc.code))

async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(status_code=422, content=error_body(message, "validation_error"))

def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
