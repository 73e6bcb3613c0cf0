"""
Error taxonomy and the handlers that turn it into JSON responses.

Every error response has the shape {"error": "..."}; validation failures
additionally carry "errors", a list of {"field", "message"} complaints.
"""

import logging
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidInput(DirectoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input"


class DuplicateEmail(InvalidInput):
    message = "Email already in use"


class InvalidReference(InvalidInput):
    message = "Invalid providerId"


class Unauthorized(DirectoryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized: Invalid token"


class InvalidCredentials(Unauthorized):
    message = "Invalid credentials"


class Forbidden(DirectoryError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class NotFound(DirectoryError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


def _field_errors(errors: Iterable[dict[str, Any]]) -> list[dict[str, str]]:
    complaints = []
    for error in errors:
        # Drop the "body"/"query" prefix FastAPI puts on locations
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        complaints.append({
            "field": ".".join(location) or "__root__",
            "message": error.get("msg", "Invalid value"),
        })
    return complaints


def validation_response(errors: Iterable[dict[str, Any]]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "errors": _field_errors(errors)},
    )


async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return validation_response(exc.errors())


async def pydantic_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return validation_response(exc.errors())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DirectoryError, directory_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, pydantic_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
