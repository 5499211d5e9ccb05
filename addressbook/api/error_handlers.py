"""Error Handlers: global exception handlers rendering JSON:API error documents.

Invariants:
    - AddressBookError → its own status and error objects
    - Starlette HTTPException (unmatched route / verb) → NotFoundError / MethodNotAllowedError
    - RequestValidationError (malformed body) → 400 with one error per pydantic issue
    - Exception (catch-all) → 500, never leaks internal details
    - Every error response uses the JSON:API media type
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from addressbook.api.responses import JsonApiResponse
from addressbook.core.errors import (
    AddressBookError,
    ErrorCategory,
    ErrorSeverity,
    InvalidDocumentError,
    MethodNotAllowedError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def error_response(exc: AddressBookError, request: Request) -> JsonApiResponse:
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{exc.__class__.__name__}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.http_status,
            "resource_type": exc.context.resource_type,
            "resource_id": exc.context.resource_id,
        },
    )
    return JsonApiResponse(exc.to_response(), status_code=exc.http_status)


def _register_domain_error_handler(app: FastAPI) -> None:
    @app.exception_handler(AddressBookError)
    async def domain_error_handler(request: Request, exc: AddressBookError):
        """Handle all address book domain/infrastructure errors."""
        return error_response(exc, request)


def _register_http_error_handler(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Routing failures raised by Starlette before any handler runs."""
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            error: AddressBookError = MethodNotAllowedError(
                request.method, request.url.path,
            )
        elif exc.status_code == status.HTTP_404_NOT_FOUND:
            error = NotFoundError(f"No route matches {request.url.path}")
        else:
            error = AddressBookError(
                str(exc.detail), "HTTP_ERROR", ErrorCategory.BAD_REQUEST,
                ErrorSeverity.WARNING, http_status=exc.status_code,
            )
        response = error_response(error, request)
        if exc.headers:
            response.headers.update(exc.headers)
        return response


def _register_validation_error_handler(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle malformed request documents."""
        logger.warning(
            f"Invalid document on {request.url.path}: {exc.errors()}",
            extra={"path": request.url.path, "error_code": "INVALID_DOCUMENT"},
        )
        return JsonApiResponse(
            _build_validation_error_response(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all, never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"path": request.url.path, "method": request.method},
        )
        error = AddressBookError(
            "An unexpected error occurred", "INTERNAL_ERROR",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            title="Internal server error",
        )
        return JsonApiResponse(
            error.to_response(),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def _pointer(loc: tuple) -> str | None:
    """Turn a pydantic location ("body", "data", "attributes") into /data/attributes."""
    parts = [str(part) for part in loc]
    if parts and parts[0] == "body":
        parts = parts[1:]
    return "/" + "/".join(parts) if parts else None


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    errors = []
    for e in exc.errors():
        error = InvalidDocumentError(e["msg"], _pointer(tuple(e["loc"])))
        errors.extend(error.error_objects())
    return {"errors": errors}
