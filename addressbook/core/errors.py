"""Error Hierarchy: typed, categorized exceptions rendered as JSON:API error documents.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) carry the offending field in source.pointer
      or source.parameter when one exists
    - to_response() always produces {"errors": [...]} with string status codes
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with AddressBookError base: one FastAPI handler catches all
    - ErrorContext as dataclass: observability data travels with the error
      without coupling to the logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BAD_REQUEST = "bad_request"
    RESOURCE_NOT_FOUND = "resource_not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource_type: str | None = None
    resource_id: str | None = None
    debug_info: dict[str, Any] | None = None


@dataclass(frozen=True)
class ErrorSource:
    """JSON:API error source: a JSON pointer into the request body or a query parameter."""
    pointer: str | None = None
    parameter: str | None = None

    def to_dict(self) -> dict[str, str]:
        source = {}
        if self.pointer is not None:
            source["pointer"] = self.pointer
        if self.parameter is not None:
            source["parameter"] = self.parameter
        return source


class AddressBookError(Exception):
    """Base exception for all address book errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        title: str | None = None,
        source: ErrorSource | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.title = title or message
        self.source = source

    def _error_object(
        self, title: str, detail: str, source: ErrorSource | None,
    ) -> dict:
        error = {
            "status": str(self.http_status),
            "code": self.code,
            "title": title,
            "detail": detail,
            "meta": {
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            },
        }
        if source is not None:
            error["source"] = source.to_dict()
        return error

    def error_objects(self) -> list[dict]:
        """JSON:API error objects describing this failure."""
        return [self._error_object(self.title, self.message, self.source)]

    def to_response(self) -> dict:
        """Convert to a JSON:API error document."""
        return {"errors": self.error_objects()}


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationError(AddressBookError):
    """Required field(s) missing or blank at persist time."""
    def __init__(self, missing_fields: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Missing required field(s): {', '.join(missing_fields)}",
            "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 422,
            title="can't be blank",
        )
        self.missing_fields = list(missing_fields)

    def error_objects(self) -> list[dict]:
        return [
            self._error_object(
                "can't be blank",
                f"{name} - can't be blank",
                ErrorSource(pointer=f"/data/attributes/{name}"),
            )
            for name in self.missing_fields
        ]


class UnsupportedFilterError(AddressBookError):
    """Filter key is not whitelisted for the resource."""
    def __init__(
        self, resource_type: str, filter_key: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{filter_key} is not allowed as a filter on {resource_type}",
            "FILTER_NOT_ALLOWED", ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, context, 400,
            title="Filter not allowed",
            source=ErrorSource(parameter=f"filter[{filter_key}]"),
        )
        self.filter_key = filter_key


class PageSizeExceededError(AddressBookError):
    """Requested page size above the configured maximum."""
    def __init__(
        self,
        requested: int,
        maximum: int,
        parameter: str = "page[size]",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{parameter} of {requested} exceeds the maximum page size of {maximum}",
            "PAGE_SIZE_EXCEEDED", ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, context, 400,
            title="Invalid page size",
            source=ErrorSource(parameter=parameter),
        )
        self.requested = requested
        self.maximum = maximum


class InvalidPageParameterError(AddressBookError):
    """Page parameter is unknown for the paginator or carries a bad value."""
    def __init__(self, parameter: str, detail: str, context: ErrorContext | None = None):
        super().__init__(
            detail, "INVALID_PAGE_PARAMETER", ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, context, 400,
            title="Invalid page parameter",
            source=ErrorSource(parameter=parameter),
        )
        self.parameter = parameter


class InvalidQueryParameterError(AddressBookError):
    """Query parameter is unknown or malformed (sort, include, fields, filter values)."""
    def __init__(self, parameter: str, detail: str, context: ErrorContext | None = None):
        super().__init__(
            detail, "INVALID_QUERY_PARAMETER", ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, context, 400,
            title="Invalid query parameter",
            source=ErrorSource(parameter=parameter),
        )
        self.parameter = parameter


class InvalidDocumentError(AddressBookError):
    """Request document is malformed or names fields that cannot be written."""
    def __init__(
        self, detail: str, pointer: str | None = None, context: ErrorContext | None = None,
    ):
        super().__init__(
            detail, "INVALID_DOCUMENT", ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, context, 400,
            title="Invalid document",
            source=ErrorSource(pointer=pointer) if pointer else None,
        )


class ResourceTypeMismatchError(AddressBookError):
    """data.type in the request document does not match the endpoint."""
    def __init__(self, expected: str, actual: str, context: ErrorContext | None = None):
        super().__init__(
            f"Resource type '{actual}' does not match endpoint type '{expected}'",
            "TYPE_MISMATCH", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
            title="Type mismatch",
            source=ErrorSource(pointer="/data/type"),
        )


class NotFoundError(AddressBookError):
    """Unknown route."""
    def __init__(self, message: str = "Not found", context: ErrorContext | None = None):
        super().__init__(
            message, "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
            title="Not found",
        )


class ResourceNotFoundError(NotFoundError):
    """Requested record does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_type = resource_type
        ctx.resource_id = resource_id
        super().__init__(f"{resource_type} '{resource_id}' not found", ctx)
        self.title = "Record not found"


class RelatedResourceNotFoundError(NotFoundError):
    """Relationship linkage references a record that does not exist."""
    def __init__(
        self,
        relationship: str,
        resource_type: str,
        resource_id: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' referenced by {relationship} not found",
            context,
        )
        self.title = "Related record not found"
        self.source = ErrorSource(pointer=f"/data/relationships/{relationship}")


class MethodNotAllowedError(AddressBookError):
    """Known route, unsupported HTTP verb."""
    def __init__(self, method: str, path: str, context: ErrorContext | None = None):
        super().__init__(
            f"{method} is not allowed on {path}",
            "METHOD_NOT_ALLOWED", ErrorCategory.METHOD_NOT_ALLOWED,
            ErrorSeverity.WARNING, context, 405,
            title="Method not allowed",
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(AddressBookError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
            title="Service unavailable",
        )
        self.operation = operation
