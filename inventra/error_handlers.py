"""Application exceptions and their HTTP error handlers."""
from enum import Enum
from typing import Optional, Union
import uuid

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from inventra.core.database import sqlstate_of
from .logging_config import get_logger

logger = get_logger("error_handlers")

UNIQUE_VIOLATION = "23505"
SQLITE_UNIQUE_ERRORS = frozenset({"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"})


class ErrorKind(str, Enum):
    """Stable error categories reported to callers."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INSUFFICIENT_STOCK = "insufficient_stock"
    DUPLICATE = "duplicate"
    INTERNAL = "internal"


class AppException(Exception):
    """Base exception for application-specific errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, status_code: int = 500, details: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Raised when data validation fails."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(
            message=message,
            status_code=422,
            details={"validation_errors": errors or []}
        )


class NotFoundError(AppException):
    """Raised when a requested resource is not found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str, identifier: Union[int, str, uuid.UUID]):
        super().__init__(
            message=f"{resource} not found",
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)}
        )


class ConflictError(AppException):
    """Raised when the current state of a resource forbids the operation."""

    kind = ErrorKind.CONFLICT

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message=message, status_code=409, details=details)


class InactiveResourceError(ConflictError):
    """Raised when a referenced branch or product has been deactivated."""

    def __init__(self, resource: str, identifier: Union[str, uuid.UUID]):
        super().__init__(
            message=f"{resource} is inactive",
            details={"resource": resource, "identifier": str(identifier)}
        )


class InsufficientStockError(AppException):
    """Raised when a decrement would take a stock quantity below zero."""

    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(
        self,
        available: int,
        requested: int,
        product_id: uuid.UUID,
        product_label: Optional[str] = None,
    ):
        self.available = available
        self.requested = requested
        self.product_id = product_id
        target = f"Not enough stock for {product_label}" if product_label else "Not enough stock"
        super().__init__(
            message=f"{target}. Available: {available}",
            status_code=409,
            details={
                "product_id": str(product_id),
                "available": available,
                "requested": requested,
            }
        )


class DuplicateResourceError(AppException):
    """Raised when attempting to create a duplicate resource."""

    kind = ErrorKind.DUPLICATE

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            message=f"{resource} with {field} '{value}' already exists",
            status_code=409,
            details={"resource": resource, "field": field, "value": value}
        )


def _error_body(message: str, kind: ErrorKind, request: Request, details: Optional[dict] = None) -> dict:
    return {
        "error": message,
        "kind": kind.value,
        "details": details or {},
        "path": request.url.path,
    }


async def app_exception_handler(request: Request, exc: AppException):
    """Handler for custom application exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Application error: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "kind": exc.kind.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.kind, request, exc.details)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler for request validation errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"validation_errors": errors}
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            "Validation failed", ErrorKind.VALIDATION, request, {"validation_errors": errors}
        )
    )


def _is_unique_violation(exc: IntegrityError) -> bool:
    if sqlstate_of(exc) == UNIQUE_VIOLATION:
        return True
    return getattr(exc.orig, "sqlite_errorname", None) in SQLITE_UNIQUE_ERRORS


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handler for SQLAlchemy database errors. Driver messages stay in the logs."""
    if isinstance(exc, IntegrityError) and _is_unique_violation(exc):
        error_msg = "Resource already exists"
        kind = ErrorKind.DUPLICATE
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, IntegrityError):
        # Foreign key, check and not-null violations
        error_msg = "Data integrity constraint violated"
        kind = ErrorKind.CONFLICT
        status_code = status.HTTP_409_CONFLICT
    else:
        error_msg = "Internal server error"
        kind = ErrorKind.INTERNAL
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        f"Database error: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__
        },
        exc_info=exc
    )

    return JSONResponse(
        status_code=status_code,
        content=_error_body(error_msg, kind, request)
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handler for unexpected exceptions."""
    logger.critical(
        f"Unhandled exception: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
        exc_info=exc
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "Internal server error",
            ErrorKind.INTERNAL,
            request,
            {"message": "An unexpected error occurred. Please contact support if the issue persists."}
        )
    )
