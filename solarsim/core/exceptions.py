"""
Global Exception Handling
Custom exceptions and FastAPI exception handlers.

Error Response Format (RFC 7807 inspired):
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human readable message",
        "details": {},
        "request_id": "uuid",
        "timestamp": "ISO8601",
        "path": "/data/unknown",
        "method": "GET"
    }
}
"""
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

from solarsim.core.logging import get_logger

logger = get_logger(__name__)


def _get_request_id(request: Request) -> str:
    """Get or generate request ID for tracing."""
    return request.headers.get("X-Request-ID", str(uuid.uuid4()))


class SimulatorException(Exception):
    """Base exception for the solar simulator."""

    def __init__(
        self,
        message: str = "An error occurred",
        code: str = "INTERNAL_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        # Top-level keys merged next to "error" in the response body
        self.extra = extra or {}
        super().__init__(self.message)


class NotFoundError(SimulatorException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any, extra: dict[str, Any] | None = None):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "identifier": str(identifier)},
            extra=extra,
        )


class InstallationNotFoundError(NotFoundError):
    """Unknown installation id; lists the ids that do exist."""

    def __init__(self, installation_id: str, available: list[str]):
        super().__init__(
            "Installation",
            installation_id,
            extra={"available_installations": available},
        )
        self.available = available


class ValidationError(SimulatorException):
    """Invalid request input, reported as 400."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="BAD_REQUEST",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class ServiceUnavailableError(SimulatorException):
    """Component not constructed yet or otherwise unavailable."""

    def __init__(self, service: str, message: str = "Service temporarily unavailable"):
        super().__init__(
            message=f"{service}: {message}",
            code="SERVICE_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"service": service},
        )


class DatasetNotFoundError(SimulatorException):
    """Dataset file missing. Raised by the loader, never surfaced over HTTP."""

    def __init__(self, path: Any):
        super().__init__(
            message=f"Dataset file not found: {path}",
            code="DATASET_NOT_FOUND",
            details={"path": str(path)},
        )


def _build_error_response(
    code: str,
    message: str,
    status_code: int,
    request: Request,
    details: dict | None = None,
    extra: dict | None = None,
) -> ORJSONResponse:
    """Build standardized error response."""
    request_id = _get_request_id(request)
    timestamp = datetime.now(timezone.utc).isoformat()

    content: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "request_id": request_id,
            "timestamp": timestamp,
            "path": str(request.url.path),
            "method": request.method,
        }
    }
    if extra:
        content.update(extra)

    return ORJSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Request-ID": request_id},
    )


async def simulator_exception_handler(request: Request, exc: SimulatorException) -> ORJSONResponse:
    """Handler for SimulatorException."""
    request_id = _get_request_id(request)

    logger.warning(
        "Application error",
        error_code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        request_id=request_id,
        path=str(request.url.path),
        method=request.method,
    )

    return _build_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        request=request,
        details=exc.details,
        extra=exc.extra,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> ORJSONResponse:
    """Handler for HTTPException."""
    request_id = _get_request_id(request)

    # Map common HTTP status codes to error codes
    code_map = {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }

    error_code = code_map.get(exc.status_code, "HTTP_ERROR")

    logger.warning(
        "HTTP error",
        error_code=error_code,
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        path=str(request.url.path),
    )

    return _build_error_response(
        code=error_code,
        message=str(exc.detail),
        status_code=exc.status_code,
        request=request,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    """Handler for request body/query validation errors, reported as 400."""
    request_id = _get_request_id(request)

    errors = exc.errors()
    details: dict[str, Any] = {
        "validation_errors": [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
                "type": err.get("type", "value_error"),
            }
            for err in errors
        ]
    }

    logger.warning(
        "Validation error",
        request_id=request_id,
        path=str(request.url.path),
        errors=details,
    )

    error = ValidationError(f"Validation failed: {len(errors)} error(s)", details)
    return _build_error_response(
        code=error.code,
        message=error.message,
        status_code=error.status_code,
        request=request,
        details=error.details,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Handler for unhandled exceptions."""
    request_id = _get_request_id(request)

    logger.exception(
        "Unhandled exception",
        request_id=request_id,
        path=str(request.url.path),
        method=request.method,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    return _build_error_response(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        request=request,
        details={"error_id": request_id},
    )
