"""
Custom exceptions for the application
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from taxonomy_api.utils.timestamps import utc_now


class BaseAPIException(HTTPException):
    """Base exception for API errors"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, str]] = None, **kwargs):
        super().__init__(status_code=self.status_code, detail=detail or self.detail, headers=headers or self.headers)
        # Store any additional context
        self.context = kwargs


class NotFoundError(BaseAPIException):
    """Resource not found"""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"


class ConflictError(BaseAPIException):
    """Conflict with existing resource"""

    status_code = status.HTTP_409_CONFLICT
    detail = "Resource conflict"


class InvalidMoveError(BaseAPIException):
    """Relocation would self-parent a category or create a cycle"""

    status_code = status.HTTP_409_CONFLICT
    detail = "Invalid category move"


class ValidationError(BaseAPIException):
    """Validation error"""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "Validation error"


class DatabaseError(BaseAPIException):
    """Database operation error"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Database error"


class StorageError(DatabaseError):
    """An atomic write or batch commit was rejected by the engine"""

    detail = "Storage failure"

    def __init__(self, detail: Optional[str] = None, *, operation: str, category_id: Optional[str] = None, **kwargs):
        super().__init__(detail=detail, operation=operation, category_id=category_id, **kwargs)
        self.operation = operation
        self.category_id = category_id


# Error response models for OpenAPI documentation
class ErrorDetail(BaseModel):
    """Error detail model"""

    message: str
    type: str
    context: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard error response"""

    error: ErrorDetail
    request_id: Optional[str] = None
    timestamp: str


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "no-context"


# Exception handlers
async def handle_api_exception(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Handle API exceptions with structured response"""
    error_response = {
        "error": {"message": exc.detail, "type": exc.__class__.__name__, "context": getattr(exc, "context", {})},
        "request_id": _request_id(request),
        "timestamp": utc_now().isoformat(),
    }

    return JSONResponse(status_code=exc.status_code, content=error_response, headers=getattr(exc, "headers", None))


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions"""
    from taxonomy_api.core.config import settings
    from taxonomy_api.core.logging import log

    # Log the full exception
    log.opt(exception=exc).error("Unexpected error")

    # Don't expose internal errors in production
    if settings.DEBUG:
        detail = str(exc)
    else:
        detail = "An unexpected error occurred"

    error_response = {
        "error": {"message": detail, "type": "InternalServerError", "context": {}},
        "request_id": _request_id(request),
        "timestamp": utc_now().isoformat(),
    }

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_response)
