"""
Custom Exceptions for the Application.
"""
from typing import Optional


class AppError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}


class ValidationError(AppError):
    """Raised when a required identifying parameter is missing or invalid."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)


class NotFoundError(AppError):
    """Raised when a resource is not found."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)


class UnauthorizedError(AppError):
    """Raised when authentication fails."""
    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message, code="UNAUTHORIZED", status_code=401)


class UpstreamError(AppError):
    """Raised when the legacy results service answers with a non-success status."""
    def __init__(self, message: str, upstream_status: Optional[int] = None, details: dict = None):
        super().__init__(message, code="UPSTREAM_ERROR", status_code=500, details=details)
        self.upstream_status = upstream_status


class ProxyRequestError(AppError):
    """Raised by the report client when a proxy endpoint answers with an error."""
    def __init__(self, message: str, status_code: int, payload: Optional[dict] = None):
        super().__init__(message, code="PROXY_ERROR", status_code=status_code, details=payload)


class MissingSessionError(AppError):
    """Raised when the stored session lacks an identifier a page needs."""
    def __init__(self, missing: list):
        super().__init__(
            "User info missing. Please log in again.",
            code="SESSION_MISSING",
            status_code=401,
            details={"missing": list(missing)},
        )
        self.missing = list(missing)


class PageCancelled(Exception):
    """Raised when a page load is abandoned before its fetches settle."""
