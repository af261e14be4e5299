"""
Render Service Errors
=====================

Exception hierarchy for the render pipeline. Each error carries the HTTP
status and machine-readable code it is reported with.
"""

from typing import Any, Dict, Optional


class RenderServiceError(Exception):
    """Base class for all render service errors."""

    status_code: int = 500
    error_code: str = "RENDER_SERVICE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(RenderServiceError):
    """Request content is missing or malformed."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class PayloadTooLargeError(ValidationError):
    """HTML content exceeds the configured size ceiling."""

    status_code = 413
    error_code = "PAYLOAD_TOO_LARGE"


class CapacityExceededError(RenderServiceError):
    """Admission rejected: too many renders in flight."""

    status_code = 429
    error_code = "SERVER_BUSY"

    def __init__(self, retry_after: int = 3, message: Optional[str] = None):
        super().__init__(
            message or "Too many concurrent requests. Please retry in a few seconds.",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after


class EngineLaunchError(RenderServiceError):
    """The browser process could not be started, even with the fallback flags."""

    error_code = "ENGINE_LAUNCH_FAILED"


class RenderFailedError(RenderServiceError):
    """Rendering failed mid-flight."""

    error_code = "RENDER_FAILED"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        details = {"cause": f"{type(cause).__name__}: {cause}"} if cause is not None else None
        super().__init__(message, details=details)
        self.cause = cause


class RenderTimeoutError(RenderFailedError):
    """Content load or capture exceeded the request timeout."""

    error_code = "RENDER_TIMEOUT"


class ServiceUnavailableError(RenderServiceError):
    """The service is draining and no longer accepts work."""

    status_code = 503
    error_code = "SERVICE_DRAINING"
