"""Weather service error taxonomy and exception handlers for standardized error responses."""
import logging
from typing import Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from models import ErrorResponse
from config import DEBUG

logger = logging.getLogger(__name__)

# Error code mappings
ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMIT_EXCEEDED",
    500: "INTERNAL_SERVER_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
    504: "GATEWAY_TIMEOUT"
}


class WeatherServiceError(Exception):
    """Base class for every error raised by the weather core."""
    status_code = 500
    code = "WEATHER_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidInput(WeatherServiceError):
    """Non-numeric or out-of-range input. Raised before any upstream call."""
    status_code = 400
    code = "INVALID_INPUT"


class ConfigurationError(WeatherServiceError):
    """Deployment problem such as a missing credential. Never retried."""
    status_code = 500
    code = "CONFIGURATION_ERROR"


class UpstreamError(WeatherServiceError):
    """A failed call to a weather provider.

    Args:
        message: Human-readable description
        status: HTTP status returned by the provider, or None for network-level failures
        retry_after: Server-supplied retry delay in seconds, if any
    """
    status_code = 502
    code = "UPSTREAM_ERROR"

    def __init__(self, message: str = "", status: Optional[int] = None, retry_after: Optional[float] = None):
        super().__init__(message)
        self.status = status
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        return self.status is None or self.status == 429 or self.status >= 500


class UpstreamRateLimited(UpstreamError):
    status_code = 429
    code = "UPSTREAM_RATE_LIMITED"


class UpstreamServerError(UpstreamError):
    code = "UPSTREAM_SERVER_ERROR"


class UpstreamUnavailable(UpstreamError):
    status_code = 504
    code = "UPSTREAM_UNAVAILABLE"


class UpstreamClientError(UpstreamError):
    code = "UPSTREAM_CLIENT_ERROR"


class AllProvidersExhausted(WeatherServiceError):
    """Primary retries, stale cache and secondary provider all failed."""
    status_code = 503
    code = "ALL_PROVIDERS_EXHAUSTED"


def upstream_error_for_status(status: Optional[int], message: str = "",
                              retry_after: Optional[float] = None) -> UpstreamError:
    """Build the UpstreamError subclass matching an HTTP status (None means no response)."""
    if status is None:
        return UpstreamUnavailable(message, status=None, retry_after=retry_after)
    if status == 429:
        return UpstreamRateLimited(message, status=status, retry_after=retry_after)
    if status >= 500:
        return UpstreamServerError(message, status=status, retry_after=retry_after)
    return UpstreamClientError(message, status=status, retry_after=retry_after)


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors with standardized error format."""
        error_details = []
        for error in exc.errors():
            field = " -> ".join(str(loc) for loc in error['loc'])
            error_details.append({
                "field": field,
                "message": error['msg'],
                "type": error['type'],
            })

        logger.warning(f"❌ VALIDATION ERROR: {exc.errors()} | Path={request.url.path}")

        error_response = ErrorResponse(
            error="VALIDATION_ERROR",
            message="Request data validation failed",
            code="VALIDATION_ERROR",
            details=error_details,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(status_code=422, content=error_response.model_dump())

    @app.exception_handler(WeatherServiceError)
    async def weather_exception_handler(request: Request, exc: WeatherServiceError):
        """Translate weather core errors into the standardized error format."""
        if exc.status_code >= 500:
            logger.error(f"❌ {exc.code}: {exc.message} | Path={request.url.path}")
        else:
            logger.info(f"⚠️  {exc.code}: {exc.message} | Path={request.url.path}")

        details = None
        if isinstance(exc, UpstreamError) and exc.status is not None:
            details = {"upstream_status": exc.status}

        error_response = ErrorResponse(
            error=ERROR_CODES.get(exc.status_code, "UNKNOWN_ERROR"),
            message=exc.message,
            code=exc.code,
            details=details,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(status_code=exc.status_code, content=error_response.model_dump())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unhandled exceptions with standardized error format."""
        logger.error(f"❌ UNHANDLED EXCEPTION: {type(exc).__name__}: {str(exc)} | Path={request.url.path}", exc_info=True)

        # Return generic error to client (don't expose internal details)
        error_response = ErrorResponse(
            error="INTERNAL_SERVER_ERROR",
            message="An internal server error occurred" if not DEBUG else str(exc),
            code="INTERNAL_SERVER_ERROR",
            details={"type": type(exc).__name__} if DEBUG else None,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(status_code=500, content=error_response.model_dump())
