from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import contextmanager
import logging

# Setup logging
logger = logging.getLogger(__name__)

class AuthServiceException(Exception):
    """Base exception class for the auth service"""

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class BadRequestError(AuthServiceException):
    """Client input or business rule violations"""

    def __init__(self, message: str = "Bad request", details: dict = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)

class AuthenticationError(AuthServiceException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: dict = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)

class AuthorizationError(AuthServiceException):
    """Authorization related errors"""

    def __init__(self, message: str = "Access denied", details: dict = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)

class InternalServerError(AuthServiceException):
    """Unexpected persistence, hashing or signing failures"""

    def __init__(self, message: str = "Server error"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)

# Registration handshake
class AlreadyRegisteredError(BadRequestError):
    """A durable user with this email already exists"""

    def __init__(self):
        super().__init__("User already exists")

class PendingRegistrationNotFoundError(BadRequestError):
    """No signup is awaiting verification for this email"""

    def __init__(self):
        super().__init__("User not found or OTP expired")

class OTPInvalidOrExpiredError(BadRequestError):
    """OTP does not match or its window has passed"""

    def __init__(self):
        super().__init__("Invalid or expired OTP")

# Session issuer
class UserNotFoundError(BadRequestError):
    """User not found"""

    def __init__(self):
        super().__init__("User not found")

class InvalidCredentialsError(BadRequestError):
    """Password does not match"""

    def __init__(self):
        super().__init__("Invalid credentials")

class MissingTokenError(AuthorizationError):
    """No refresh token supplied"""

    def __init__(self):
        super().__init__("Refresh token required")

class InvalidTokenError(AuthorizationError):
    """Refresh token failed verification"""

    def __init__(self):
        super().__init__("Invalid refresh token")

class InvalidAccessTokenError(AuthenticationError):
    """Invalid or expired access token"""

    def __init__(self):
        super().__init__("Invalid or expired token.")

@contextmanager
def operation_boundary(operation: str):
    """Let domain errors through; log anything else and hide it behind a 500."""
    try:
        yield
    except AuthServiceException:
        raise
    except Exception as e:
        logger.error(f"{operation} failed: {e}", exc_info=True)
        raise InternalServerError() from e

# Exception handlers
async def auth_service_exception_handler(request: Request, exc: AuthServiceException):
    """Handle custom auth service exceptions"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"AuthService Exception: {exc.message}", extra={
        "status_code": exc.status_code,
        "path": request.url.path,
        "method": request.method
    })

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.message,
            "data": None,
            "errors": [exc.message]
        },
        headers=headers
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        message = error["msg"]
        errors.append(f"{field}: {message}")

    logger.warning(f"Validation Error: {errors}", extra={
        "path": request.url.path,
        "method": request.method
    })

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Validation failed",
            "data": None,
            "errors": errors
        }
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle FastAPI HTTP exceptions"""
    logger.warning(f"HTTP Exception: {exc.detail}", extra={
        "status_code": exc.status_code,
        "path": request.url.path,
        "method": request.method
    })

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
            "data": None,
            "errors": [exc.detail]
        },
        headers=getattr(exc, "headers", None)
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(f"Unhandled Exception: {str(exc)}", extra={
        "exception_type": type(exc).__name__,
        "path": request.url.path,
        "method": request.method
    }, exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Server error",
            "data": None,
            "errors": ["An unexpected error occurred"]
        }
    )

# Exception mapping for FastAPI app
EXCEPTION_HANDLERS = {
    AuthServiceException: auth_service_exception_handler,
    RequestValidationError: validation_exception_handler,
    StarletteHTTPException: http_exception_handler,
    Exception: general_exception_handler,
}
