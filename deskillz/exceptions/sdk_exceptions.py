# deskillz/exceptions/sdk_exceptions.py

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes consumers can switch on for programmatic handling"""
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    REQUEST_FAILED = "REQUEST_FAILED"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_FAILED = "AUTH_FAILED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    INVALID_SCORE = "INVALID_SCORE"
    UNKNOWN = "UNKNOWN"


class SdkException(Exception):
    """Base class for all SDK exceptions"""
    
    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)
    
    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a plain dict for logging or transmission"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.code.value,
            "status_code": self.status_code,
            "details": self.details,
        }


class NetworkException(SdkException):
    """Exception raised when no HTTP response was received (DNS, connection, protocol)"""
    
    def __init__(self, message: str = "Network error. Please check your connection.", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.NETWORK_ERROR,
            details=details
        )


class RequestTimeoutException(SdkException):
    """Exception raised when a request's deadline elapses before a response"""
    
    def __init__(self, message: str = "Request timed out", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.TIMEOUT,
            details=details
        )


class SessionExpiredException(SdkException):
    """Exception raised on a terminal 401 (refresh failed or retry rejected)"""
    
    def __init__(self, message: str = "Session expired. Please log in again.", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.TOKEN_EXPIRED,
            status_code=401,
            details=details
        )


class AuthException(SdkException):
    """Exception raised for authentication failures other than session expiry"""
    
    def __init__(self, message: str, code: ErrorCode = ErrorCode.AUTH_FAILED, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=code,
            details=details
        )


class ApiException(SdkException):
    """Exception raised for a non-2xx HTTP response"""
    
    def __init__(
        self,
        message: str,
        status_code: int,
        code: ErrorCode = ErrorCode.REQUEST_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            details=details
        )


class ValidationException(ApiException):
    """Exception raised when the backend rejects request parameters (400)"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 400, ErrorCode.VALIDATION_ERROR, details)


class InsufficientFundsException(ApiException):
    """Exception raised when a wallet cannot cover an entry fee or withdrawal (402)"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 402, ErrorCode.INSUFFICIENT_FUNDS, details)


class ForbiddenException(ApiException):
    """Exception raised for forbidden access (403)"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 403, ErrorCode.FORBIDDEN, details)


class NotFoundException(ApiException):
    """Exception raised when a resource is not found (404)"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 404, ErrorCode.NOT_FOUND, details)


class ConflictException(ApiException):
    """Exception raised when there's a conflict with current state (409)"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 409, ErrorCode.CONFLICT, details)


class RateLimitException(ApiException):
    """Exception raised when the backend rate limits the client (429)"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 429, ErrorCode.RATE_LIMITED, details)
        self.retry_after = self.details.get("retryAfter")


class SignerConfigurationException(SdkException, ValueError):
    """Exception raised when a ScoreSigner cannot be built (e.g. weak secret)"""
    
    def __init__(self, message: str):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_CONFIGURATION
        )


class ScoreValidationException(SdkException):
    """Exception raised when a score payload is rejected before signing or submission"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_SCORE,
            details=details
        )


_STATUS_EXCEPTIONS = {
    400: ValidationException,
    402: InsufficientFundsException,
    403: ForbiddenException,
    404: NotFoundException,
    409: ConflictException,
    429: RateLimitException,
}


def extract_error_message(status: int, body: Any) -> str:
    """
    Pick the human-readable message out of an error body
    
    Precedence: body.message -> body.error -> "Request failed (<status>)"
    """
    if isinstance(body, dict):
        for field in ("message", "error"):
            value = body.get(field)
            if value:
                return str(value)
    return f"Request failed ({status})"


def error_from_response(status: int, body: Any) -> ApiException:
    """Create the typed exception for a failed HTTP response"""
    message = extract_error_message(status, body)
    details = body.get("details") if isinstance(body, dict) else None
    if not isinstance(details, dict):
        details = None
    
    exc_class = _STATUS_EXCEPTIONS.get(status)
    if exc_class is None:
        return ApiException(message, status_code=status, details=details)
    return exc_class(message, details=details)
