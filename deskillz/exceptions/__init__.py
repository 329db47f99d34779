# deskillz/exceptions/__init__.py

from deskillz.exceptions.sdk_exceptions import (
    ErrorCode,
    SdkException,
    NetworkException,
    RequestTimeoutException,
    SessionExpiredException,
    AuthException,
    ApiException,
    ValidationException,
    InsufficientFundsException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    RateLimitException,
    SignerConfigurationException,
    ScoreValidationException,
    error_from_response,
    extract_error_message
)

__all__ = [
    'ErrorCode',
    'SdkException',
    'NetworkException',
    'RequestTimeoutException',
    'SessionExpiredException',
    'AuthException',
    'ApiException',
    'ValidationException',
    'InsufficientFundsException',
    'ForbiddenException',
    'NotFoundException',
    'ConflictException',
    'RateLimitException',
    'SignerConfigurationException',
    'ScoreValidationException',
    'error_from_response',
    'extract_error_message'
]
