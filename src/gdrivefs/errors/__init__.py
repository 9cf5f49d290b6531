"""Public error exports for gdrivefs."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    FetchError,
    GDriveFsError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    TooManyRedirectsError,
    UploadError,
    is_retryable,
    map_http_error,
)

__all__ = [
    "GDriveFsError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "FetchError",
    "UploadError",
    "TooManyRedirectsError",
    "HttpErrorInfo",
    "map_http_error",
    "is_retryable",
]
