"""gdrivefs public API."""

from __future__ import annotations

from gdrivefs.adapter import GoogleDriveAdapter
from gdrivefs.auth import AuthInfo, GoogleCredentialProvider, OAuthClient
from gdrivefs.config import AdapterOptions
from gdrivefs.errors import (
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
    map_http_error,
)
from gdrivefs.models import ListResult, Metadata, Permission, RemoteObject
from gdrivefs.visibility import VISIBILITY_PRIVATE, VISIBILITY_PUBLIC

__all__ = [
    # High-level
    "GoogleDriveAdapter",
    "AdapterOptions",
    "VISIBILITY_PUBLIC",
    "VISIBILITY_PRIVATE",
    # Auth
    "AuthInfo",
    "OAuthClient",
    "GoogleCredentialProvider",
    # Models
    "RemoteObject",
    "Permission",
    "Metadata",
    "ListResult",
    # Errors
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
]
