"""Exception hierarchy and HTTP error mapping for gdrivefs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class GDriveFsError(Exception):
    """
    Root of every error raised inside gdrivefs.

    `details` carries structured context (status code, object ID, path...)
    and `cause` the lower-level exception, if any. The adapter catches this
    type at its boundary; nothing below it does.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause

    @property
    def status_code(self) -> Optional[int]:
        value = self.details.get("status_code")
        return value if isinstance(value, int) else None


# ----------------------------
# Remote store (HTTP) errors
# ----------------------------
class AuthError(GDriveFsError):
    """Credentials missing, rejected (401) or impossible to refresh."""


class PermissionError(GDriveFsError):
    """Access denied (403 without a quota reason)."""


class InvalidArgumentError(GDriveFsError):
    """Bad request (400) or invalid local arguments."""


class NotFoundError(GDriveFsError):
    """Object does not exist (404)."""


class ConflictError(GDriveFsError):
    """Concurrent modification (409/412)."""


class RateLimitError(GDriveFsError):
    """Too many requests (429)."""


class QuotaExceededError(GDriveFsError):
    """Quota-related 403."""


class NetworkError(GDriveFsError):
    """Transport failure; no HTTP response was received."""


class ApiError(GDriveFsError):
    """Anything else the remote store answered with (5xx, unknown 4xx)."""


# ----------------------------
# Filesystem errors
# ----------------------------
class FetchError(GDriveFsError):
    """Resolving a path failed for another reason than "not found"."""


class UploadError(GDriveFsError):
    """An upload could not be completed; a partial object may remain."""


class TooManyRedirectsError(GDriveFsError):
    """A download needed more requests than the configured hop ceiling."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Status, reason and message of a failed HTTP exchange."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_STATUS_ERRORS: dict[int, type[GDriveFsError]] = {
    400: InvalidArgumentError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    412: ConflictError,
    429: RateLimitError,
}

# Drive reports quota problems as 403 with one of these reasons.
_QUOTA_REASONS: tuple[str, ...] = (
    "quota",
    "ratelimitexceeded",
    "userratelimitexceeded",
    "dailylimitexceeded",
    "usagelimits",
    "storagequotaexceeded",
)


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    lowered = reason.lower()
    return any(key in lowered for key in _QUOTA_REASONS)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> GDriveFsError:
    """
    Turn a failed HTTP exchange into a gdrivefs exception.

    403 becomes QuotaExceededError when the reason names a quota, else
    PermissionError. Statuses without a dedicated class map to ApiError.
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 403 and _is_quota_reason(info.reason):
        return QuotaExceededError(message, details=details, cause=cause)
    cls = _STATUS_ERRORS.get(info.status_code, ApiError)
    return cls(message, details=details, cause=cause)


def is_retryable(exc: BaseException) -> bool:
    """Rate limiting and server-side (5xx) failures are worth another try."""
    if isinstance(exc, RateLimitError):
        return True
    if isinstance(exc, ApiError):
        status_code = exc.status_code
        return status_code is not None and 500 <= status_code <= 599
    return False
