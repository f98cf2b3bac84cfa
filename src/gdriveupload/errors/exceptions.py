"""Exception hierarchy and HTTP error mapping for gdriveupload."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class GDriveUploadError(Exception):
    """
    Base exception for gdriveupload.

    Attributes:
        details: Optional structured information (e.g., HTTP status, reason).
        cause: Optional original exception that triggered this error.
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


class ConfigError(GDriveUploadError):
    """Raised when the config record cannot be read or written."""


class InvalidStateError(GDriveUploadError):
    """Raised when components are used out of order (e.g., parent folder not resolved)."""


class AuthError(GDriveUploadError):
    """Raised when no usable access credential can be obtained."""


class PermissionError(GDriveUploadError):
    """Raised when access is denied (HTTP 403 non-quota)."""


class InvalidArgumentError(GDriveUploadError):
    """Raised when request arguments or run options are invalid (HTTP 400, etc.)."""


class NotFoundError(GDriveUploadError):
    """Raised when a Drive resource is not found (HTTP 404)."""


class ConflictError(GDriveUploadError):
    """Raised when a conflict occurs (HTTP 409/412)."""


class RateLimitError(GDriveUploadError):
    """Raised when rate-limited (HTTP 429)."""


class QuotaExceededError(GDriveUploadError):
    """Raised when quota is exceeded (HTTP 403 with quota-related reason)."""


class NetworkError(GDriveUploadError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(GDriveUploadError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


class LocalFileError(GDriveUploadError):
    """Raised when a local file cannot be read for transfer."""


class MirrorError(GDriveUploadError):
    """Raised when the remote folder mirror of a local tree cannot be completed."""


class UploadAborted(GDriveUploadError):
    """Raised when a run is interrupted manually."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to gdriveupload exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_QUOTA_REASON_KEYWORDS: tuple[str, ...] = (
    "quota",
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "dailyLimitExceeded",
    "usageLimits",
    "storageQuotaExceeded",
)

_RATE_REASON_KEYWORDS: tuple[str, ...] = (
    "rateLimitExceeded",
    "userRateLimitExceeded",
)


def _reason_matches(reason: str | None, keywords: tuple[str, ...]) -> bool:
    if not reason:
        return False
    return any(key.lower() in reason.lower() for key in keywords)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> GDriveUploadError:
    """
    Map an HTTP error to a gdriveupload exception.

    Policy:
        - 401 -> AuthError
        - 403 -> PermissionError (default), but QuotaExceededError if quota-related
        - 404 -> NotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - 400 -> InvalidArgumentError
        - 5xx -> ApiError
        - otherwise -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        if _reason_matches(info.reason, _QUOTA_REASON_KEYWORDS):
            return QuotaExceededError(message, details=details, cause=cause)
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)


def is_transient(exc: BaseException) -> bool:
    """
    Return True if a failed request is worth repeating unchanged.

    Rate limits, network failures and 5xx responses are transient. A 403 quota
    error counts only when its reason is a per-user/per-project rate limit;
    storage and daily quotas do not recover within a run.
    """
    if isinstance(exc, (RateLimitError, NetworkError)):
        return True
    if isinstance(exc, QuotaExceededError):
        return _reason_matches(exc.details.get("reason"), _RATE_REASON_KEYWORDS)
    if isinstance(exc, ApiError):
        status_code = exc.details.get("status_code")
        return isinstance(status_code, int) and 500 <= status_code <= 599
    return False
