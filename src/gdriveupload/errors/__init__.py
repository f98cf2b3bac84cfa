"""Public error exports for gdriveupload."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    ConfigError,
    ConflictError,
    GDriveUploadError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    LocalFileError,
    MirrorError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    UploadAborted,
    is_transient,
    map_http_error,
)

__all__ = [
    "GDriveUploadError",
    "ConfigError",
    "InvalidStateError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "LocalFileError",
    "MirrorError",
    "UploadAborted",
    "HttpErrorInfo",
    "map_http_error",
    "is_transient",
]
