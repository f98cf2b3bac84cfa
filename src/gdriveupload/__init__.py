"""gdriveupload public API."""

from __future__ import annotations

from gdriveupload.auth import CredentialManager, CredentialRecord, GoogleTokenEndpoint
from gdriveupload.config import ConfigStore, ConflictPolicy, UploadOptions
from gdriveupload.controller import DriveClient
from gdriveupload.errors import (
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
    map_http_error,
)
from gdriveupload.manager import InputReport, UploadManager
from gdriveupload.mirror import DirectoryMirrorResolver
from gdriveupload.models import (
    FileInfo,
    OutcomeStatus,
    RemoteFolderRef,
    RunSummary,
    UploadOutcome,
    UploadTask,
)
from gdriveupload.upload import ConflictRetryPolicy, RunAggregator, UploadScheduler

__all__ = [
    # High-level
    "UploadManager",
    "InputReport",
    "DriveClient",
    # Auth / config
    "CredentialManager",
    "CredentialRecord",
    "GoogleTokenEndpoint",
    "ConfigStore",
    "ConflictPolicy",
    "UploadOptions",
    # Upload pipeline
    "DirectoryMirrorResolver",
    "ConflictRetryPolicy",
    "UploadScheduler",
    "RunAggregator",
    # Models
    "FileInfo",
    "OutcomeStatus",
    "RemoteFolderRef",
    "UploadTask",
    "UploadOutcome",
    "RunSummary",
    # Errors
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
]
