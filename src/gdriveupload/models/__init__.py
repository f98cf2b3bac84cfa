"""Public model exports for gdriveupload."""

from __future__ import annotations

from .file_info import FileInfo
from .results import RunSummary
from .tasks import OutcomeStatus, RemoteFolderRef, UploadOutcome, UploadTask

__all__ = [
    "FileInfo",
    "OutcomeStatus",
    "RemoteFolderRef",
    "UploadTask",
    "UploadOutcome",
    "RunSummary",
]
