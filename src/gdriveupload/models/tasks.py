"""Per-file upload models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OutcomeStatus(str, Enum):
    """Terminal state of one upload task."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class RemoteFolderRef:
    """A remote folder created (or reused) for a local directory within a run."""

    remote_id: str
    local_path: str
    display_name: str


@dataclass(slots=True, frozen=True)
class UploadTask:
    """
    One file scheduled for transfer into a resolved destination folder.

    For a server-side clone source_id names the Drive file to copy and
    local_path is empty.
    """

    local_path: str
    destination_folder_id: str
    remote_name: str
    source_id: Optional[str] = None

    @property
    def is_clone(self) -> bool:
        return self.source_id is not None


@dataclass(slots=True, frozen=True)
class UploadOutcome:
    """
    Result of attempting one UploadTask.

    remote_file_id is set for Created/Updated, and for Skipped it names the
    existing entry. error_detail is set only for Failed.
    """

    task: UploadTask
    status: OutcomeStatus
    remote_file_id: Optional[str] = None
    error_detail: Optional[str] = None
    attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status in (OutcomeStatus.CREATED, OutcomeStatus.UPDATED)
