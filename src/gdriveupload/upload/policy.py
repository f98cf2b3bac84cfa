"""Conflict & Retry Policy: one task in, exactly one outcome out."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from gdriveupload.config.options import ConflictPolicy
from gdriveupload.errors import AuthError, GDriveUploadError, is_transient
from gdriveupload.models import FileInfo, OutcomeStatus, UploadOutcome, UploadTask
from gdriveupload.util.mime import is_folder

logger = logging.getLogger(__name__)


class TransferClient(Protocol):
    def list_children(
        self,
        parent_id: str,
        *,
        name: Optional[str] = None,
        folders_only: bool = False,
    ) -> list[FileInfo]: ...

    def upload_new(
        self, local_path: str, parent_id: str, *, name: Optional[str] = None
    ) -> FileInfo: ...

    def update_content(self, file_id: str, local_path: str) -> FileInfo: ...

    def copy(
        self, file_id: str, new_parent_id: str, *, new_name: Optional[str] = None
    ) -> FileInfo: ...

    def trash(self, file_id: str) -> None: ...


class ConflictRetryPolicy:
    """
    Decides create/overwrite/skip for a task and runs its content transfer.

    Holds no per-task state, so one instance is shared by all workers.
    Per-task failures are returned as Failed outcomes; only AuthError
    propagates, since every later task would fail the same way.
    """

    def __init__(
        self,
        client: TransferClient,
        *,
        policy: ConflictPolicy = ConflictPolicy.CREATE,
        retry_budget: int = 1,
    ) -> None:
        if retry_budget < 1:
            raise ValueError("retry_budget must be >= 1")
        self._client = client
        self._policy = policy
        self._retry_budget = retry_budget

    @property
    def policy(self) -> ConflictPolicy:
        return self._policy

    def resolve_and_upload(self, task: UploadTask) -> UploadOutcome:
        existing: Optional[FileInfo] = None
        if self._policy is not ConflictPolicy.CREATE:
            existing = self._find_existing(task)

        if existing is not None and self._policy is ConflictPolicy.SKIP_IF_EXISTS:
            logger.info("Skipped %s (already exists as %s)", task.remote_name, existing.file_id)
            return UploadOutcome(
                task=task,
                status=OutcomeStatus.SKIPPED,
                remote_file_id=existing.file_id,
            )

        if task.is_clone:
            return self._clone(task, existing)

        if existing is not None:
            existing_id = existing.file_id
            return self._with_retries(
                task,
                OutcomeStatus.UPDATED,
                lambda: self._client.update_content(existing_id, task.local_path),
            )
        return self._with_retries(
            task,
            OutcomeStatus.CREATED,
            lambda: self._client.upload_new(
                task.local_path,
                task.destination_folder_id,
                name=task.remote_name,
            ),
        )

    def _clone(self, task: UploadTask, existing: Optional[FileInfo]) -> UploadOutcome:
        """Server-side copy. Overwrite copies first, then trashes the old file."""
        outcome = self._with_retries(
            task,
            OutcomeStatus.UPDATED if existing is not None else OutcomeStatus.CREATED,
            lambda: self._client.copy(
                task.source_id,
                task.destination_folder_id,
                new_name=task.remote_name,
            ),
        )
        if existing is not None and outcome.succeeded:
            try:
                self._client.trash(existing.file_id)
            except AuthError:
                raise
            except GDriveUploadError as exc:
                logger.warning("Could not trash replaced file %s: %s", existing.file_id, exc)
        return outcome

    def _find_existing(self, task: UploadTask) -> Optional[FileInfo]:
        """
        Return the single same-named file in the destination folder.

        No match, several matches, or a failed lookup all count as "not found".
        """
        try:
            matches = self._client.list_children(
                task.destination_folder_id,
                name=task.remote_name,
            )
        except AuthError:
            raise
        except GDriveUploadError as exc:
            logger.warning("Could not check for existing %s: %s", task.remote_name, exc)
            return None

        files = [m for m in matches if not is_folder(m.mime_type)]
        if len(files) > 1:
            logger.warning(
                "%d files named %s in destination, uploading as new",
                len(files),
                task.remote_name,
            )
            return None
        return files[0] if files else None

    def _with_retries(
        self,
        task: UploadTask,
        success_status: OutcomeStatus,
        transfer: Callable[[], FileInfo],
    ) -> UploadOutcome:
        last_error: Optional[GDriveUploadError] = None
        attempts = 0

        while attempts < self._retry_budget:
            attempts += 1
            try:
                info = transfer()
            except AuthError:
                raise
            except GDriveUploadError as exc:
                last_error = exc
                if not is_transient(exc):
                    break
                logger.debug(
                    "Attempt %d/%d for %s failed: %s",
                    attempts,
                    self._retry_budget,
                    task.remote_name,
                    exc,
                )
                continue

            logger.info(
                "%s %s (%s)",
                success_status.value.capitalize(),
                task.remote_name,
                info.file_id,
            )
            return UploadOutcome(
                task=task,
                status=success_status,
                remote_file_id=info.file_id,
                attempts=attempts,
            )

        logger.error(
            "Failed to upload %s: %s",
            task.local_path or task.source_id,
            last_error,
        )
        return UploadOutcome(
            task=task,
            status=OutcomeStatus.FAILED,
            error_detail=_describe(last_error),
            attempts=attempts,
        )


def _describe(exc: Optional[GDriveUploadError]) -> str:
    if exc is None:
        return "unknown error"
    return f"{exc.__class__.__name__}: {exc}"
