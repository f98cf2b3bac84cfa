"""UploadManager: root/workspace setup and per-input upload runs."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol, Sequence

from gdriveupload.config import ConfigStore, UploadOptions, split_default
from gdriveupload.errors import (
    AuthError,
    GDriveUploadError,
    InvalidArgumentError,
    NotFoundError,
)
from gdriveupload.mirror import DirectoryMirrorResolver, build_tasks, scan_tree
from gdriveupload.models import FileInfo, RunSummary, UploadTask
from gdriveupload.upload import ConflictRetryPolicy, InfoLog, RunAggregator, UploadScheduler
from gdriveupload.util.ids import extract_id
from gdriveupload.util.mime import is_folder
from gdriveupload.util.paths import normalize_path

logger = logging.getLogger(__name__)

ROOT_FOLDER_KEY = "ROOT_FOLDER"
ROOT_FOLDER_NAME_KEY = "ROOT_FOLDER_NAME"
DEFAULT_ROOT_ID = "root"

InputKind = Literal["file", "folder", "clone", "empty", "invalid"]


class RemoteStoreClient(Protocol):
    def get_metadata(self, file_id: str) -> FileInfo: ...

    def create_folder(self, name: str, parent_id: str) -> FileInfo: ...

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

    def share(self, file_id: str, email: Optional[str] = None) -> None: ...


@dataclass(slots=True)
class InputReport:
    """What happened to one input. summary is None when nothing was attempted."""

    source: str
    kind: InputKind
    summary: Optional[RunSummary] = None
    shared: bool = False
    message: Optional[str] = None


class UploadManager:
    """
    High-level upload run: Credential -> Root/Workspace -> Mirror -> Schedule.

    Fatal errors (invalid root, mirror failure, auth) are raised. Per-file
    failures end up in each input's RunSummary.
    """

    def __init__(
        self,
        client: RemoteStoreClient,
        options: Optional[UploadOptions] = None,
        *,
        store: Optional[ConfigStore] = None,
    ) -> None:
        self._client = client
        self._options = options if options is not None else UploadOptions()
        self._store = store
        self._policy = ConflictRetryPolicy(
            client,
            policy=self._options.policy,
            retry_budget=self._options.retry_budget,
        )
        self._scheduler = UploadScheduler(self._policy, parallel=self._options.parallel)
        self._resolver = DirectoryMirrorResolver(client)
        self._info_log = InfoLog(self._options.save_info) if self._options.save_info else None
        self._workspace: Optional[FileInfo] = None

    @property
    def options(self) -> UploadOptions:
        return self._options

    @property
    def scheduler(self) -> UploadScheduler:
        return self._scheduler

    @property
    def workspace(self) -> Optional[FileInfo]:
        """The folder inputs were uploaded into, once run() has set it up."""
        return self._workspace

    def run(
        self,
        paths: Sequence[str] = (),
        clone_ids: Sequence[str] = (),
    ) -> list[InputReport]:
        """Set up root and workspace, then process every input once."""
        root = self.setup_root()
        workspace = self.setup_workspace(root)
        self._workspace = workspace
        logger.info("Workspace folder: %s (%s)", workspace.name, workspace.file_id)

        reports: list[InputReport] = []
        for path in _unique(paths, key=normalize_path):
            reports.append(self.upload_path(path, workspace.file_id))
        for file_id in _unique([extract_id(v) for v in clone_ids], key=str):
            reports.append(self.clone_file(file_id, workspace.file_id))
        return reports

    # ----------------------------
    # Root / workspace
    # ----------------------------
    def setup_root(self) -> FileInfo:
        """
        Resolve the destination root folder.

        Raises:
            InvalidArgumentError: if the root ID/URL does not name a folder.
        """
        option = self._options.root_dir
        if option:
            value, make_default = split_default(option)
            root = self._check_root(extract_id(value))
            if make_default and self._store is not None:
                self._store.update_many(
                    {ROOT_FOLDER_KEY: root.file_id, ROOT_FOLDER_NAME_KEY: root.name}
                )
            return root

        configured = self._store.get(ROOT_FOLDER_KEY) if self._store is not None else None
        root = self._check_root(extract_id(configured) if configured else DEFAULT_ROOT_ID)
        if self._store is not None:
            if not configured:
                self._store.update_many(
                    {ROOT_FOLDER_KEY: root.file_id, ROOT_FOLDER_NAME_KEY: root.name}
                )
            elif not self._store.get(ROOT_FOLDER_NAME_KEY):
                self._store.update(ROOT_FOLDER_NAME_KEY, root.name)
        return root

    def setup_workspace(self, root: FileInfo) -> FileInfo:
        """Return the folder inputs go into: root, or the -C folder under it."""
        name = self._options.workspace_name
        if not name:
            return root

        matches = self._client.list_children(root.file_id, name=name, folders_only=True)
        if matches:
            return matches[0]
        folder = self._client.create_folder(name, root.file_id)
        logger.info("Created workspace folder %s (%s)", name, folder.file_id)
        return folder

    def _check_root(self, root_id: str) -> FileInfo:
        try:
            info = self._client.get_metadata(root_id)
        except NotFoundError as exc:
            raise InvalidArgumentError(
                "Given root folder ID/URL invalid",
                details={"root_id": root_id},
                cause=exc,
            ) from exc
        if not is_folder(info.mime_type):
            raise InvalidArgumentError(
                "Given root folder ID/URL is not a folder",
                details={"root_id": root_id, "mime_type": info.mime_type},
            )
        return info

    # ----------------------------
    # Inputs
    # ----------------------------
    def upload_path(self, path: str, folder_id: str) -> InputReport:
        local = normalize_path(path)
        if os.path.isfile(local):
            return self.upload_file(local, folder_id)
        if os.path.isdir(local):
            return self.upload_folder(local, folder_id)
        logger.error("Invalid Input - %s", path)
        return InputReport(source=path, kind="invalid", message="Invalid Input")

    def upload_file(self, path: str, folder_id: str) -> InputReport:
        logger.info("Upload Method: %s", self._options.policy.label)
        local = normalize_path(path)
        task = UploadTask(
            local_path=local,
            destination_folder_id=folder_id,
            remote_name=os.path.basename(local),
        )
        aggregator = RunAggregator()
        outcomes = self._scheduler.schedule_uploads([task], aggregator)
        if outcomes and outcomes[0].succeeded:
            aggregator.set_root_reference(outcomes[0].remote_file_id)
        return self._finish(path, "file", aggregator.summary())

    def upload_folder(self, path: str, folder_id: str) -> InputReport:
        logger.info("Upload Method: %s", self._options.policy.label)
        tree = scan_tree(path)
        if tree.is_empty:
            logger.warning("Empty Folder: %s", tree.root)
            return InputReport(source=path, kind="empty", message="Empty Folder")

        logger.info(
            "Folder: %s | %d File(s) | %d Sub-folders",
            os.path.basename(tree.root),
            len(tree.files),
            tree.subdir_count,
        )
        mapping = self._resolver.resolve_mirror(
            tree.root,
            folder_id,
            skip_subdirs=self._options.skip_subdirs,
            tree=tree,
        )
        aggregator = RunAggregator(root_reference_id=mapping[tree.root])
        self._scheduler.schedule_uploads(build_tasks(tree, mapping), aggregator)
        return self._finish(path, "folder", aggregator.summary())

    def clone_file(self, file_id: str, folder_id: str) -> InputReport:
        """Copy a Drive file into folder_id without downloading it."""
        try:
            info = self._client.get_metadata(file_id)
        except AuthError:
            raise
        except GDriveUploadError as exc:
            logger.error("File ID (%s) invalid: %s", file_id, exc)
            return InputReport(source=file_id, kind="invalid", message="File ID invalid")

        if is_folder(info.mime_type):
            logger.error("Folder not supported: %s", file_id)
            return InputReport(source=file_id, kind="invalid", message="Folder not supported")

        task = UploadTask(
            local_path="",
            destination_folder_id=folder_id,
            remote_name=info.name,
            source_id=info.file_id,
        )
        aggregator = RunAggregator()
        outcomes = self._scheduler.schedule_uploads([task], aggregator)
        if outcomes and outcomes[0].succeeded:
            aggregator.set_root_reference(outcomes[0].remote_file_id)
        return self._finish(file_id, "clone", aggregator.summary())

    def _finish(self, source: str, kind: InputKind, summary: RunSummary) -> InputReport:
        if self._info_log is not None:
            for outcome in summary.outcomes:
                self._info_log.write(outcome)

        shared = False
        if self._options.share and summary.success_count > 0 and summary.root_reference_id:
            try:
                self._client.share(summary.root_reference_id, self._options.share_email)
                shared = True
                logger.info("Shared %s", summary.root_reference_id)
            except AuthError:
                raise
            except GDriveUploadError as exc:
                logger.warning("Could not share %s: %s", summary.root_reference_id, exc)

        return InputReport(source=source, kind=kind, summary=summary, shared=shared)


def _unique(values: Sequence[str], *, key: Callable[[str], str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        if not value:
            continue
        k = key(value)
        if k in seen:
            continue
        seen.add(k)
        unique.append(value)
    return unique
