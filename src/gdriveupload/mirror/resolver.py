"""Directory Mirror Resolver: local directory tree -> remote folder IDs."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Protocol

from gdriveupload.errors import GDriveUploadError, InvalidStateError, MirrorError
from gdriveupload.models import FileInfo, RemoteFolderRef, UploadTask
from gdriveupload.util.paths import display_name, normalize_path

logger = logging.getLogger(__name__)


class FolderClient(Protocol):
    def create_folder(self, name: str, parent_id: str) -> FileInfo: ...

    def list_children(
        self,
        parent_id: str,
        *,
        name: Optional[str] = None,
        folders_only: bool = False,
    ) -> list[FileInfo]: ...


@dataclass(slots=True)
class LocalTree:
    """
    Result of scanning a local directory.

    dirs:
        Directories containing at least one file (directly or transitively),
        parents before children, root first.
    files:
        All regular files, in the same stable order.
    files_by_dir:
        Directory -> files placed directly in it.
    """

    root: str
    dirs: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    files_by_dir: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.files

    @property
    def subdir_count(self) -> int:
        return max(0, len(self.dirs) - 1)


def scan_tree(local_root: str) -> LocalTree:
    """Walk local_root top-down and keep only directories that hold files."""
    root = normalize_path(local_root)
    tree = LocalTree(root=root)
    walked: list[str] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        walked.append(dirpath)
        files = [
            os.path.join(dirpath, name)
            for name in sorted(filenames)
            if os.path.isfile(os.path.join(dirpath, name))
        ]
        if files:
            tree.files_by_dir[dirpath] = files
            tree.files.extend(files)

    non_empty: set[str] = set()
    for dirpath in tree.files_by_dir:
        cur = dirpath
        while cur not in non_empty:
            non_empty.add(cur)
            if cur == root:
                break
            cur = os.path.dirname(cur)

    # os.walk is top-down, so parents already precede children.
    tree.dirs = [d for d in walked if d in non_empty]
    return tree


class DirectoryMirrorResolver:
    """
    Creates (or reuses) one remote folder per non-empty local directory.

    The local-path -> RemoteFolderRef cache lives as long as the resolver, i.e.
    one invocation. It is filled single-threaded and only read afterwards.
    """

    def __init__(self, client: FolderClient, *, reuse_existing: bool = True) -> None:
        self._client = client
        self._reuse_existing = reuse_existing
        self._cache: dict[str, RemoteFolderRef] = {}

    def resolve_mirror(
        self,
        local_root: str,
        remote_root_id: str,
        *,
        skip_subdirs: bool = False,
        tree: Optional[LocalTree] = None,
    ) -> dict[str, str]:
        """
        Make sure every non-empty directory under local_root has a remote folder.

        Returns:
            Local directory -> remote folder ID. With skip_subdirs (or when no
            subdirectory holds files) only local_root is mirrored. An empty
            tree yields an empty mapping and creates nothing.

        Raises:
            MirrorError: if any folder cannot be created. Folders created before
                the failure are left in place.
        """
        tree = tree if tree is not None else scan_tree(local_root)
        if tree.is_empty:
            logger.info("Nothing to mirror under %s (no files)", tree.root)
            return {}

        if skip_subdirs or tree.subdir_count == 0:
            ref = self._ensure(tree.root, remote_root_id)
            return {tree.root: ref.remote_id}

        mapping: dict[str, str] = {}
        for local_dir in tree.dirs:
            if local_dir == tree.root:
                parent_id = remote_root_id
            else:
                parent_ref = self._cache.get(os.path.dirname(local_dir))
                if parent_ref is None:
                    raise InvalidStateError(
                        "Parent directory has no remote folder yet",
                        details={"local_path": local_dir},
                    )
                parent_id = parent_ref.remote_id

            ref = self._ensure(local_dir, parent_id)
            mapping[local_dir] = ref.remote_id

        logger.info("Mirrored %d folder(s) for %s", len(mapping), tree.root)
        return mapping

    def _ensure(self, local_dir: str, parent_id: str) -> RemoteFolderRef:
        cached = self._cache.get(local_dir)
        if cached is not None:
            return cached

        name = display_name(local_dir)
        try:
            info = self._find_existing(name, parent_id)
            if info is None:
                info = self._client.create_folder(name, parent_id)
                logger.info("Created folder %s (%s)", name, info.file_id)
            else:
                logger.info("Using existing folder %s (%s)", name, info.file_id)
        except GDriveUploadError as exc:
            raise MirrorError(
                f"Failed to create remote folder for {local_dir}: {exc}",
                details={"local_path": local_dir, "parent_id": parent_id},
                cause=exc,
            ) from exc

        ref = RemoteFolderRef(remote_id=info.file_id, local_path=local_dir, display_name=name)
        self._cache[local_dir] = ref
        return ref

    def _find_existing(self, name: str, parent_id: str) -> Optional[FileInfo]:
        if not self._reuse_existing:
            return None
        matches = self._client.list_children(parent_id, name=name, folders_only=True)
        return matches[0] if matches else None


def build_tasks(tree: LocalTree, mapping: dict[str, str]) -> list[UploadTask]:
    """
    Turn every file of a mirrored tree into an UploadTask.

    A file goes to the folder of its own directory; when only the root was
    mirrored (flat upload) every file goes to the root folder.
    """
    flat = len(mapping) == 1 and tree.root in mapping
    tasks: list[UploadTask] = []
    for path in tree.files:
        folder_id = mapping[tree.root] if flat else mapping.get(os.path.dirname(path))
        if folder_id is None:
            raise InvalidStateError(
                "File has no resolved destination folder",
                details={"local_path": path},
            )
        tasks.append(
            UploadTask(
                local_path=path,
                destination_folder_id=folder_id,
                remote_name=os.path.basename(path),
            )
        )
    return tasks
