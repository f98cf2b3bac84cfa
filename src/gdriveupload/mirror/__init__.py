"""Local tree scanning and remote folder mirroring."""

from __future__ import annotations

from .resolver import DirectoryMirrorResolver, LocalTree, build_tasks, scan_tree

__all__ = ["DirectoryMirrorResolver", "LocalTree", "build_tasks", "scan_tree"]
