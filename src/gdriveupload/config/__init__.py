"""Configuration exports for gdriveupload."""

from __future__ import annotations

from .options import (
    MAX_PARALLEL,
    ConflictPolicy,
    UploadOptions,
    default_worker_count,
)
from .paths import DEFAULT_CONFIG_FILE, resolve_config_path, split_default
from .store import ConfigStore

__all__ = [
    "ConfigStore",
    "ConflictPolicy",
    "UploadOptions",
    "MAX_PARALLEL",
    "default_worker_count",
    "DEFAULT_CONFIG_FILE",
    "resolve_config_path",
    "split_default",
]
