"""Remote store client exports for gdriveupload."""

from __future__ import annotations

from .drive_client import DriveClient

__all__ = ["DriveClient"]
