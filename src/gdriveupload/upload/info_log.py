"""Append uploaded file details to a user-chosen file (-i/--save-info)."""

from __future__ import annotations

import logging
import os
import threading

from gdriveupload.errors import ConfigError
from gdriveupload.models import UploadOutcome
from gdriveupload.util.ids import drive_link

logger = logging.getLogger(__name__)


class InfoLog:
    def __init__(self, path: str) -> None:
        self._path = os.path.expanduser(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def write(self, outcome: UploadOutcome) -> None:
        """Append one record for a successful outcome; others are ignored."""
        if not outcome.succeeded or not outcome.remote_file_id:
            return

        record = (
            f"Link: {drive_link(outcome.remote_file_id)}\n"
            f"Name: {outcome.task.remote_name}\n"
            f"ID: {outcome.remote_file_id}\n"
            f"Status: {outcome.status.value}\n\n"
        )
        with self._lock:
            try:
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(record)
            except OSError as exc:
                raise ConfigError(
                    "Failed to write save-info file",
                    details={"path": self._path},
                    cause=exc,
                ) from exc
        logger.debug("Saved info for %s to %s", outcome.task.remote_name, self._path)
