"""Persisted key=value configuration record."""

from __future__ import annotations

import logging
import os
import re
import tempfile
import threading
from typing import Mapping, Optional

from gdriveupload.errors import ConfigError

logger = logging.getLogger(__name__)

_UNESCAPE_RE = re.compile(r"\\(.)")


class ConfigStore:
    """
    A KEY="value" file holding client identity, tokens and the default root.

    Every write re-reads the file, merges the new values and replaces the file
    atomically, so upserting one key never drops or corrupts another.
    """

    def __init__(self, path: str) -> None:
        if not isinstance(path, str) or not path.strip():
            raise ConfigError("Config path must be a non-empty string")
        self._path = os.path.expanduser(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> dict[str, str]:
        """Return all keys currently stored. A missing file is an empty record."""
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                return _parse(f.read())
        except OSError as exc:
            raise ConfigError(
                "Failed to read config file",
                details={"path": self._path},
                cause=exc,
            ) from exc

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.load().get(key)
        return value if value else default

    def update(self, key: str, value: str) -> None:
        """Upsert a single key."""
        self.update_many({key: value})

    def update_many(self, values: Mapping[str, str]) -> None:
        """Upsert several keys in one read-merge-write."""
        for key in values:
            if not key or not key.replace("_", "").isalnum():
                raise ConfigError("Invalid config key", details={"key": key})

        with self._lock:
            record = self.load()
            record.update({k: str(v) for k, v in values.items()})
            self._write(record)
        logger.debug("Updated config keys %s in %s", sorted(values), self._path)

    def _write(self, record: Mapping[str, str]) -> None:
        directory = os.path.dirname(self._path) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".gdriveupload-", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(_render(record))
                os.chmod(tmp_path, 0o600)
                os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise ConfigError(
                "Failed to write config file",
                details={"path": self._path},
                cause=exc,
            ) from exc


def _parse(text: str) -> dict[str, str]:
    record: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export "):].strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = _UNESCAPE_RE.sub(r"\1", value[1:-1])
        elif len(value) >= 2 and value[0] == value[-1] == "'":
            value = value[1:-1]
        record[key] = value
    return record


def _render(record: Mapping[str, str]) -> str:
    lines = []
    for key, value in record.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'{key}="{escaped}"')
    return "\n".join(lines) + "\n"
