"""Config file location rules."""

from __future__ import annotations

import logging
import os
from typing import Optional

from gdriveupload.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE: str = "~/.googledrive.conf"
INFO_DIR: str = "~/.google-drive-upload"
CONFIG_POINTER_FILE: str = "google-drive-upload.configpath"

DEFAULT_PREFIX: str = "default="


def split_default(value: str) -> tuple[str, bool]:
    """
    Split an option value of the form 'default=<value>'.

    Returns:
        (value without prefix, whether it should become the new default)
    """
    if value.startswith(DEFAULT_PREFIX):
        return value[len(DEFAULT_PREFIX):], True
    return value, False


def resolve_config_path(
    option: Optional[str] = None,
    *,
    info_dir: str = INFO_DIR,
) -> str:
    """
    Return the config file to use for this run.

    Order:
        - the -z/--config option (must be readable); with a 'default=' prefix
          the path is also remembered for later runs
        - a path remembered earlier in <info_dir>/google-drive-upload.configpath
        - ~/.googledrive.conf

    Raises:
        ConfigError: if the explicitly given config file is not readable.
    """
    pointer = os.path.join(os.path.expanduser(info_dir), CONFIG_POINTER_FILE)

    if option:
        path, make_default = split_default(option)
        path = os.path.expanduser(path)
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            raise ConfigError(
                "Given config file doesn't exist/not readable",
                details={"path": path},
            )
        if make_default:
            _remember(pointer, os.path.abspath(path))
        return path

    if os.path.isfile(pointer):
        try:
            with open(pointer, "r", encoding="utf-8") as f:
                remembered = f.read().strip()
        except OSError as exc:
            raise ConfigError(
                "Failed to read config pointer file",
                details={"path": pointer},
                cause=exc,
            ) from exc
        if remembered:
            return remembered

    return os.path.expanduser(DEFAULT_CONFIG_FILE)


def _remember(pointer: str, path: str) -> None:
    try:
        os.makedirs(os.path.dirname(pointer), exist_ok=True)
        with open(pointer, "w", encoding="utf-8") as f:
            f.write(path + "\n")
    except OSError as exc:
        raise ConfigError(
            "Failed to save default config path",
            details={"path": pointer},
            cause=exc,
        ) from exc
    logger.info("Default config file set to %s", path)
