from __future__ import annotations

import os


def normalize_path(path: str) -> str:
    """
    Return the absolute, normalized form of a local path.

    Used as the identity of an input: './a/../b', 'b/' and '/cwd/b' normalize
    to the same key.
    """
    return os.path.normpath(os.path.abspath(os.path.expanduser(path)))


def display_name(path: str) -> str:
    """Return the last component of a normalized local path."""
    return os.path.basename(normalize_path(path)) or normalize_path(path)
