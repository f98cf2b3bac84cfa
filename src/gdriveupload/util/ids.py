from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse

_DRIVE_HOSTS: tuple[str, ...] = ("drive.google.com", "docs.google.com")

# /file/d/<id>, /folders/<id>, /document/d/<id>, /spreadsheets/d/<id>, ...
_PATH_ID_RE = re.compile(r"/(?:d|folders)/([A-Za-z0-9_-]+)")


def is_drive_url(value: str) -> bool:
    """Return True if value looks like a Google Drive/Docs URL."""
    return any(host in value for host in _DRIVE_HOSTS)


def extract_id(value: str) -> str:
    """
    Extract a Drive file/folder ID from a URL; plain IDs are returned unchanged.

    Accepts strings like:
      - https://drive.google.com/file/d/<id>/view?usp=sharing
      - https://drive.google.com/drive/folders/<id>
      - https://drive.google.com/open?id=<id>
      - https://docs.google.com/document/d/<id>/edit
    """
    value = value.strip()
    if not is_drive_url(value):
        return value

    parsed = urlparse(value if "://" in value else f"https://{value}")
    match = _PATH_ID_RE.search(parsed.path)
    if match:
        return match.group(1)

    ids = parse_qs(parsed.query).get("id")
    if ids and ids[0]:
        return ids[0]

    return value


def drive_link(file_id: str) -> str:
    """Return the shareable link of a Drive item."""
    return f"https://drive.google.com/open?id={file_id}"
