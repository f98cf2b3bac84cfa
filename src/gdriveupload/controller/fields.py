"""Partial-response field masks sent with Drive requests."""

from __future__ import annotations

# Enough to place an upload and report it; timestamps are never read.
FILE_FIELDS: str = "id,name,mimeType,parents,size,md5Checksum"

LIST_FIELDS: str = f"nextPageToken,files({FILE_FIELDS})"

# trash/share only need confirmation that the call landed.
ID_FIELDS: str = "id"
