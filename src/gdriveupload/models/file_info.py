"""Data model for Drive items."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(slots=True)
class FileInfo:
    """Represents a Drive item as returned by the Remote Store Client."""

    file_id: str
    name: str
    mime_type: str
    parents: list[str] = field(default_factory=list)

    size: Optional[int] = None
    md5_checksum: Optional[str] = None
