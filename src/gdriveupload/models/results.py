"""Run-level result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .tasks import UploadOutcome


@dataclass(slots=True)
class RunSummary:
    """Counts and terminal identifiers for one input (a file or a folder's file set)."""

    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    root_reference_id: Optional[str] = None
    outcomes: list[UploadOutcome] = field(default_factory=list)
