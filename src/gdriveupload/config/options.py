"""Run options for an upload invocation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gdriveupload.errors import InvalidArgumentError
from gdriveupload.util.validation import is_valid_email

MAX_PARALLEL: int = 10


class ConflictPolicy(str, Enum):
    """What to do when the destination folder already holds a same-named file."""

    CREATE = "create"
    OVERWRITE = "overwrite"
    SKIP_IF_EXISTS = "skip"

    @property
    def label(self) -> str:
        return {
            ConflictPolicy.CREATE: "Create",
            ConflictPolicy.OVERWRITE: "Overwrite",
            ConflictPolicy.SKIP_IF_EXISTS: "Skip Existing",
        }[self]


def default_worker_count() -> int:
    """Available processor count, capped at MAX_PARALLEL."""
    return max(1, min(os.cpu_count() or 1, MAX_PARALLEL))


@dataclass(slots=True, frozen=True)
class UploadOptions:
    """
    Options for one invocation.

    parallel:
        None runs uploads sequentially; 1..10 runs a bounded worker pool.
    retry_budget:
        Maximum content-transfer attempts per file (>= 1).
    rate_limit:
        Per-transfer throughput cap in bytes per second, or None.
    """

    parallel: Optional[int] = None
    policy: ConflictPolicy = ConflictPolicy.CREATE
    retry_budget: int = 1
    rate_limit: Optional[int] = None
    skip_subdirs: bool = False
    share: bool = False
    share_email: Optional[str] = None
    workspace_name: Optional[str] = None
    root_dir: Optional[str] = None
    save_info: Optional[str] = None

    def __post_init__(self) -> None:
        if self.parallel is not None:
            if not isinstance(self.parallel, int) or not 1 <= self.parallel <= MAX_PARALLEL:
                raise InvalidArgumentError(
                    f"parallel value ranges between 1 to {MAX_PARALLEL}",
                    details={"parallel": self.parallel},
                )

        if not isinstance(self.policy, ConflictPolicy):
            raise InvalidArgumentError("policy must be a ConflictPolicy")

        if not isinstance(self.retry_budget, int) or self.retry_budget < 1:
            raise InvalidArgumentError(
                "retry budget must be a positive integer",
                details={"retry_budget": self.retry_budget},
            )

        if self.rate_limit is not None and (
            not isinstance(self.rate_limit, int) or self.rate_limit <= 0
        ):
            raise InvalidArgumentError(
                "rate limit must be a positive number of bytes per second",
                details={"rate_limit": self.rate_limit},
            )

        if self.share_email is not None:
            if not self.share:
                raise InvalidArgumentError("share_email requires share=True")
            if not is_valid_email(self.share_email):
                raise InvalidArgumentError(
                    "Provided email address for share option is invalid",
                    details={"share_email": self.share_email},
                )

        if self.workspace_name is not None and not self.workspace_name.strip():
            raise InvalidArgumentError("workspace folder name must not be blank")
