"""Upload scheduling, conflict handling and result aggregation."""

from __future__ import annotations

from .aggregator import RunAggregator
from .info_log import InfoLog
from .policy import ConflictRetryPolicy
from .scheduler import UploadScheduler

__all__ = ["ConflictRetryPolicy", "InfoLog", "RunAggregator", "UploadScheduler"]
