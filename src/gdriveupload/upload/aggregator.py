"""Run Aggregator: additive per-input counters."""

from __future__ import annotations

from typing import Optional

from gdriveupload.models import OutcomeStatus, RunSummary, UploadOutcome


class RunAggregator:
    """Collects outcomes of one input. Only the scheduler records into it."""

    def __init__(self, root_reference_id: Optional[str] = None) -> None:
        self._summary = RunSummary(root_reference_id=root_reference_id)

    def set_root_reference(self, remote_id: str) -> None:
        self._summary.root_reference_id = remote_id

    def record(self, outcome: UploadOutcome) -> None:
        if outcome.succeeded:
            self._summary.success_count += 1
        elif outcome.status is OutcomeStatus.SKIPPED:
            self._summary.skipped_count += 1
        else:
            self._summary.error_count += 1
        self._summary.outcomes.append(outcome)

    def summary(self) -> RunSummary:
        s = self._summary
        return RunSummary(
            success_count=s.success_count,
            error_count=s.error_count,
            skipped_count=s.skipped_count,
            root_reference_id=s.root_reference_id,
            outcomes=list(s.outcomes),
        )
