"""Upload Scheduler: drives tasks through the policy, sequentially or in a pool."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Optional, Protocol, Sequence

from gdriveupload.config.options import MAX_PARALLEL
from gdriveupload.errors import InvalidArgumentError, UploadAborted
from gdriveupload.models import UploadOutcome, UploadTask
from gdriveupload.util.paths import normalize_path

from .aggregator import RunAggregator

logger = logging.getLogger(__name__)


class TaskRunner(Protocol):
    def resolve_and_upload(self, task: UploadTask) -> UploadOutcome: ...


class UploadScheduler:
    """
    Runs UploadTasks and hands each outcome to a RunAggregator.

    parallel=None runs tasks one at a time in the calling thread. Otherwise a
    pool of exactly `parallel` worker threads (1..10) is used and outcomes are
    recorded in completion order.

    The seen-set of normalized local paths spans every call on one scheduler,
    so a path given twice in one invocation is uploaded once.
    """

    def __init__(self, runner: TaskRunner, *, parallel: Optional[int] = None) -> None:
        if parallel is not None and not 1 <= parallel <= MAX_PARALLEL:
            raise InvalidArgumentError(
                f"parallel value ranges between 1 to {MAX_PARALLEL}",
                details={"parallel": parallel},
            )
        self._runner = runner
        self._parallel = parallel
        self._seen: set[str] = set()
        self._cancel = threading.Event()

    def abort(self) -> None:
        """Stop starting new tasks; pending ones are cancelled."""
        self._cancel.set()

    def schedule_uploads(
        self,
        tasks: Sequence[UploadTask],
        aggregator: RunAggregator,
    ) -> list[UploadOutcome]:
        """
        Upload tasks, recording every outcome into aggregator.

        Raises:
            UploadAborted: on KeyboardInterrupt or after abort().
            AuthError: propagated from the policy; remaining tasks are cancelled.
        """
        pending = self._dedupe(tasks)
        if not pending:
            return []

        if self._parallel is None:
            return self._run_sequential(pending, aggregator)
        return self._run_parallel(pending, aggregator)

    def _dedupe(self, tasks: Sequence[UploadTask]) -> list[UploadTask]:
        unique: list[UploadTask] = []
        for task in tasks:
            key = _task_key(task)
            if key in self._seen:
                logger.debug("Ignoring duplicate input %s", key)
                continue
            self._seen.add(key)
            unique.append(task)
        return unique

    def _run_sequential(
        self,
        tasks: list[UploadTask],
        aggregator: RunAggregator,
    ) -> list[UploadOutcome]:
        outcomes: list[UploadOutcome] = []
        try:
            for task in tasks:
                if self._cancel.is_set():
                    raise UploadAborted("Upload aborted")
                outcome = self._runner.resolve_and_upload(task)
                aggregator.record(outcome)
                outcomes.append(outcome)
        except KeyboardInterrupt as exc:
            self._cancel.set()
            raise UploadAborted("Upload aborted manually", cause=exc) from exc
        return outcomes

    def _run_parallel(
        self,
        tasks: list[UploadTask],
        aggregator: RunAggregator,
    ) -> list[UploadOutcome]:
        workers = min(self._parallel or 1, len(tasks))
        logger.debug("Uploading %d file(s) with %d worker(s)", len(tasks), workers)

        outcomes: list[UploadOutcome] = []
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gdriveupload")
        clean_exit = False
        try:
            futures: set[Future[UploadOutcome]] = {
                executor.submit(self._run_one, task) for task in tasks
            }
            while futures:
                done, futures = wait(futures, timeout=0.5, return_when=FIRST_COMPLETED)
                for future in done:
                    if future.cancelled():
                        continue
                    outcome = future.result()
                    aggregator.record(outcome)
                    outcomes.append(outcome)
                if self._cancel.is_set():
                    raise UploadAborted("Upload aborted")
            clean_exit = True
        except KeyboardInterrupt as exc:
            self._cancel.set()
            raise UploadAborted("Upload aborted manually", cause=exc) from exc
        finally:
            # On any failure, queued tasks are dropped and in-flight ones are
            # not waited for; the caller terminates the process.
            executor.shutdown(wait=clean_exit, cancel_futures=not clean_exit)
            if not clean_exit:
                self._cancel.set()
        return outcomes

    def _run_one(self, task: UploadTask) -> UploadOutcome:
        if self._cancel.is_set():
            raise UploadAborted("Upload aborted")
        return self._runner.resolve_and_upload(task)


def _task_key(task: UploadTask) -> str:
    if task.is_clone:
        return f"id:{task.source_id}"
    return normalize_path(task.local_path)
