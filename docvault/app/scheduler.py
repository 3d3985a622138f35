"""Periodic ingestion with an at-most-one-run guard."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Literal, TypeVar

from docvault.app.ingestion import IngestionReport, IngestionWalker

logger = logging.getLogger(__name__)

T = TypeVar("T")
SchedulerState = Literal["idle", "running"]


class RunGuard:
    """Process-wide single-run flag shared by ingestion and clean jobs.

    Acquisition never blocks: a caller that finds the guard held skips its run
    instead of queueing behind the current one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current_job: str | None = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    @property
    def current_job(self) -> str | None:
        return self._current_job

    @contextmanager
    def hold(self, job: str) -> Iterator[bool]:
        """Try to take the guard for ``job``; yields whether it was acquired."""
        acquired = self._lock.acquire(blocking=False)
        if not acquired:
            yield False
            return
        self._current_job = job
        try:
            yield True
        finally:
            self._current_job = None
            self._lock.release()

    def try_run(self, job: str, func: Callable[[], T]) -> T | None:
        """Run ``func`` under the guard, or return None if another job holds it."""
        with self.hold(job) as acquired:
            if not acquired:
                logger.info("Skipping %s: %s already in progress", job, self._current_job)
                return None
            return func()


class IngestionScheduler:
    """Run the ingestion walker once at startup and then on a fixed interval.

    The interval is read once at construction. Ticks that find a run (or a
    clean) in progress are skipped and counted in ``skipped_runs``.
    """

    def __init__(
        self,
        walker: IngestionWalker,
        interval_minutes: float,
        guard: RunGuard | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self._walker = walker
        self._interval_seconds = interval_minutes * 60
        self.guard = guard or RunGuard()
        self._logger = logger or logging.getLogger(__name__)
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self._counter_lock = threading.Lock()
        self.skipped_runs = 0
        self.completed_runs = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def state(self) -> SchedulerState:
        return "running" if self.guard.running else "idle"

    @property
    def started(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        """Kick off the startup run and arm the periodic timer."""
        if self.started:
            return
        self._stop_event.clear()
        self._threads = [
            threading.Thread(target=self.run_once, name="docvault-ingest-startup", daemon=True),
            threading.Thread(target=self._tick_loop, name="docvault-ingest-timer", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        self._logger.info(
            "Ingestion scheduler started (every %.0f seconds)", self._interval_seconds
        )

    def stop(self, timeout: float | None = None) -> None:
        """Stop ticking and wait for the scheduler threads to finish."""
        self._stop_event.set()
        if not self._threads:
            return
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
        self._logger.info("Ingestion scheduler stopped")

    def run_once(self) -> IngestionReport | None:
        """Run ingestion unless a job is already in progress.

        Returns:
            The run's report, or None when the run was skipped
        """
        report = self.guard.try_run("ingestion", self._walker.run)
        with self._counter_lock:
            if report is None:
                self.skipped_runs += 1
            else:
                self.completed_runs += 1
        return report

    def _tick_loop(self) -> None:
        while not self._stop_event.wait(self._interval_seconds):
            try:
                self.run_once()
            except Exception:
                self._logger.exception("Scheduled ingestion failed")
