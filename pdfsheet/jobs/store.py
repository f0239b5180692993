#!/usr/bin/env python3
"""
In-memory job store for asynchronous conversions.

The store exclusively owns every Job record. Background tasks hold only a
job id and mutate records through ``update()``; readers get detached copies
from ``get()``. The map is guarded by a lock so handlers running in the
event loop and in FastAPI's worker threads see consistent records.

Records expire ``retention_seconds`` after their last update and are
removed by a periodic sweep. Queued and processing jobs are kept regardless
of age unless ``evict_active`` is set.

Usage:
    store = JobStore(retention_seconds=1800)
    job = store.create("report.pdf")
    store.update(job.id, status="processing", progress=10, message="Page 1...")
    snapshot = store.get(job.id)
"""

import asyncio
import dataclasses
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pdfsheet.core.constants import (
    STATUS_DONE,
    STATUS_ERROR,
    STATUS_QUEUED,
    STATUS_RANK,
    TERMINAL_STATUSES,
)

logger = logging.getLogger("pdfsheet.jobs")

DEFAULT_RETENTION_SECONDS = 30 * 60
DEFAULT_SWEEP_INTERVAL = 60

# Fields update() accepts; id and created_at are fixed at creation
MUTABLE_FIELDS = frozenset(
    {"status", "progress", "message", "filename", "result", "error", "row_count", "page_count"}
)


@dataclass
class Job:
    """A unit of conversion work."""

    id: str
    status: str
    progress: int
    message: str
    filename: str
    created_at: float
    updated_at: float
    result: Optional[bytes] = None
    error: Optional[str] = None
    row_count: Optional[int] = None
    page_count: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def snapshot(self) -> Dict[str, Any]:
        """Progress view of the job (what progress subscribers see)."""
        return {
            "status": self.status,
            "progress": self.progress,
            "message": self.message,
            "error": self.error,
        }


class JobStore:
    """Process-wide map from job id to Job.

    Args:
        retention_seconds: Age of last update after which a job is evicted
        sweep_interval: Seconds between background sweeps
        evict_active: Also evict queued/processing jobs once stale
        clock: Time source returning epoch seconds
    """

    def __init__(
        self,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        evict_active: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self.retention_seconds = retention_seconds
        self.sweep_interval = sweep_interval
        self.evict_active = evict_active
        self._clock = clock
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    def create(self, filename: str, message: str = "") -> Job:
        """Register a new queued job and return a copy of it."""
        self._ensure_sweeper()

        now = self._clock()
        job = Job(
            id=uuid.uuid4().hex,
            status=STATUS_QUEUED,
            progress=0,
            message=message,
            filename=filename,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._jobs[job.id] = job
        logger.info(f"Job {job.id} created for {filename!r}")
        return dataclasses.replace(job)

    def get(self, job_id: str) -> Optional[Job]:
        """Return a detached copy of the job, or None if unknown or evicted."""
        with self._lock:
            job = self._jobs.get(job_id)
            return dataclasses.replace(job) if job else None

    def update(self, job_id: str, **fields: Any) -> bool:
        """Merge fields into a job and refresh updated_at.

        Unknown ids are ignored (the job may have been evicted). Status never
        moves backwards, progress never decreases and stays within [0, 100],
        and result/error are only kept alongside done/error respectively.

        Returns:
            True if the job exists and was updated
        """
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot update job fields: {', '.join(sorted(unknown))}")
        if "status" in fields and fields["status"] not in STATUS_RANK:
            raise ValueError(f"Unknown job status: {fields['status']!r}")

        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False

            status = fields.pop("status", None)
            if status is not None and status != job.status:
                if STATUS_RANK[status] <= STATUS_RANK[job.status]:
                    logger.warning(
                        f"Job {job_id}: ignoring transition {job.status} -> {status}"
                    )
                else:
                    job.status = status

            progress = fields.pop("progress", None)
            if progress is not None:
                job.progress = max(job.progress, min(100, max(0, int(progress))))

            for name, value in fields.items():
                setattr(job, name, value)

            if job.status != STATUS_DONE:
                job.result = None
            if job.status != STATUS_ERROR:
                job.error = None

            job.updated_at = self._clock()
            return True

    def delete(self, job_id: str) -> bool:
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    def sweep(self, now: Optional[float] = None) -> int:
        """Evict jobs not updated within the retention window.

        Returns:
            Number of jobs evicted
        """
        now = self._clock() if now is None else now
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if now - job.updated_at > self.retention_seconds
                and (self.evict_active or job.is_terminal)
            ]
            for job_id in expired:
                del self._jobs[job_id]

        if expired:
            logger.info(f"Evicted {len(expired)} expired job(s)")
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Job sweep failed")

    def start_sweeper(self) -> asyncio.Task:
        """Start the periodic sweep on the running event loop (idempotent)."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())
        return self._sweeper

    def _ensure_sweeper(self) -> None:
        # Started on first use; without a running loop the caller sweeps manually
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.start_sweeper()

    async def stop_sweeper(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._sweeper = self._sweeper, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
