"""Asynchronous conversion jobs: storage, execution and progress streaming."""

from .progress import format_sse, progress_events
from .runner import JobRunner
from .store import Job, JobStore

__all__ = [
    "Job",
    "JobStore",
    "JobRunner",
    "progress_events",
    "format_sse",
]
