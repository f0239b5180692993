"""Stream job progress as Server-Sent Events."""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from pdfsheet.core.text import get_message

from .store import JobStore

logger = logging.getLogger("pdfsheet.progress")

DEFAULT_POLL_INTERVAL = 0.5

DisconnectCheck = Callable[[], Awaitable[bool]]


def format_sse(event: str, data: Any) -> str:
    """Encode one SSE frame: ``event: <name>`` and a JSON ``data:`` line."""
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


async def progress_events(
    store: JobStore,
    job_id: str,
    is_disconnected: Optional[DisconnectCheck] = None,
    interval: float = DEFAULT_POLL_INTERVAL,
    locale: str = "en",
) -> AsyncIterator[str]:
    """Yield SSE frames for a job until it finishes or the client goes away.

    The first snapshot is sent immediately, later ones only when status,
    progress, message or error changed. An unknown (or evicted) job produces
    a single ``error`` event. Stopping never cancels the job itself.

    Args:
        store: Job store to poll
        job_id: Job to follow
        is_disconnected: Async callable returning True once the client left
        interval: Seconds between polls
        locale: Language for the not-found message
    """
    last_snapshot = None

    while True:
        if is_disconnected is not None and await is_disconnected():
            logger.debug(f"Progress stream for job {job_id}: client disconnected")
            return

        job = store.get(job_id)
        if job is None:
            yield format_sse("error", {"error": get_message("job_not_found", locale)})
            return

        snapshot = job.snapshot()
        if snapshot != last_snapshot:
            last_snapshot = snapshot
            yield format_sse("progress", snapshot)

        if job.is_terminal:
            return

        await asyncio.sleep(interval)
