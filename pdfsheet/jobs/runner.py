"""Run conversions as detached background tasks."""

import asyncio
import logging
from typing import Callable, Optional, Set

from pdfsheet.core.constants import STATUS_DONE, STATUS_ERROR, STATUS_PROCESSING
from pdfsheet.core.text import get_message
from pdfsheet.extraction.pipeline import NoTableFoundError, convert_pdf
from pdfsheet.extraction.tables import TableExtractor

from .store import JobStore

logger = logging.getLogger("pdfsheet.runner")


class JobRunner:
    """Spawns one task per job and reports outcomes only through the store.

    At most ``max_concurrent`` conversions run at once; the rest stay queued.
    A task holds the job id, never the record, so store eviction and task
    progress cannot leave a half-written job behind.

    Args:
        store: Job store owning the records
        extractor_factory: Returns the TableExtractor used for a job
        max_concurrent: Conversions allowed to run simultaneously
        locale: Language for progress messages
        sheet_title: Worksheet name (config default when None)
        scale: Rasterization zoom (config default when None)
        max_dimension: Longest page side in pixels (config default when None)
    """

    def __init__(
        self,
        store: JobStore,
        extractor_factory: Callable[[], TableExtractor],
        max_concurrent: int = 2,
        locale: str = "en",
        sheet_title: Optional[str] = None,
        scale: Optional[float] = None,
        max_dimension: Optional[int] = None,
    ):
        self.store = store
        self.extractor_factory = extractor_factory
        self.max_concurrent = max(1, max_concurrent)
        self.locale = locale
        self.sheet_title = sheet_title
        self.scale = scale
        self.max_dimension = max_dimension
        self._tasks: Set[asyncio.Task] = set()
        self._semaphore: Optional[asyncio.Semaphore] = None

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def submit(self, job_id: str, data: bytes) -> asyncio.Task:
        """Schedule conversion of data for job_id and return immediately."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)

        task = asyncio.get_running_loop().create_task(self._run(job_id, data))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, job_id: str, data: bytes) -> None:
        async with self._semaphore:
            if not self.store.update(
                job_id,
                status=STATUS_PROCESSING,
                progress=1,
                message=get_message("starting", self.locale),
            ):
                logger.warning(f"Job {job_id} vanished before processing started")
                return

            def on_progress(progress: int, message: str) -> None:
                self.store.update(job_id, progress=progress, message=message)

            try:
                result = await convert_pdf(
                    data,
                    self.extractor_factory(),
                    on_progress=on_progress,
                    locale=self.locale,
                    sheet_title=self.sheet_title,
                    scale=self.scale,
                    max_dimension=self.max_dimension,
                )
            except asyncio.CancelledError:
                self.store.update(
                    job_id,
                    status=STATUS_ERROR,
                    progress=100,
                    message=get_message("failed", self.locale),
                    error="Cancelled",
                )
                raise
            except NoTableFoundError as e:
                logger.info(f"Job {job_id}: {e}")
                self._fail(job_id, str(e))
            except Exception as e:
                logger.exception(f"Job {job_id} failed")
                self._fail(job_id, str(e) or get_message("unknown_error", self.locale))
            else:
                self.store.update(
                    job_id,
                    status=STATUS_DONE,
                    progress=100,
                    message=get_message("done", self.locale),
                    result=result.workbook,
                    row_count=result.row_count,
                    page_count=result.page_count,
                )
                logger.info(
                    f"Job {job_id} done: {result.row_count} rows from {result.page_count} page(s)"
                )

    def _fail(self, job_id: str, error: str) -> None:
        self.store.update(
            job_id,
            status=STATUS_ERROR,
            progress=100,
            message=get_message("failed", self.locale),
            error=error,
        )

    async def wait(self) -> None:
        """Wait for every submitted job to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding conversions."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
