#!/usr/bin/env python3
"""
FastAPI server for pdfsheet.

Accepts PDF uploads, converts them to spreadsheets in background jobs and
streams progress to the browser.

Endpoints:
    GET  /health                          - Server status and vision LLM check
    POST /api/convert/start               - Upload a PDF, returns {"jobId": ...}
    GET  /api/convert/progress?jobId=     - Server-Sent Events with job progress
    GET  /api/convert/download?jobId=     - Finished .xlsx workbook
    GET  /api/jobs/{job_id}               - Job status as JSON
    POST /api/convert                     - Legacy: convert within one request

Usage:
    # Development
    python -m pdfsheet.servers.api

    # Production (via uvicorn)
    uvicorn pdfsheet.servers.api:app --host 127.0.0.1 --port 8096

Configuration:
    Uses config.toml / PDFSHEET_* environment variables. The vision API key
    stays server-side.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional
from urllib.parse import quote

from fastapi import APIRouter, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, Field

import pdfsheet
from pdfsheet.config import Config, config
from pdfsheet.core.constants import STATUS_DONE, STATUS_ERROR, XLSX_MEDIA_TYPE
from pdfsheet.core.llm import check_llm_health
from pdfsheet.core.text import get_message, output_filename
from pdfsheet.extraction import (
    InvalidPdfError,
    NoTableFoundError,
    TableExtractor,
    convert_pdf,
    create_extractor,
)
from pdfsheet.jobs import JobRunner, JobStore, progress_events

logger = logging.getLogger("pdfsheet.api")


# -----------------------------------------------------------------------------
# Request/Response models
# -----------------------------------------------------------------------------


class StartResponse(BaseModel):
    """Accepted upload."""

    jobId: str = Field(description="Identifier for progress and download")


class JobStatusResponse(BaseModel):
    """Job state without the workbook payload."""

    id: str
    status: str
    progress: int = Field(ge=0, le=100)
    message: str
    filename: str
    error: Optional[str] = None
    row_count: Optional[int] = None
    page_count: Optional[int] = None
    created_at: float
    updated_at: float


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    vision_llm: bool
    api_key_configured: bool
    jobs: int
    active_jobs: int
    version: str = pdfsheet.__version__


# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def error_response(status_code: int, message: str) -> JSONResponse:
    """JSON error body used by every endpoint."""
    return JSONResponse({"error": message}, status_code=status_code)


def _check_upload(file: Optional[UploadFile], cfg: Config) -> Optional[JSONResponse]:
    """Validate an upload before any work is done. Returns an error response or None."""
    if file is None:
        return error_response(400, get_message("no_file", cfg.locale))

    if "pdf" not in (file.content_type or "").lower():
        return error_response(400, get_message("not_pdf", cfg.locale))

    if cfg.require_api_key and not cfg.vision_llm_api_key:
        return error_response(500, get_message("no_api_key", cfg.locale))

    return None


def _attachment_headers(filename: str) -> dict:
    """Content-Disposition with an ASCII fallback name and the UTF-8 name (RFC 5987)."""
    name = output_filename(filename).replace('"', "").replace("\\", "")
    fallback = "".join(ch if " " <= ch < "\x7f" else "_" for ch in name)
    return {
        "Content-Disposition": (
            f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name, safe='')}"
        )
    }


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request):
    """Check server and vision LLM status."""
    cfg: Config = request.app.state.config
    llm_ok = check_llm_health(cfg.vision_llm_url, cfg.vision_llm_api_key)
    key_ok = bool(cfg.vision_llm_api_key) or not cfg.require_api_key

    return HealthResponse(
        status="healthy" if (llm_ok and key_ok) else "degraded",
        vision_llm=llm_ok,
        api_key_configured=bool(cfg.vision_llm_api_key),
        jobs=len(request.app.state.store),
        active_jobs=request.app.state.runner.active_count,
    )


@router.post("/api/convert/start", response_model=StartResponse)
async def start_conversion(request: Request, file: Optional[UploadFile] = File(default=None)):
    """Create a job for the uploaded PDF and process it in the background."""
    cfg: Config = request.app.state.config
    rejected = _check_upload(file, cfg)
    if rejected is not None:
        return rejected

    store: JobStore = request.app.state.store
    runner: JobRunner = request.app.state.runner

    try:
        data = await file.read()
        job = store.create(file.filename or "file.pdf", message=get_message("waiting", cfg.locale))
        runner.submit(job.id, data)
    except Exception as e:
        logger.exception("Failed to start conversion")
        error = str(e) or get_message("unknown_error", cfg.locale)
        return error_response(500, get_message("start_failed", cfg.locale, error=error))

    return StartResponse(jobId=job.id)


@router.get("/api/convert/progress")
async def conversion_progress(request: Request, jobId: Optional[str] = None):
    """Stream job progress until the job finishes or the client disconnects."""
    cfg: Config = request.app.state.config
    if not jobId:
        return error_response(400, get_message("job_id_required", cfg.locale))

    return StreamingResponse(
        progress_events(
            request.app.state.store,
            jobId,
            is_disconnected=request.is_disconnected,
            interval=request.app.state.poll_interval,
            locale=cfg.locale,
        ),
        media_type="text/event-stream; charset=utf-8",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/api/convert/download")
async def download_result(request: Request, jobId: Optional[str] = None):
    """Return the finished workbook for a job."""
    cfg: Config = request.app.state.config
    if not jobId:
        return error_response(400, get_message("job_id_required", cfg.locale))

    job = request.app.state.store.get(jobId)
    if job is None:
        return error_response(404, get_message("job_not_found", cfg.locale))

    if job.status == STATUS_ERROR:
        return error_response(500, job.error or get_message("processing_failed", cfg.locale))

    if job.status != STATUS_DONE or job.result is None:
        return error_response(409, get_message("not_ready", cfg.locale))

    return Response(
        content=job.result,
        media_type=XLSX_MEDIA_TYPE,
        headers=_attachment_headers(job.filename),
    )


@router.get("/api/jobs/{job_id}", response_model=JobStatusResponse)
async def job_status(request: Request, job_id: str):
    """Current state of a job, without the workbook."""
    cfg: Config = request.app.state.config
    job = request.app.state.store.get(job_id)
    if job is None:
        return error_response(404, get_message("job_not_found", cfg.locale))

    return JobStatusResponse(
        id=job.id,
        status=job.status,
        progress=job.progress,
        message=job.message,
        filename=job.filename,
        error=job.error,
        row_count=job.row_count,
        page_count=job.page_count,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


@router.post("/api/convert")
async def convert_sync(request: Request, file: Optional[UploadFile] = File(default=None)):
    """Legacy endpoint: run the whole conversion inside this request.

    Superseded by /api/convert/start + progress + download, kept for
    existing clients.
    """
    cfg: Config = request.app.state.config
    rejected = _check_upload(file, cfg)
    if rejected is not None:
        return rejected

    try:
        data = await file.read()
        result = await convert_pdf(
            data,
            request.app.state.extractor_factory(),
            locale=cfg.locale,
            sheet_title=cfg.sheet_title,
            scale=cfg.render_scale,
            max_dimension=cfg.max_page_dimension,
        )
    except InvalidPdfError as e:
        logger.warning(f"Rejected unreadable PDF {file.filename!r}: {e}")
        return error_response(400, get_message("invalid_pdf", cfg.locale))
    except NoTableFoundError as e:
        return error_response(404, str(e))
    except Exception as e:
        logger.exception("Synchronous conversion failed")
        return error_response(500, str(e) or get_message("unknown_error", cfg.locale))

    return Response(
        content=result.workbook,
        media_type=XLSX_MEDIA_TYPE,
        headers=_attachment_headers(file.filename or "file.pdf"),
    )


# -----------------------------------------------------------------------------
# App setup
# -----------------------------------------------------------------------------


def create_app(
    cfg: Optional[Config] = None,
    store: Optional[JobStore] = None,
    extractor_factory: Optional[Callable[[], TableExtractor]] = None,
    poll_interval: float = 0.5,
) -> FastAPI:
    """Build the FastAPI application with its own job store and runner.

    Args:
        cfg: Configuration (global config by default)
        store: Job store (a fresh one sized from cfg by default)
        extractor_factory: Returns the TableExtractor for a conversion
        poll_interval: Seconds between progress polls
    """
    cfg = cfg or config

    if store is None:
        store = JobStore(
            retention_seconds=cfg.job_retention_minutes * 60,
            sweep_interval=cfg.job_sweep_interval,
            evict_active=cfg.evict_active_jobs,
        )

    if extractor_factory is None:
        shared = {}

        def extractor_factory() -> TableExtractor:
            # One client per process; it pools connections across jobs
            if "extractor" not in shared:
                shared["extractor"] = create_extractor(cfg)
            return shared["extractor"]

    runner = JobRunner(
        store,
        extractor_factory,
        max_concurrent=cfg.max_concurrent_jobs,
        locale=cfg.locale,
        sheet_title=cfg.sheet_title,
        scale=cfg.render_scale,
        max_dimension=cfg.max_page_dimension,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        store.start_sweeper()
        logger.info(f"pdfsheet API ready (config: {cfg.config_source})")
        yield
        await runner.shutdown()
        await store.stop_sweeper()

    app = FastAPI(
        title="pdfsheet API",
        description="Extract tables from PDF documents into spreadsheets",
        version=pdfsheet.__version__,
        lifespan=lifespan,
    )

    # Allow local connections only
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"http://(localhost|127\.0\.0\.1)(:\d+)?",
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.config = cfg
    app.state.store = store
    app.state.runner = runner
    app.state.extractor_factory = extractor_factory
    app.state.poll_interval = poll_interval

    app.include_router(router)
    return app


app = create_app()


# -----------------------------------------------------------------------------
# Main
# -----------------------------------------------------------------------------


if __name__ == "__main__":
    import uvicorn

    print("Starting pdfsheet API server...")
    print(f"Config source: {config.config_source}")
    print(f"Vision LLM: {config.vision_llm_model} @ {config.vision_llm_url}")
    print()

    uvicorn.run(
        "pdfsheet.servers.api:app",
        host=config.host,
        port=config.port,
        reload=False,
        log_level="info",
    )
