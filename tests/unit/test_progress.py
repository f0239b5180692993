"""Unit tests for pdfsheet.jobs.progress module."""

import asyncio
import json

from pdfsheet.jobs.progress import format_sse, progress_events
from pdfsheet.jobs.store import JobStore


def collect(store, job_id, **kwargs):
    """Run progress_events to completion and parse the frames."""

    async def run():
        return [frame async for frame in progress_events(store, job_id, interval=0, **kwargs)]

    return [parse_frame(frame) for frame in asyncio.run(run())]


def parse_frame(frame: str):
    event_line, data_line = frame.strip().split("\n")
    return event_line[len("event: "):], json.loads(data_line[len("data: "):])


def scripted(actions):
    """Disconnect check that runs one action per poll and never disconnects."""
    steps = iter(actions)

    async def is_disconnected():
        action = next(steps, None)
        if action is not None:
            action()
        return False

    return is_disconnected


class TestFormatSse:
    def test_frame_layout(self):
        frame = format_sse("progress", {"progress": 5})
        assert frame == 'event: progress\ndata: {"progress": 5}\n\n'

    def test_keeps_non_ascii(self):
        frame = format_sse("progress", {"message": "Concluído"})
        assert "Concluído" in frame


class TestProgressEvents:
    """Tests for progress_events generator."""

    def test_unknown_job_sends_error(self):
        frames = collect(JobStore(), "missing", locale="en")

        assert frames == [("error", {"error": "Job not found (expired or invalid)"})]

    def test_unknown_job_localized(self):
        frames = collect(JobStore(), "missing", locale="pt")

        assert frames[0][0] == "error"
        assert frames[0][1]["error"] == "Job não encontrado (expirado ou inválido)"

    def test_terminal_job_single_frame(self):
        store = JobStore()
        job = store.create("a.pdf")
        store.update(job.id, status="done", progress=100, message="Done", result=b"x")

        frames = collect(store, job.id)

        assert frames == [
            ("progress", {"status": "done", "progress": 100, "message": "Done", "error": None})
        ]

    def test_error_job_carries_error(self):
        store = JobStore()
        job = store.create("a.pdf")
        store.update(job.id, status="error", progress=100, error="No table was found in the PDF")

        (event, data), = collect(store, job.id)

        assert event == "progress"
        assert data["status"] == "error"
        assert data["error"] == "No table was found in the PDF"

    def test_only_changes_are_sent(self):
        store = JobStore()
        job = store.create("a.pdf")
        store.update(job.id, status="processing", progress=10)

        frames = collect(
            store,
            job.id,
            is_disconnected=scripted(
                [
                    lambda: None,
                    lambda: None,
                    lambda: store.update(job.id, progress=50),
                    lambda: None,
                    lambda: store.update(job.id, status="done", progress=100),
                ]
            ),
        )

        assert [data["progress"] for _, data in frames] == [10, 50, 100]
        assert frames[-1][1]["status"] == "done"

    def test_stops_when_client_disconnects(self):
        store = JobStore()
        job = store.create("a.pdf")
        calls = []

        async def is_disconnected():
            calls.append(1)
            return len(calls) > 1

        frames = collect(store, job.id, is_disconnected=is_disconnected)

        assert len(frames) == 1
        # The job itself is untouched
        assert store.get(job.id).status == "queued"

    def test_evicted_mid_stream(self):
        store = JobStore()
        job = store.create("a.pdf")

        frames = collect(
            store,
            job.id,
            is_disconnected=scripted([lambda: None, lambda: store.delete(job.id)]),
        )

        assert [event for event, _ in frames] == ["progress", "error"]
