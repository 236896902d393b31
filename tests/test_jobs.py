import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from zetsubou import (
    JobStatus,
    ZetsubouJobCancelledError,
    ZetsubouJobFailedError,
    ZetsubouNotFoundError,
)
from zetsubou.exceptions import ZetsubouTimeoutError

from .test_utils import RecordingHandler, fake_clock, json_response, make_client


def job_response(status, **fields):
    return json_response(200, {"job": {"id": "j1", "status": status, **fields}})


class TestWaitForCompletion:
    @pytest.mark.asyncio
    async def test_returns_completed_job(self):
        handler = RecordingHandler(
            [
                job_response("pending"),
                job_response("running", progress=50),
                job_response("completed", progress=100, outputs=["out.png"]),
            ]
        )

        with fake_clock() as clock:
            async with make_client(handler) as client:
                job = await client.jobs.wait_for_completion("j1")

        assert job.status is JobStatus.COMPLETED
        assert job.outputs == ["out.png"]
        assert handler.call_count == 3
        assert clock.sleeps == [5, 5]
        assert all(r.url.path == "/api/v2/jobs/j1" for r in handler.requests)

    @pytest.mark.asyncio
    async def test_failed_job_raises_with_error(self):
        handler = RecordingHandler(job_response("failed", error="X"))

        with fake_clock() as clock:
            async with make_client(handler) as client:
                with pytest.raises(ZetsubouJobFailedError) as exc_info:
                    await client.jobs.wait_for_completion("j1")

        assert "X" in str(exc_info.value)
        assert exc_info.value.job_id == "j1"
        assert handler.call_count == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_cancelled_job_raises(self):
        handler = RecordingHandler([job_response("running"), job_response("cancelled")])

        with fake_clock():
            async with make_client(handler) as client:
                with pytest.raises(ZetsubouJobCancelledError) as exc_info:
                    await client.jobs.wait_for_completion("j1")

        assert "was cancelled" in str(exc_info.value)
        assert handler.call_count == 2

    @pytest.mark.asyncio
    async def test_times_out_after_deadline(self):
        handler = RecordingHandler(job_response("pending"))

        with fake_clock() as clock:
            async with make_client(handler) as client:
                with pytest.raises(ZetsubouTimeoutError) as exc_info:
                    await client.jobs.wait_for_completion("j1", timeout=12, poll_interval=5)

        assert handler.call_count == 3
        assert clock.sleeps == [5, 5, 5]
        assert exc_info.value.job_id == "j1"
        assert exc_info.value.elapsed == 15
        assert "j1" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self):
        handler = RecordingHandler(json_response(404, {"message": "Job not found"}))

        with fake_clock():
            async with make_client(handler) as client:
                with pytest.raises(ZetsubouNotFoundError):
                    await client.jobs.wait_for_completion("missing")

        assert handler.call_count == 1

    @pytest.mark.asyncio
    async def test_transient_fetch_error_is_retried_by_pipeline(self):
        handler = RecordingHandler(
            [json_response(503), job_response("pending"), job_response("completed")]
        )

        with fake_clock() as clock:
            async with make_client(handler) as client:
                job = await client.jobs.wait_for_completion("j1")

        assert job.status is JobStatus.COMPLETED
        assert handler.call_count == 3
        assert clock.sleeps == [2, 5]

    @pytest.mark.asyncio
    async def test_cancel_event_set_before_start(self):
        handler = RecordingHandler(job_response("pending"))
        cancel_event = asyncio.Event()
        cancel_event.set()

        with fake_clock():
            async with make_client(handler) as client:
                with pytest.raises(asyncio.CancelledError):
                    await client.jobs.wait_for_completion("j1", cancel_event=cancel_event)

        assert handler.call_count == 0

    @pytest.mark.asyncio
    async def test_cancel_event_stops_polling(self):
        cancel_event = asyncio.Event()

        def respond(request):
            if len(handler.requests) == 2:
                cancel_event.set()
            return job_response("running")

        handler = RecordingHandler(respond)

        with fake_clock() as clock:
            async with make_client(handler) as client:
                with pytest.raises(asyncio.CancelledError):
                    await client.jobs.wait_for_completion("j1", cancel_event=cancel_event)

        assert handler.call_count == 2
        assert clock.sleeps == [5]

    @pytest.mark.asyncio
    async def test_task_cancellation_stops_polling(self):
        fetched = asyncio.Event()

        def respond(request):
            fetched.set()
            return job_response("running")

        handler = RecordingHandler(respond)

        async with make_client(handler) as client:
            task = asyncio.create_task(client.jobs.wait_for_completion("j1", poll_interval=30))
            await asyncio.wait_for(fetched.wait(), timeout=5)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert handler.call_count == 1


class TestJobsService:
    @pytest.mark.asyncio
    async def test_list_passes_filters(self):
        handler = RecordingHandler(
            json_response(200, {"jobs": [{"id": "j1", "status": "running", "tool_id": "upscaler"}]})
        )

        async with make_client(handler) as client:
            jobs = await client.jobs.list(status=JobStatus.RUNNING, limit=10)

        assert dict(handler.requests[0].url.params) == {"status": "running", "limit": "10"}
        assert jobs[0].tool_id == "upscaler"
        assert jobs[0].status is JobStatus.RUNNING

    @pytest.mark.asyncio
    async def test_get_parses_timestamps(self):
        handler = RecordingHandler(
            job_response("completed", created_at="2025-01-02T03:04:05Z", priority="high")
        )

        async with make_client(handler) as client:
            job = await client.jobs.get("j1")

        assert job.created_at == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert job.extra == {"priority": "high"}
        assert job.is_terminal

    @pytest.mark.asyncio
    async def test_cancel_retry_and_delete(self):
        def respond(request):
            if request.url.path.endswith("/retry"):
                return job_response("pending")
            return json_response(200, {"success": True})

        handler = RecordingHandler(respond)

        async with make_client(handler) as client:
            assert await client.jobs.cancel("j1") is True
            assert (await client.jobs.retry("j1")).status is JobStatus.PENDING
            assert await client.jobs.delete("j1") is True

        assert [(r.method, r.url.path) for r in handler.requests] == [
            ("POST", "/api/v2/jobs/j1/cancel"),
            ("POST", "/api/v2/jobs/j1/retry"),
            ("DELETE", "/api/v2/jobs/j1"),
        ]

    @pytest.mark.asyncio
    async def test_download_results_to_file(self, tmp_path):
        handler = RecordingHandler(httpx.Response(200, content=b"PK\x03\x04zip"))
        target = tmp_path / "results.zip"

        async with make_client(handler) as client:
            written = await client.jobs.download_results_to_file("j1", target)

        assert written == target
        assert target.read_bytes() == b"PK\x03\x04zip"
        assert handler.requests[0].url.path == "/api/v2/jobs/j1/download"

    @pytest.mark.asyncio
    async def test_get_progress(self):
        handler = RecordingHandler(job_response("running", progress=42.5))

        async with make_client(handler) as client:
            progress = await client.jobs.get_progress("j1")

        assert progress["status"] == "running"
        assert progress["progress"] == 42.5
        assert progress["error"] is None
