"""Job management, including the completion poller."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from zetsubou.exceptions import (
    ZetsubouJobCancelledError,
    ZetsubouJobFailedError,
    ZetsubouTimeoutError,
)
from zetsubou.models import Job, JobStatus
from zetsubou.services.base import BaseService

logger = logging.getLogger(__name__)

DEFAULT_WAIT_TIMEOUT = 3600.0

DEFAULT_POLL_INTERVAL = 5.0


class JobsService(BaseService):
    async def list(
        self,
        status: Union[JobStatus, str, None] = None,
        tool_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Job]:
        params = {
            "status": JobStatus(status).value if status is not None else None,
            "tool_id": tool_id,
            "limit": limit,
            "offset": offset,
        }
        data = await self.client.get("/api/v2/jobs", params=params)
        return Job.from_list(data.get("jobs"))

    async def get(self, job_id: str) -> Job:
        data = await self.client.get(f"/api/v2/jobs/{job_id}")
        return Job.from_dict(data["job"])

    async def wait_for_completion(
        self,
        job_id: str,
        timeout: float = DEFAULT_WAIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Job:
        """Poll a job until it reaches a terminal status.

        The job is fetched, then the poller sleeps ``poll_interval`` seconds,
        for as long as less than ``timeout`` seconds have passed since the
        call started. A job seen in a terminal status is never fetched again.

        Cancelling the awaiting task stops the poller at its next await. When
        ``cancel_event`` is given and set, the poller stops before its next
        fetch or sleep without sending another request.

        Args:
            job_id (str): The job to wait for.
            timeout (float, optional): Seconds to wait in total. Defaults to one hour.
            poll_interval (float, optional): Seconds between fetches. Defaults to 5.
            cancel_event (asyncio.Event, optional): Caller-controlled stop signal.

        Returns:
            Job: The completed job.

        Raises:
            ZetsubouJobFailedError: The job reported ``failed``.
            ZetsubouJobCancelledError: The job reported ``cancelled``.
            ZetsubouTimeoutError: No terminal status was seen within ``timeout``.
            asyncio.CancelledError: The wait was cancelled.
        """
        started = time.monotonic()
        while time.monotonic() - started < timeout:
            self._raise_if_cancelled(job_id, cancel_event)
            job = await self.get(job_id)
            if job.status is JobStatus.COMPLETED:
                logger.info("Job %s completed", job_id)
                return job
            if job.status is JobStatus.FAILED:
                logger.warning("Job %s failed: %s", job_id, job.error)
                raise ZetsubouJobFailedError(f"Job {job_id} failed: {job.error}", job_id)
            if job.status is JobStatus.CANCELLED:
                logger.warning("Job %s was cancelled", job_id)
                raise ZetsubouJobCancelledError(f"Job {job_id} was cancelled", job_id)
            logger.debug("Job %s is %s (%s%%)", job_id, job.status.value, job.progress)
            self._raise_if_cancelled(job_id, cancel_event)
            await asyncio.sleep(poll_interval)
        elapsed = time.monotonic() - started
        raise ZetsubouTimeoutError(
            f"Job {job_id} timed out after {elapsed:.1f}s", job_id, elapsed
        )

    @staticmethod
    def _raise_if_cancelled(job_id: str, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Stopped waiting for job %s", job_id)
            raise asyncio.CancelledError(f"Stopped waiting for job {job_id}")

    async def cancel(self, job_id: str) -> bool:
        data = await self.client.post(f"/api/v2/jobs/{job_id}/cancel")
        return bool(data.get("success"))

    async def retry(self, job_id: str) -> Job:
        data = await self.client.post(f"/api/v2/jobs/{job_id}/retry")
        return Job.from_dict(data["job"])

    async def delete(self, job_id: str) -> bool:
        data = await self.client.delete(f"/api/v2/jobs/{job_id}")
        return bool(data.get("success"))

    async def download_results(self, job_id: str) -> bytes:
        return await self.client.get(f"/api/v2/jobs/{job_id}/download", response_type="bytes")

    async def download_results_to_file(
        self, job_id: str, file_path: Union[str, "os.PathLike[str]"]
    ) -> Path:
        """Download job results and write them to ``file_path``. Returns the path written."""
        content = await self.download_results(job_id)
        path = Path(file_path)
        path.write_bytes(content)
        logger.info("Saved results of job %s to %s (%d bytes)", job_id, path, len(content))
        return path

    async def get_progress(self, job_id: str) -> Dict[str, Any]:
        job = await self.get(job_id)
        return {
            "status": job.status.value,
            "progress": job.progress,
            "error": job.error,
            "created_at": job.created_at,
            "updated_at": job.updated_at,
            "completed_at": job.completed_at,
        }
