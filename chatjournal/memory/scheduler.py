"""Background runner for checkpoint jobs."""

import asyncio
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from loguru import logger

DEFAULT_MAX_CONCURRENT = 4


class JobState(str, Enum):
    running = "running"
    completed = "completed"
    error = "error"
    cancelled = "cancelled"


@dataclass
class CompactionJob:
    job_id: str
    conversation_id: str
    status: JobState
    started_at: float
    finished_at: float | None = None
    error: str | None = None
    task: asyncio.Task | None = None


class CompactionScheduler:
    """
    Runs checkpoint jobs off the caller's path.

    ``submit`` returns immediately; the job runs as an asyncio task limited by
    a shared semaphore. Failures are logged and never retried. With
    ``single_flight`` enabled, a conversation with a job still in flight
    rejects further submissions until that job finishes.

    Must be used from inside a running event loop.
    """

    def __init__(self, max_concurrent: int = DEFAULT_MAX_CONCURRENT, single_flight: bool = False):
        if max_concurrent <= 0:
            raise ValueError("max_concurrent must be positive")
        self.max_concurrent = max_concurrent
        self.single_flight = single_flight
        self._semaphore: asyncio.Semaphore | None = None
        self._jobs: dict[str, CompactionJob] = {}
        self._closed = False

    def submit(self, conversation_id: str, job: Callable[[], Awaitable[None]]) -> bool:
        """Schedule ``job`` for a conversation. Returns False if it was not scheduled."""
        if self._closed:
            logger.warning(f"Compaction scheduler is shut down; dropping job for {conversation_id}")
            return False
        if self.single_flight and self.pending(conversation_id):
            logger.debug(f"Compaction already in flight for {conversation_id}, skipping")
            return False

        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)

        record = CompactionJob(
            job_id=str(uuid.uuid4())[:8],
            conversation_id=conversation_id,
            status=JobState.running,
            started_at=time.time(),
        )
        self._jobs[record.job_id] = record

        task = asyncio.create_task(self._run(record, job))
        record.task = task
        task.add_done_callback(lambda t: self._on_done(record, t))

        logger.debug(f"Compaction job [{record.job_id}] scheduled for {conversation_id}")
        return True

    def pending(self, conversation_id: str | None = None) -> int:
        """Number of jobs still in flight, optionally for one conversation."""
        return sum(
            1 for j in self._jobs.values()
            if j.status == JobState.running
            and (conversation_id is None or j.conversation_id == conversation_id)
        )

    async def drain(self) -> None:
        """Wait until every job submitted so far has finished."""
        while True:
            tasks = [j.task for j in self._jobs.values() if j.task and not j.task.done()]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop accepting jobs and cancel the ones still running."""
        self._closed = True
        tasks = [j.task for j in self._jobs.values() if j.task and not j.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} compaction job(s)")

    async def _run(self, record: CompactionJob, job: Callable[[], Awaitable[None]]) -> None:
        async with self._semaphore:
            await job()

    def _on_done(self, record: CompactionJob, task: asyncio.Task) -> None:
        record.finished_at = time.time()
        if task.cancelled():
            record.status = JobState.cancelled
        elif task.exception() is not None:
            exc = task.exception()
            record.status = JobState.error
            record.error = str(exc)
            logger.opt(exception=exc).error(
                f"Compaction job [{record.job_id}] failed for {record.conversation_id}: {exc}"
            )
        else:
            record.status = JobState.completed
            duration = record.finished_at - record.started_at
            logger.debug(f"Compaction job [{record.job_id}] completed in {duration:.2f}s")
        self._jobs.pop(record.job_id, None)
