"""
Job Queue — outbound asynchronous work items.

Public interface:
  JobName           : the five event names the pipeline emits
  Job               : one submitted work item
  JobQueue          : send() / register() / start() / stop()
  InProcessJobQueue : asyncio workers in this process, bounded retries
  HttpEventBusQueue : POSTs each job to an external event bus
  create_job_queue(): picks a backend from settings

Delivery is at-least-once: a handler may see the same job again after a
failure, so handlers must be idempotent.
"""

import asyncio
import enum
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import httpx
from pydantic import BaseModel, Field

from app.config import Settings, get_settings

logger = logging.getLogger("job_queue")


class JobName(str, enum.Enum):
    smart_reindex = "project.smart.reindex.requested"
    commit_process = "project.commit.process.requested"
    files_reindex = "project.files.reindex.requested"
    pull_request_analysis = "pullrequest.analysis.requested"
    release_analysis = "project.release.analysis.requested"


class Job(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: JobName
    data: Dict[str, Any] = Field(default_factory=dict)
    attempt: int = 1


JobHandler = Callable[[Job], Awaitable[None]]


class JobQueue(ABC):
    def __init__(self):
        self.handlers: Dict[JobName, JobHandler] = {}

    def register(self, name: JobName, handler: JobHandler) -> None:
        self.handlers[name] = handler

    @abstractmethod
    async def send(self, name: JobName, data: Dict[str, Any]) -> Job:
        """Submit a job. Returns once it is accepted, not once it has run."""
        pass

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass


class InProcessJobQueue(JobQueue):
    def __init__(
        self,
        workers: Optional[int] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
    ):
        super().__init__()
        settings = get_settings()
        self.workers = workers if workers is not None else settings.JOB_WORKERS
        self.max_retries = max_retries if max_retries is not None else settings.JOB_MAX_RETRIES
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.JOB_RETRY_BACKOFF_SECONDS
        self._queue: "asyncio.Queue[Job]" = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []
        self._retries: Set[asyncio.Task] = set()

    async def send(self, name: JobName, data: Dict[str, Any]) -> Job:
        job = Job(name=name, data=data)
        await self._queue.put(job)
        logger.info(f"Enqueued {job.name.value} ({job.id})")
        return job

    async def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"job-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info(f"Started {self.workers} job workers")

    async def stop(self) -> None:
        pending = self._tasks + list(self._retries)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks = []
        self._retries.clear()

    async def join(self) -> None:
        """Wait until every submitted job (retries included) has finished."""
        while True:
            await self._queue.join()
            if not self._retries:
                return
            await asyncio.gather(*list(self._retries), return_exceptions=True)

    async def _worker(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._run(job)
            finally:
                self._queue.task_done()

    async def _run(self, job: Job) -> None:
        handler = self.handlers.get(job.name)
        if handler is None:
            logger.warning(f"No handler registered for {job.name.value}, dropping job {job.id}")
            return

        try:
            await handler(job)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if job.attempt > self.max_retries:
                logger.error(f"Job {job.name.value} ({job.id}) failed after {job.attempt} attempts: {e}")
                return
            delay = self.backoff_seconds * job.attempt
            logger.warning(
                f"Job {job.name.value} ({job.id}) failed on attempt {job.attempt}: {e}; retrying in {delay}s"
            )
            retry = asyncio.create_task(self._requeue(job.model_copy(update={"attempt": job.attempt + 1}), delay))
            self._retries.add(retry)
            retry.add_done_callback(self._retries.discard)

    async def _requeue(self, job: Job, delay: float) -> None:
        # Backoff sleeps here, never in a worker
        await asyncio.sleep(delay)
        await self._queue.put(job)


class HttpEventBusQueue(JobQueue):
    """Hands jobs to an external event bus; handlers run wherever the bus delivers them."""

    def __init__(self, url: str, http: Optional[httpx.AsyncClient] = None):
        super().__init__()
        self.url = url
        self.http = http or httpx.AsyncClient(timeout=10.0)

    async def send(self, name: JobName, data: Dict[str, Any]) -> Job:
        job = Job(name=name, data=data)
        resp = await self.http.post(self.url, json={"name": job.name.value, "data": job.data, "id": job.id})
        resp.raise_for_status()
        logger.info(f"Published {job.name.value} ({job.id}) to event bus")
        return job

    async def stop(self) -> None:
        await self.http.aclose()


def create_job_queue(settings: Optional[Settings] = None) -> JobQueue:
    settings = settings or get_settings()
    backend = settings.JOB_QUEUE_BACKEND.lower()

    if backend == "http":
        if not settings.EVENT_BUS_URL:
            raise ValueError("EVENT_BUS_URL must be set when JOB_QUEUE_BACKEND=http")
        return HttpEventBusQueue(settings.EVENT_BUS_URL)
    if backend == "inprocess":
        return InProcessJobQueue()

    raise ValueError(f"Unknown JOB_QUEUE_BACKEND: {settings.JOB_QUEUE_BACKEND}")
