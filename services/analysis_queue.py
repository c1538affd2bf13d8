"""In-process queue for background artwork analyses.

Each upload or re-analysis becomes an `AnalysisJob` on an `asyncio.Queue`
drained by a fixed pool of worker tasks, which bounds how many model calls
run at once. The queue also keeps the set of artwork ids with a queued or
running job so that a second analysis of the same artwork is refused until
the first one finishes.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Set

from models.errors import AnalysisInFlightError

LOGGER = logging.getLogger(__name__)
ANALYSIS_WORKERS = int(os.getenv("ANALYSIS_WORKERS", "2"))

JobHandler = Callable[["AnalysisJob"], Awaitable[bool]]


@dataclass
class AnalysisJob:
    """One pending analysis of one artwork."""

    artwork_id: int
    owner_id: str
    image_b64: str
    reanalysis: bool = False
    existing_description: Optional[str] = None
    enqueued_at: float = field(default_factory=time.time)


class AnalysisQueue:
    """Fixed worker pool with a per-artwork single-flight guard.

    Usage:
        queue = AnalysisQueue(workers=2)
        await queue.start(pipeline.run_job)
        queue.submit(job)
        await queue.stop()

    The handler returns True for a successful analysis and False for a
    recorded failure; exceptions escaping it are logged and counted as
    failures.
    """

    def __init__(self, workers: int = ANALYSIS_WORKERS) -> None:
        self.worker_count = max(1, int(workers))
        self._queue: Optional[asyncio.Queue[AnalysisJob]] = None
        self._workers: List[asyncio.Task] = []
        self._handler: Optional[JobHandler] = None
        self._in_flight: Set[int] = set()
        self._completed = 0
        self._failed = 0

    @property
    def running(self) -> bool:
        return bool(self._workers)

    async def start(self, handler: JobHandler) -> None:
        """Create the queue and spawn worker tasks on the running loop."""
        if self._workers:
            return
        self._handler = handler
        self._queue = asyncio.Queue()
        for index in range(self.worker_count):
            self._workers.append(asyncio.create_task(self._worker_loop(index + 1)))
        LOGGER.info("Analysis queue started with %d workers", self.worker_count)

    async def stop(self) -> None:
        """Cancel the workers. Jobs still queued are dropped."""
        for task in self._workers:
            task.cancel()
        for task in self._workers:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._workers.clear()
        dropped = self._queue.qsize() if self._queue is not None else 0
        if dropped:
            LOGGER.warning("Analysis queue stopped with %d jobs still queued", dropped)
        self._in_flight.clear()
        self._queue = None

    async def join(self) -> None:
        """Wait until every submitted job has been processed."""
        if self._queue is not None:
            await self._queue.join()

    def is_in_flight(self, artwork_id: int) -> bool:
        return artwork_id in self._in_flight

    def claim(self, artwork_id: int) -> None:
        """Reserve `artwork_id` for a new analysis.

        Raises:
            AnalysisInFlightError: If an analysis for the id is queued or running.
        """
        if artwork_id in self._in_flight:
            raise AnalysisInFlightError(artwork_id)
        self._in_flight.add(artwork_id)

    def release(self, artwork_id: int) -> None:
        self._in_flight.discard(artwork_id)

    def enqueue(self, job: AnalysisJob) -> None:
        """Queue a job whose artwork id has already been claimed."""
        if self._queue is None:
            raise RuntimeError("Analysis queue is not running. Call start() first.")
        if job.artwork_id not in self._in_flight:
            raise RuntimeError(f"Artwork {job.artwork_id} was not claimed before enqueueing.")
        self._queue.put_nowait(job)

    def submit(self, job: AnalysisJob) -> None:
        """Claim the job's artwork id and queue it."""
        self.claim(job.artwork_id)
        try:
            self.enqueue(job)
        except Exception:
            self.release(job.artwork_id)
            raise

    def stats(self) -> Dict[str, int]:
        return {
            "workers": len(self._workers),
            "queued": self._queue.qsize() if self._queue is not None else 0,
            "in_flight": len(self._in_flight),
            "completed": self._completed,
            "failed": self._failed,
        }

    async def _worker_loop(self, index: int) -> None:
        while True:
            try:
                job = await self._queue.get()
            except asyncio.CancelledError:
                break
            waited = time.time() - job.enqueued_at
            LOGGER.debug("Worker %d picked artwork %d after %.3fs", index, job.artwork_id, waited)
            try:
                ok = await self._handler(job)
            except asyncio.CancelledError:
                self.release(job.artwork_id)
                self._queue.task_done()
                raise
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Analysis job for artwork %d crashed", job.artwork_id)
                ok = False
            if ok:
                self._completed += 1
            else:
                self._failed += 1
            self.release(job.artwork_id)
            self._queue.task_done()
