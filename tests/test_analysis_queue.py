import asyncio

import pytest

from models.errors import AnalysisInFlightError
from services.analysis_queue import AnalysisJob, AnalysisQueue


def _job(artwork_id):
    return AnalysisJob(artwork_id=artwork_id, owner_id="owner-1", image_b64="eA==")


def test_submit_before_start_fails_and_releases_claim():
    queue = AnalysisQueue(workers=1)
    with pytest.raises(RuntimeError):
        queue.submit(_job(1))
    assert not queue.is_in_flight(1)


def test_same_artwork_cannot_be_claimed_twice():
    queue = AnalysisQueue(workers=1)
    queue.claim(7)
    with pytest.raises(AnalysisInFlightError) as info:
        queue.claim(7)
    assert info.value.artwork_id == 7
    queue.release(7)
    queue.claim(7)


def test_enqueue_requires_a_claim():
    async def scenario():
        queue = AnalysisQueue(workers=1)
        await queue.start(_noop)
        try:
            with pytest.raises(RuntimeError):
                queue.enqueue(_job(3))
        finally:
            await queue.stop()

    asyncio.run(scenario())


async def _noop(job):
    return True


def test_workers_bound_concurrency_and_count_outcomes():
    running = 0
    peak = 0

    async def handler(job):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        if job.artwork_id == 3:
            raise RuntimeError("handler crashed")
        return job.artwork_id != 2

    async def scenario():
        queue = AnalysisQueue(workers=2)
        await queue.start(handler)
        try:
            for artwork_id in range(1, 6):
                queue.submit(_job(artwork_id))
            await queue.join()
            return queue.stats()
        finally:
            await queue.stop()

    stats = asyncio.run(scenario())

    assert peak == 2
    assert stats == {"workers": 2, "queued": 0, "in_flight": 0, "completed": 3, "failed": 2}
