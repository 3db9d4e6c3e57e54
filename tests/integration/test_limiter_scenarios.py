"""Integration tests for limiters with realistic load scenarios."""

import asyncio

import pytest

from async_pool import AbortError, Pool, p_limit


@pytest.mark.integration
@pytest.mark.asyncio
async def test_concurrency_bounded_by_pool() -> None:
    """Test no more functions run at once than the pool has resources."""
    limiter = p_limit(3)
    running: set[int] = set()
    max_running = 0

    async def work(resource: object, i: int) -> int:
        nonlocal max_running
        running.add(i)
        max_running = max(max_running, len(running))
        await asyncio.sleep(0.005)
        running.discard(i)
        return i

    results = await asyncio.gather(*[limiter(work, i) for i in range(20)])

    assert results == list(range(20))
    assert max_running == 3
    assert limiter.pool.total_size == 3


@pytest.mark.integration
@pytest.mark.asyncio
async def test_min_duration_timeline() -> None:
    """Test resources are reused no sooner than min_duration."""
    limiter = Pool(3).limiter(min_duration=0.1)
    delays = [0.05, 0.2, 0.3, 0.4, 0.5]
    started: list[float] = []
    loop = asyncio.get_running_loop()
    begin = loop.time()

    async def work(resource: object, delay: float) -> None:
        started.append(loop.time() - begin)
        await asyncio.sleep(delay)

    tasks = [asyncio.create_task(limiter(work, d)) for d in delays]

    await asyncio.sleep(0.03)
    assert len(started) == 3

    # The first call finished at ~0.05 but holds its resource until ~0.1
    await asyncio.sleep(0.05)
    assert len(started) == 3

    await asyncio.sleep(0.07)
    assert len(started) == 4

    # The second call releases at ~0.2
    await asyncio.sleep(0.1)
    assert len(started) == 5

    await asyncio.gather(*tasks)
    assert started[3] >= 0.09
    assert started[4] >= 0.19


@pytest.mark.integration
@pytest.mark.asyncio
async def test_result_visible_before_release() -> None:
    """Test callers see results at function speed, not throttle speed."""
    pool: Pool[object] = Pool(1)
    limiter = pool.limiter(min_duration=0.2)
    loop = asyncio.get_running_loop()

    async def quick(resource: object) -> str:
        await asyncio.sleep(0.02)
        return "ok"

    start = loop.time()
    first = await limiter(quick)
    first_latency = loop.time() - start

    second = await limiter(quick)
    second_latency = loop.time() - start

    assert first == second == "ok"
    assert first_latency < 0.15
    # The second call had to wait for the throttled release
    assert second_latency >= 0.19


@pytest.mark.integration
@pytest.mark.asyncio
async def test_abort_rejects_all_pending() -> None:
    """Test abort revokes every waiting call while running ones finish."""
    pool: Pool[object] = Pool(2)
    limiter = pool.limiter()
    executed: list[int] = []
    release_running = asyncio.Event()

    async def work(resource: object, i: int) -> int:
        executed.append(i)
        await release_running.wait()
        return i

    running = [asyncio.create_task(limiter(work, i)) for i in range(2)]
    pending = [asyncio.create_task(limiter(work, i)) for i in range(2, 7)]
    await asyncio.sleep(0.01)
    assert limiter.pending_count == 5

    limiter.abort(RuntimeError("cancelled by operator"))
    outcomes = await asyncio.gather(*pending, return_exceptions=True)

    assert all(isinstance(o, RuntimeError) for o in outcomes)
    assert sorted(executed) == [0, 1]

    release_running.set()
    assert await asyncio.gather(*running) == [0, 1]
    assert pool.available_size == 2

    # The limiter keeps working after an abort
    assert await limiter(work, 9) == 9


@pytest.mark.integration
@pytest.mark.asyncio
async def test_failures_do_not_leak_resources() -> None:
    """Test failing calls return their resources to the pool."""
    pool: Pool[object] = Pool(2)
    limiter = pool.limiter(min_duration=0.05)

    async def flaky(resource: object, i: int) -> int:
        await asyncio.sleep(0.001)
        if i % 2:
            raise ValueError(f"odd input {i}")
        return i

    outcomes = await asyncio.gather(
        *[limiter(flaky, i) for i in range(10)], return_exceptions=True
    )

    assert [o for o in outcomes if isinstance(o, int)] == [0, 2, 4, 6, 8]
    assert sum(isinstance(o, ValueError) for o in outcomes) == 5
    assert not any(isinstance(o, AbortError) for o in outcomes)

    await asyncio.sleep(0.1)
    assert pool.available_size == 2
    assert pool.in_use_size == 0
