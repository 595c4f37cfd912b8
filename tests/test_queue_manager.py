import asyncio

import pytest

from core.queue_manager import ToolLimiter


async def test_limits_concurrency():
    limiter = ToolLimiter(2)
    running = 0
    peak = 0

    async def job():
        nonlocal running, peak
        async with limiter.slot("job"):
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

    await asyncio.gather(*(job() for _ in range(6)))

    assert peak == 2
    assert limiter.active == 0


async def test_saturation_and_release():
    limiter = ToolLimiter(1)
    assert not limiter.is_saturated()
    async with limiter.slot():
        assert limiter.is_saturated()
    assert not limiter.is_saturated()


async def test_slot_released_on_error():
    limiter = ToolLimiter(1)
    with pytest.raises(RuntimeError):
        async with limiter.slot():
            raise RuntimeError("tool crashed")
    assert limiter.active == 0
    assert not limiter.is_saturated()


def test_rejects_zero_slots():
    with pytest.raises(ValueError):
        ToolLimiter(0)


async def test_waiting_counts_queued_callers():
    limiter = ToolLimiter(1)
    release = asyncio.Event()

    async def holder():
        async with limiter.slot("holder"):
            await release.wait()

    async def queued():
        async with limiter.slot("queued"):
            pass

    first = asyncio.create_task(holder())
    await asyncio.sleep(0)
    others = [asyncio.create_task(queued()) for _ in range(2)]
    await asyncio.sleep(0)

    assert limiter.active == 1
    assert limiter.waiting == 2

    release.set()
    await asyncio.gather(first, *others)
    assert limiter.waiting == 0
    assert limiter.active == 0
