import asyncio

import pytest

from agent_browser_api.request_queue import RequestQueue


@pytest.mark.asyncio
async def test_operations_complete_in_arrival_order():
    queue = RequestQueue()
    finished = []

    async def slow():
        await asyncio.sleep(0.05)
        finished.append("slow")
        return "A"

    async def fast():
        finished.append("fast")
        return "B"

    first = queue.enqueue(slow)
    second = queue.enqueue(fast)

    assert await asyncio.gather(first, second) == ["A", "B"]
    assert finished == ["slow", "fast"]
    await queue.close()


@pytest.mark.asyncio
async def test_only_one_operation_in_flight():
    queue = RequestQueue()
    running = 0
    peak = 0

    async def operation():
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    await asyncio.gather(*(queue.enqueue(operation) for _ in range(5)))
    assert peak == 1
    await queue.close()


@pytest.mark.asyncio
async def test_failure_does_not_stop_the_queue():
    queue = RequestQueue()

    async def broken():
        raise RuntimeError("browser crashed")

    async def healthy():
        return "still running"

    failed = queue.enqueue(broken)
    later = queue.enqueue(healthy)

    with pytest.raises(RuntimeError, match="browser crashed"):
        await failed
    assert await later == "still running"
    await queue.close()


@pytest.mark.asyncio
async def test_length_counts_waiting_operations():
    queue = RequestQueue()
    gate = asyncio.Event()

    async def blocked():
        await gate.wait()

    async def noop():
        return None

    first = queue.enqueue(blocked)
    queue.enqueue(noop)
    queue.enqueue(noop)
    await asyncio.sleep(0)

    assert queue.busy
    assert len(queue) == 2

    gate.set()
    await first
    await asyncio.sleep(0.01)
    assert len(queue) == 0
    assert not queue.busy
    await queue.close()


@pytest.mark.asyncio
async def test_cancelled_request_is_skipped():
    queue = RequestQueue()
    gate = asyncio.Event()
    ran = []

    async def blocked():
        await gate.wait()

    async def record():
        ran.append(True)

    first = queue.enqueue(blocked)
    skipped = queue.enqueue(record)
    skipped.cancel()
    gate.set()
    await first
    await queue.enqueue(record)

    assert ran == [True]
    await queue.close()


@pytest.mark.asyncio
async def test_close_fails_pending_operations():
    queue = RequestQueue()
    gate = asyncio.Event()

    async def blocked():
        await gate.wait()

    async def noop():
        return None

    running = queue.enqueue(blocked)
    pending = queue.enqueue(noop)
    await asyncio.sleep(0)

    await queue.close()

    assert running.cancelled()
    with pytest.raises(RuntimeError, match="Request queue closed"):
        await pending
