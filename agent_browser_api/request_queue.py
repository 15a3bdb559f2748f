"""
Request Queue

The browser tool cannot safely interleave two logical operations: sessions
share one browser process and its ambient state. The RequestQueue serializes
all browser work behind a single worker task.

Semantics:
----------
- ``enqueue()`` never blocks; it returns a future right away
- Operations run one at a time, strictly in arrival order
- The future resolves with the operation's result or raises its exception
- A caller that stops waiting (cancels its future) has its operation skipped
  if it has not started yet; a running operation is left to finish

The worker task is created on first use so the queue can be constructed
outside an event loop (e.g. while building the FastAPI app).
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")

Operation = Callable[[], Awaitable[Any]]


class RequestQueue:
    def __init__(self) -> None:
        self._pending: asyncio.Queue[tuple[Operation, asyncio.Future]] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._busy = False

    def __len__(self) -> int:
        """Operations waiting to start; the running one is not counted."""
        return self._pending.qsize()

    @property
    def busy(self) -> bool:
        return self._busy

    def enqueue(self, operation: Callable[[], Awaitable[R]]) -> "asyncio.Future[R]":
        """
        Schedule ``operation`` behind everything already queued.

        Args:
            operation: Zero-argument coroutine function

        Returns:
            Future resolved with the operation's outcome
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[R] = loop.create_future()
        self._pending.put_nowait((operation, future))
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run(), name="request-queue-worker")
        logger.debug("Enqueued operation; %d waiting", len(self))
        return future

    async def _run(self) -> None:
        while True:
            operation, future = await self._pending.get()
            try:
                if future.cancelled():
                    continue
                self._busy = True
                try:
                    result = await operation()
                except asyncio.CancelledError:
                    future.cancel()
                    raise
                except Exception as e:
                    if not future.done():
                        future.set_exception(e)
                else:
                    if not future.done():
                        future.set_result(result)
            finally:
                self._busy = False
                self._pending.task_done()

    async def close(self) -> None:
        """Stop the worker and fail every operation that has not started."""
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        while not self._pending.empty():
            _, future = self._pending.get_nowait()
            if not future.done():
                future.set_exception(RuntimeError("Request queue closed"))
