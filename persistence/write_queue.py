from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

WriteJob = Callable[[], Awaitable[None]]


class SerialWriteQueue:
    """
    FIFO queue of write jobs drained by a single worker task.

    - Job k finishes before job k+1 starts, in submission order.
    - A failed job reports its exception to its own submitter only; later jobs still run.
    - A submitter that stops waiting does not cancel its job.

    Must be used from one event loop. The worker is started on demand and
    exits when the queue is empty.
    """

    def __init__(self, name: str = "writes") -> None:
        self._name = name
        self._pending: deque[tuple[WriteJob, asyncio.Future[None]]] = deque()
        self._worker: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, job: WriteJob) -> asyncio.Future[None]:
        loop = asyncio.get_running_loop()
        done: asyncio.Future[None] = loop.create_future()
        self._pending.append((job, done))
        if self._worker is None:
            self._worker = loop.create_task(self._drain(), name=f"{self._name}-worker")
        return done

    async def run(self, job: WriteJob) -> None:
        """Submit `job` and wait for it; the job keeps running if the caller is cancelled."""
        await asyncio.shield(self.submit(job))

    async def drain(self) -> None:
        """Wait until every job submitted so far has finished."""
        if not self._pending and self._worker is None:
            return
        await asyncio.shield(self.submit(_noop))

    async def _drain(self) -> None:
        try:
            while self._pending:
                job, done = self._pending.popleft()
                try:
                    await job()
                except Exception as exc:
                    logger.debug("%s: job failed: %r", self._name, exc)
                    if not done.done():
                        done.set_exception(exc)
                        # Submitters that never await must not trigger the
                        # loop's "exception was never retrieved" report.
                        done.exception()
                else:
                    if not done.done():
                        done.set_result(None)
        finally:
            self._worker = None


async def _noop() -> None:
    return None
