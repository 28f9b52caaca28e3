from __future__ import annotations

import asyncio
import gc

import pytest

from persistence.write_queue import SerialWriteQueue


def test_jobs_run_one_at_a_time_in_submission_order():
    async def _run():
        q = SerialWriteQueue()
        events: list[str] = []
        running = 0

        def _job(name: str, delay: float):
            async def _inner():
                nonlocal running
                running += 1
                assert running == 1
                events.append(f"start:{name}")
                await asyncio.sleep(delay)
                events.append(f"end:{name}")
                running -= 1

            return _inner

        # later jobs are faster; they must still wait for earlier ones
        await asyncio.gather(
            q.run(_job("a", 0.03)),
            q.run(_job("b", 0.01)),
            q.run(_job("c", 0.0)),
        )
        assert events == ["start:a", "end:a", "start:b", "end:b", "start:c", "end:c"]
        assert q.pending == 0

    asyncio.run(_run())


def test_failed_job_does_not_poison_successors():
    async def _run():
        q = SerialWriteQueue()
        ran: list[str] = []

        async def _fail():
            ran.append("fail")
            raise OSError("disk full")

        async def _ok():
            ran.append("ok")

        results = await asyncio.gather(q.run(_fail), q.run(_ok), return_exceptions=True)
        assert isinstance(results[0], OSError)
        assert results[1] is None
        assert ran == ["fail", "ok"]

    asyncio.run(_run())


def test_cancelled_waiter_does_not_cancel_write():
    async def _run():
        q = SerialWriteQueue()
        finished = asyncio.Event()

        async def _slow():
            await asyncio.sleep(0.02)
            finished.set()

        waiter = asyncio.ensure_future(q.run(_slow))
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        await q.drain()
        assert finished.is_set()

    asyncio.run(_run())


def test_drain_on_idle_queue_returns():
    async def _run():
        q = SerialWriteQueue()
        await q.drain()
        assert q.pending == 0

    asyncio.run(_run())


def test_unawaited_failure_is_not_reported_to_the_loop():
    reported: list[dict] = []

    async def _run():
        asyncio.get_running_loop().set_exception_handler(lambda loop, ctx: reported.append(ctx))
        q = SerialWriteQueue()

        async def _boom():
            raise OSError("disk full")

        q.submit(_boom)  # fire and forget
        await q.drain()

    asyncio.run(_run())
    gc.collect()
    assert reported == []


def test_awaiting_submitter_still_sees_failure():
    async def _run():
        q = SerialWriteQueue()

        async def _boom():
            raise OSError("disk full")

        done = q.submit(_boom)
        await q.drain()
        with pytest.raises(OSError):
            await done

    asyncio.run(_run())
