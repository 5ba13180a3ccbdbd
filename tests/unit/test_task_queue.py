"""
Unit tests for the in-process task queue.
"""

import asyncio

import pytest

from storefront_mail.queue import TaskQueue, current_retry_count
from storefront_mail.types.job import JobFailure, JobOptions

NO_DELAY = JobOptions(max_retries=3, retry_delay_ms=0)


class TestJobOptions:
    """Tests for per-job retry options."""

    def test_defaults(self):
        """Test default retry policy."""
        options = JobOptions()

        assert options.max_retries == 3
        assert options.retry_delay_ms == 10_000
        assert options.retry_delay_seconds == 10.0

    def test_negative_values_rejected(self):
        """Test that negative retries or delays are rejected."""
        with pytest.raises(ValueError):
            JobOptions(max_retries=-1)

        with pytest.raises(ValueError):
            JobOptions(retry_delay_ms=-5)

    def test_zero_concurrency_rejected(self):
        """Test that a queue needs room for at least one job."""
        with pytest.raises(ValueError):
            TaskQueue(max_concurrent=0)


class TestTaskQueue:
    """Tests for job execution, retries and concurrency."""

    @pytest.mark.asyncio
    async def test_resolves_with_return_value(self):
        """Test that a successful body's value is delivered through the future."""
        queue = TaskQueue()

        async def work(a, b):
            return a + b

        result = await queue.submit(work, "add", 2, 3, options=NO_DELAY)

        assert result == 5

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        """Test that a failing body runs max_retries + 1 times then resolves with JobFailure."""
        queue = TaskQueue()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            raise RuntimeError("smtp down")

        result = await queue.submit(work, "always_fails", options=JobOptions(max_retries=2, retry_delay_ms=0))

        assert isinstance(result, JobFailure)
        assert result.failed is True
        assert result.error == "smtp down"
        assert result.retries == 2
        assert calls == 3

        # Nothing is invoked after the terminal result
        await asyncio.sleep(0.05)
        assert calls == 3

    @pytest.mark.asyncio
    async def test_zero_retries(self):
        """Test that max_retries=0 runs the body exactly once."""
        queue = TaskQueue()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            raise ValueError()

        result = await queue.submit(work, "once", options=JobOptions(max_retries=0, retry_delay_ms=0))

        assert calls == 1
        assert result.retries == 0
        assert result.error == "ValueError"

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        """Test that a body succeeding on retry resolves with its value."""
        queue = TaskQueue()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            if calls < 3:
                raise ConnectionError("timeout")
            return "sent"

        result = await queue.submit(work, "flaky", options=NO_DELAY)

        assert result == "sent"
        assert calls == 3

    @pytest.mark.asyncio
    async def test_retry_delay_is_respected(self):
        """Test that a retry is not started before its delay elapses."""
        queue = TaskQueue()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            raise RuntimeError("down")

        future = queue.submit(work, "delayed", options=JobOptions(max_retries=1, retry_delay_ms=200))

        await asyncio.sleep(0.05)
        assert calls == 1
        assert queue.status().scheduled_retries == 1

        result = await future
        assert calls == 2
        assert result.retries == 1

    @pytest.mark.asyncio
    async def test_concurrency_ceiling(self):
        """Test that no more than max_concurrent bodies run at once."""
        queue = TaskQueue(max_concurrent=3)
        running = 0
        peak = 0

        async def work():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        futures = [queue.submit(work, f"job-{i}", options=NO_DELAY) for i in range(10)]
        await asyncio.gather(*futures)

        assert peak == 3

    @pytest.mark.asyncio
    async def test_fifo_order(self):
        """Test that jobs start in submission order."""
        queue = TaskQueue(max_concurrent=1)
        started: list[int] = []

        async def work(index):
            started.append(index)

        futures = [queue.submit(work, "ordered", i, options=NO_DELAY) for i in range(5)]
        await asyncio.gather(*futures)

        assert started == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_retried_job_goes_to_tail(self):
        """Test that a retried job re-enters behind jobs already waiting."""
        queue = TaskQueue(max_concurrent=1)
        order: list[str] = []
        failed_once = False

        async def job_a():
            nonlocal failed_once
            order.append("A")
            if not failed_once:
                failed_once = True
                raise RuntimeError("first attempt")

        async def job_other(label):
            order.append(label)
            await asyncio.sleep(0.01)

        futures = [
            queue.submit(job_a, "A", options=NO_DELAY),
            queue.submit(job_other, "B", "B", options=NO_DELAY),
            queue.submit(job_other, "C", "C", options=NO_DELAY),
        ]
        await asyncio.gather(*futures)

        assert order == ["A", "B", "C", "A"]

    @pytest.mark.asyncio
    async def test_status_snapshot(self):
        """Test queue status while jobs are running and waiting."""
        queue = TaskQueue(max_concurrent=1)
        release = asyncio.Event()

        async def work():
            await release.wait()

        futures = [queue.submit(work, "blocked", options=NO_DELAY) for _ in range(3)]
        await asyncio.sleep(0)

        status = queue.status()
        assert status.active_count == 1
        assert status.queue_length == 2
        assert status.is_processing is True

        release.set()
        await asyncio.gather(*futures)

        status = queue.status()
        assert status.active_count == 0
        assert status.queue_length == 0
        assert status.is_processing is False

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_other_jobs(self):
        """Test that a raising body does not affect the jobs behind it."""
        queue = TaskQueue(max_concurrent=1)

        async def broken():
            raise KeyError("missing")

        async def fine():
            return "ok"

        bad = queue.submit(broken, "broken", options=JobOptions(max_retries=0, retry_delay_ms=0))
        good = queue.submit(fine, "fine", options=NO_DELAY)

        assert isinstance(await bad, JobFailure)
        assert await good == "ok"

    @pytest.mark.asyncio
    async def test_current_retry_count(self):
        """Test that the body sees its own retry count on each invocation."""
        queue = TaskQueue()
        seen: list[int] = []

        async def work():
            seen.append(current_retry_count())
            raise RuntimeError("again")

        await queue.submit(work, "counting", options=JobOptions(max_retries=2, retry_delay_ms=0))

        assert seen == [0, 1, 2]
        assert current_retry_count() == 0


class TestQueueLifecycle:
    """Tests for drain and stop."""

    @pytest.mark.asyncio
    async def test_drain_waits_for_jobs(self):
        """Test that drain returns once every job has settled."""
        queue = TaskQueue()

        async def work():
            await asyncio.sleep(0.01)
            return True

        futures = [queue.submit(work, "short", options=NO_DELAY) for _ in range(5)]

        assert await queue.drain(timeout=1.0) is True
        assert all(future.done() for future in futures)

    @pytest.mark.asyncio
    async def test_drain_timeout(self):
        """Test that drain reports a timeout with jobs still outstanding."""
        queue = TaskQueue()

        async def work():
            await asyncio.sleep(10)

        queue.submit(work, "slow", options=NO_DELAY)

        assert await queue.drain(timeout=0.05) is False
        await queue.stop()

    @pytest.mark.asyncio
    async def test_stop_resolves_outstanding_jobs(self):
        """Test that stop settles running, waiting and retry-scheduled jobs."""
        queue = TaskQueue(max_concurrent=1)

        async def slow():
            await asyncio.sleep(10)

        async def failing():
            raise RuntimeError("down")

        running = queue.submit(slow, "running", options=NO_DELAY)
        waiting = queue.submit(slow, "waiting", options=NO_DELAY)
        await asyncio.sleep(0)

        await queue.stop()

        for future in (running, waiting):
            result = await future
            assert isinstance(result, JobFailure)
            assert result.error == "queue stopped"

        assert queue.is_closed is True
        assert queue.status().queue_length == 0

        retrying_queue = TaskQueue()
        retrying = retrying_queue.submit(failing, "retrying", options=JobOptions(max_retries=3, retry_delay_ms=60_000))
        await asyncio.sleep(0.01)
        assert retrying_queue.status().scheduled_retries == 1

        await retrying_queue.stop()
        result = await retrying
        assert result.error == "queue stopped"
        assert result.retries == 1

    @pytest.mark.asyncio
    async def test_submit_after_stop(self):
        """Test that a stopped queue resolves new submissions immediately."""
        queue = TaskQueue()
        await queue.stop()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1

        future = queue.submit(work, "late", options=NO_DELAY)

        assert future.done()
        result = future.result()
        assert isinstance(result, JobFailure)
        assert result.retries == 0
        assert calls == 0
