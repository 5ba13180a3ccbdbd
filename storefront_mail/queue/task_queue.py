"""
In-process background task queue.

Jobs run on the event loop under a fixed concurrency ceiling. A job whose body
raises is re-enqueued at the tail after its retry delay until it runs out of
retries. Every submission gets a future that settles exactly once and is
never set to an exception: terminal failure is reported as a ``JobFailure``
value.
"""

import asyncio
import logging
import time
from collections import deque
from contextvars import ContextVar
from typing import Any

from storefront_mail.constants import DEFAULT_MAX_CONCURRENT, SPAN_EXECUTE_JOB, JobOutcome
from storefront_mail.observability.logging import bind_context
from storefront_mail.observability.metrics import MetricsCollector, get_metrics
from storefront_mail.observability.tracing import get_tracer
from storefront_mail.types.job import JobFailure, JobOptions, JobWork, QueuedJob, QueueStatus

logger = logging.getLogger(__name__)

# Job whose body is executing in the current task
_current_job: ContextVar[QueuedJob | None] = ContextVar("current_job", default=None)


def current_retry_count() -> int:
    """
    Retry count of the job running in the current task.

    Returns 0 outside of a job body, so collaborators can call it
    unconditionally.
    """
    job = _current_job.get()
    return job.retries if job is not None else 0


class TaskQueue:
    """
    FIFO job queue with bounded concurrency and fixed-delay retries.

    Features:
    - At most ``max_concurrent`` job bodies in flight
    - Failed jobs re-enter at the tail after ``retry_delay_ms``
    - Result futures never carry exceptions
    - ``drain()`` / ``stop()`` for lifecycle owned by the process entry point
    """

    def __init__(
        self,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        default_options: JobOptions | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the queue.

        Args:
            max_concurrent: Maximum number of job bodies executing at once.
            default_options: Retry policy for submissions without options.
            metrics: Metrics collector. Defaults to the process-wide one.
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")

        self.max_concurrent = max_concurrent
        self.default_options = default_options or JobOptions()

        self._pending: deque[QueuedJob] = deque()
        self._active = 0
        self._outstanding: dict[str, QueuedJob] = {}
        self._running: set[asyncio.Task] = set()
        self._retry_timers: set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False
        self._metrics = metrics or get_metrics()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def submit(
        self,
        work: JobWork,
        name: str,
        *args: Any,
        options: JobOptions | None = None,
    ) -> asyncio.Future:
        """
        Enqueue a job.

        Args:
            work: Coroutine function executed as the job body.
            name: Human-readable job name for logs and metrics.
            *args: Positional arguments passed to ``work``.
            options: Retry policy. Defaults to the queue's default options.

        Returns:
            A future resolved with the body's return value, or with a
            ``JobFailure`` once retries are exhausted.
        """
        loop = asyncio.get_running_loop()
        opts = options or self.default_options

        job = QueuedJob(
            work=work,
            name=name,
            args=args,
            result=loop.create_future(),
            max_retries=opts.max_retries,
            retry_delay_ms=opts.retry_delay_ms,
        )

        if self._closed:
            logger.warning(
                "Job submitted to a stopped queue",
                extra={"job_id": job.id, "job_name": name},
            )
            job.result.set_result(JobFailure(error="queue stopped", retries=0))
            return job.result

        self._pending.append(job)
        self._outstanding[job.id] = job
        self._idle.clear()

        logger.info(
            "Job queued",
            extra={
                "job_id": job.id,
                "job_name": name,
                "queue_length": len(self._pending),
            },
        )

        self._schedule()
        return job.result

    def status(self) -> QueueStatus:
        """Snapshot of the queue. No side effects."""
        return QueueStatus(
            queue_length=len(self._pending),
            active_count=self._active,
            is_processing=self._active > 0 or bool(self._pending),
            scheduled_retries=len(self._retry_timers),
        )

    async def drain(self, timeout: float | None = None) -> bool:
        """
        Wait until every submitted job has settled.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Returns:
            True if the queue drained, False on timeout.
        """
        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Queue drain timed out",
                extra={"outstanding": len(self._outstanding), "timeout": timeout},
            )
            return False
        return True

    async def stop(self) -> None:
        """
        Stop the queue.

        Cancels retry timers and running bodies, and resolves every unsettled
        job with a ``JobFailure``. Later submissions resolve immediately with
        a ``JobFailure``.
        """
        self._closed = True

        tasks = [*self._retry_timers, *self._running]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        for job in list(self._outstanding.values()):
            self._resolve(job, JobFailure(error="queue stopped", retries=job.retries))
        self._pending.clear()
        self._update_gauges()

        logger.info("Task queue stopped", extra={"cancelled": len(tasks)})

    def _schedule(self) -> None:
        """Start pending jobs while there is spare capacity."""
        while self._pending and self._active < self.max_concurrent and not self._closed:
            job = self._pending.popleft()
            self._active += 1

            task = asyncio.create_task(self._run(job), name=f"job-{job.name}-{job.id}")
            self._running.add(task)
            task.add_done_callback(self._running.discard)

        self._update_gauges()

    async def _run(self, job: QueuedJob) -> None:
        """
        Execute one job body and settle or reschedule the job.

        Handles the full lifecycle:
        1. Run the body inside a trace span
        2. Resolve the future on success
        3. Schedule a retry, or resolve with ``JobFailure`` when exhausted
        """
        _current_job.set(job)
        bind_context(job_id=job.id, job_name=job.name)

        start_time = time.monotonic()
        outcome = JobOutcome.FAILED

        logger.info(
            "Processing job",
            extra={
                "job_id": job.id,
                "job_name": job.name,
                "attempt": job.invocations,
                "remaining": len(self._pending),
            },
        )

        try:
            with get_tracer().start_as_current_span(SPAN_EXECUTE_JOB) as span:
                span.set_attribute("job_id", job.id)
                span.set_attribute("job_name", job.name)
                span.set_attribute("retries", job.retries)

                result = await job.work(*job.args)

        except Exception as e:
            if job.can_retry:
                job.retries += 1
                outcome = JobOutcome.RETRY_SCHEDULED

                logger.warning(
                    "Job failed, retry scheduled",
                    extra={
                        "job_id": job.id,
                        "job_name": job.name,
                        "error": str(e),
                        "retry": f"{job.retries}/{job.max_retries}",
                        "delay_ms": job.retry_delay_ms,
                    },
                )
                self._schedule_retry(job)
            else:
                logger.error(
                    "Job failed after retries",
                    extra={
                        "job_id": job.id,
                        "job_name": job.name,
                        "error": str(e),
                        "retries": job.retries,
                    },
                )
                self._resolve(
                    job,
                    JobFailure(error=str(e) or e.__class__.__name__, retries=job.retries),
                )

        else:
            outcome = JobOutcome.SUCCEEDED
            logger.info(
                "Job completed",
                extra={
                    "job_id": job.id,
                    "job_name": job.name,
                    "duration_ms": round((time.monotonic() - start_time) * 1000, 1),
                },
            )
            self._resolve(job, result)

        finally:
            self._active -= 1
            self._metrics.record_job_run(
                job_name=job.name,
                outcome=outcome.value,
                duration_seconds=time.monotonic() - start_time,
            )
            self._schedule()

    def _schedule_retry(self, job: QueuedJob) -> None:
        self._metrics.record_job_retry(job.name)

        timer = asyncio.create_task(self._requeue_after_delay(job))
        self._retry_timers.add(timer)
        timer.add_done_callback(self._retry_timers.discard)

    async def _requeue_after_delay(self, job: QueuedJob) -> None:
        await asyncio.sleep(job.retry_delay_ms / 1000)
        self._pending.append(job)
        self._schedule()

    def _resolve(self, job: QueuedJob, value: Any) -> None:
        # The caller may have cancelled its handle
        if not job.result.done():
            job.result.set_result(value)

        self._outstanding.pop(job.id, None)
        if not self._outstanding:
            self._idle.set()

    def _update_gauges(self) -> None:
        self._metrics.update_queue(depth=len(self._pending), active=self._active)
