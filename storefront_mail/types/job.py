"""
Job-related type definitions for the in-process task queue.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel

from storefront_mail.constants import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_MS

# Work submitted to the queue: any coroutine function
JobWork = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class JobOptions:
    """Retry policy for a single submitted job."""

    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_delay_ms < 0:
            raise ValueError("retry_delay_ms must be >= 0")

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0


@dataclass
class QueuedJob:
    """
    A unit of background work held by the task queue.

    Created on submit, mutated (retries incremented) on failure and dropped
    once its result future is resolved.
    """

    work: JobWork
    name: str
    args: tuple[Any, ...]
    result: asyncio.Future
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    retries: int = 0
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def can_retry(self) -> bool:
        return self.retries < self.max_retries

    @property
    def invocations(self) -> int:
        """Number of times the body has been started so far."""
        return self.retries + 1


class JobFailure(BaseModel):
    """
    Terminal result of a job that exhausted its retries.

    Returned through the job's future, never raised.
    """

    failed: bool = True
    error: str
    retries: int


class QueueStatus(BaseModel):
    """Point-in-time snapshot of the task queue."""

    queue_length: int
    active_count: int
    is_processing: bool
    scheduled_retries: int = 0
