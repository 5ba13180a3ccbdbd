"""
Task queue module.
Contains the in-process background job runner.
"""

from storefront_mail.queue.task_queue import TaskQueue, current_retry_count

__all__ = ["TaskQueue", "current_retry_count"]
