"""
Todo Queue Module

In-memory queue of submitted-but-not-yet-committed todos. Items keep
their commit status and retry metadata and are never removed.
"""

from todo_queue.manager import TodoQueue, QueueItemNotFound
from todo_queue.models import QueueItem
from todo_queue.operations import enqueue, get_pending, ack_job, nack_job, fail_job, get_stats

__all__ = [
    'TodoQueue',
    'QueueItem',
    'QueueItemNotFound',
    'enqueue',
    'get_pending',
    'ack_job',
    'nack_job',
    'fail_job',
    'get_stats',
]
