"""
Background worker for committing queued todos.

Exports QueueProcessor, which drains the todo queue into the store
one item per tick.
"""

from worker.processor import QueueProcessor
from worker.stats import ProcessorStats

__all__ = ['QueueProcessor', 'ProcessorStats']
