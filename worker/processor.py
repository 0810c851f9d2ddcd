"""
Background queue processor.

Drains the todo queue into the store, one item per tick:
- Selects the oldest pending queue item (FIFO, re-scanned every tick)
- Commits it through the store's fail-fast commit lock
- Acknowledges success (committed, ref_id) or records the failure
  (error, try_count) and retries the same item on the next tick

By default retries are unbounded and immediate, so a permanently failing
item blocks everything queued behind it (head-of-line blocking). Setting
max_retries and/or retry_backoff opts into dead-lettering and backoff.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional, TYPE_CHECKING

from store.commit_lock import LockedError
from todo_queue.operations import get_pending, ack_job, nack_job, fail_job
from worker.backoff import calculate_delay
from worker.stats import ProcessorStats

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from service.config import TodoSettings
    from store.todo_store import TodoStore
    from todo_queue.manager import TodoQueue
    from todo_queue.models import QueueItem


class QueueProcessor:
    """
    Recurring asyncio task that commits queued todos.

    Lifecycle is explicit: start() schedules the loop on the running event
    loop, stop() cancels it and waits for it to exit. run_once() performs
    a single tick and can be awaited directly.

    Args:
        queue: TodoQueue to drain
        store: TodoStore to commit into
        poll_interval: Seconds between ticks (default: 1.0)
        max_retries: Failed attempts before an item is dead-lettered
            (default: None, retry forever)
        retry_backoff: Delay retries of a failed head item with
            exponential backoff (default: False, retry next tick)
        backoff_base: Backoff base delay in seconds
        backoff_cap: Backoff maximum delay in seconds
    """

    def __init__(
        self,
        queue: 'TodoQueue',
        store: 'TodoStore',
        poll_interval: float = 1.0,
        max_retries: Optional[int] = None,
        retry_backoff: bool = False,
        backoff_base: float = 1.0,
        backoff_cap: float = 30.0,
    ):
        self.queue = queue
        self.store = store
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self._task: Optional[asyncio.Task] = None
        self._stats = ProcessorStats()

    @classmethod
    def from_settings(cls, queue: 'TodoQueue', store: 'TodoStore', settings: 'TodoSettings') -> 'QueueProcessor':
        """Build a processor using the tunables from TodoSettings."""
        return cls(
            queue,
            store,
            poll_interval=settings.poll_interval,
            max_retries=settings.max_retries,
            retry_backoff=settings.retry_backoff,
            backoff_base=settings.backoff_base,
            backoff_cap=settings.backoff_cap,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stats(self) -> ProcessorStats:
        return self._stats

    def start(self) -> None:
        """Schedule the processing loop. Must be called from a running event loop."""
        if self.running:
            logger.debug("Queue processor already running")
            return

        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._worker_loop(), name="queue-processor")
        logger.info(
            "Queue processor started",
            extra={
                "poll_interval": self.poll_interval,
                "max_retries": self.max_retries,
                "retry_backoff": self.retry_backoff,
            },
        )

    async def stop(self) -> None:
        """Cancel the processing loop and wait for it to finish."""
        if self._task is None:
            return

        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Queue processor stopped", extra=self._stats.to_dict())

    async def _worker_loop(self) -> None:
        """Main loop: one tick, then wait poll_interval. Never exits on error."""
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Queue processor tick failed")
            await asyncio.sleep(self.poll_interval)

    async def run_once(self) -> Optional['QueueItem']:
        """
        Perform one tick.

        Returns:
            The QueueItem that was attempted, or None if nothing was ready
        """
        self._stats.ticks += 1

        item = get_pending(self.queue)
        if item is None:
            return None

        logger.debug(
            "Committing queue item",
            extra={"queue_id": item.id, "attempt": item.try_count + 1},
        )

        start = time.perf_counter()
        try:
            stored = await self.store.commit(item.title, item.description)
        except Exception as exc:
            self._handle_failure(item, exc, time.perf_counter() - start)
            return item

        ack_job(item, stored.id)
        self._stats.record_success(time.perf_counter() - start)
        logger.info(
            "Queue item committed",
            extra={"queue_id": item.id, "todo_id": stored.id, "try_count": item.try_count},
        )
        return item

    def _handle_failure(self, item: 'QueueItem', error: Exception, elapsed: float) -> None:
        """Record a failed attempt on the item, applying the opt-in retry policy."""
        next_attempt_at = None
        if self.retry_backoff:
            delay = calculate_delay(item.try_count, self.backoff_base, self.backoff_cap)
            next_attempt_at = datetime.now(timezone.utc) + timedelta(seconds=delay)

        nack_job(item, str(error) or type(error).__name__, next_attempt_at)

        dead_lettered = self.max_retries is not None and item.try_count >= self.max_retries
        if dead_lettered:
            fail_job(item)

        self._stats.record_failure(type(error).__name__, elapsed, dead_lettered=dead_lettered)

        extra = {
            "queue_id": item.id,
            "try_count": item.try_count,
            "error": item.error,
        }
        if isinstance(error, LockedError):
            # Lock contention with a direct commit; retried next tick
            logger.info("Queue item commit deferred: lock held", extra=extra)
        else:
            logger.warning("Queue item commit failed", extra=extra)


__all__ = ['QueueProcessor']
