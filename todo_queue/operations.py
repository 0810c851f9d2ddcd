"""
Queue operations for the queue item lifecycle.

Stateless operations that work on the TodoQueue / QueueItem passed in.
Only the queue processor calls the mutators (ack_job, nack_job, fail_job).
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from todo_queue.manager import TodoQueue
from todo_queue.models import QueueItem

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enqueue(queue: TodoQueue, title: str, description: str = "") -> QueueItem:
    """
    Enqueue a todo for background commit.

    Never touches the commit lock and always succeeds.

    Args:
        queue: TodoQueue instance
        title: Todo title
        description: Todo description

    Returns:
        The new pending QueueItem

    Example:
        >>> queue = TodoQueue()
        >>> item = enqueue(queue, "Buy milk", "2 litres")
        >>> item.committed
        False
    """
    item = QueueItem(
        id=queue.next_id(),
        title=title,
        description=description,
        committed=False,
        created_at=_utcnow(),
    )
    queue.put(item)
    logger.debug("Enqueued todo", extra={"queue_id": item.id})
    return item


def get_pending(queue: TodoQueue, now: Optional[datetime] = None) -> Optional[QueueItem]:
    """
    Get the oldest item still awaiting commit.

    Re-scans from the head each call instead of keeping a cursor. If the
    head item is waiting out a backoff delay, None is returned rather than
    skipping ahead to later items.

    Args:
        queue: TodoQueue instance
        now: Current time (default: utcnow). For testing.

    Returns:
        The head pending QueueItem, or None if nothing is ready
    """
    for item in queue:
        if not item.pending:
            continue
        if item.next_attempt_at is not None:
            if now is None:
                now = _utcnow()
            if now < item.next_attempt_at:
                return None
        return item
    return None


def ack_job(item: QueueItem, ref_id: int) -> QueueItem:
    """
    Mark a queue item committed.

    Args:
        item: The QueueItem that was committed
        ref_id: Id of the StoreItem created by the commit

    Returns:
        The updated item
    """
    if item.committed:
        raise ValueError(f"Queue item {item.id} is already committed")
    item.committed = True
    item.ref_id = ref_id
    item.updated_at = _utcnow()
    item.next_attempt_at = None
    return item


def nack_job(
    item: QueueItem,
    error: str,
    next_attempt_at: Optional[datetime] = None,
) -> QueueItem:
    """
    Record a failed commit attempt; the item stays pending.

    Args:
        item: The QueueItem whose commit failed
        error: Failure message
        next_attempt_at: Earliest time of the next attempt (None = next tick)

    Returns:
        The updated item
    """
    item.error = error
    item.try_count += 1
    item.next_attempt_at = next_attempt_at
    return item


def fail_job(item: QueueItem) -> QueueItem:
    """Move an item to the failed (dead-lettered) state; it is no longer selected."""
    item.failed = True
    item.next_attempt_at = None
    logger.warning(
        "Queue item dead-lettered",
        extra={"queue_id": item.id, "try_count": item.try_count, "error": item.error},
    )
    return item


def get_stats(queue: TodoQueue) -> dict:
    """
    Get queue statistics.

    Returns:
        Dict with total, pending, committed and failed counts
    """
    items = queue.list()
    return {
        'total': len(items),
        'pending': sum(1 for i in items if i.pending),
        'committed': sum(1 for i in items if i.committed),
        'failed': sum(1 for i in items if i.failed),
    }
