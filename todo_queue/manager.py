"""
Queue container for submitted todos.

Holds every QueueItem ever enqueued, in insertion order. Items are never
removed; committed items remain queryable as status records.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Union

from todo_queue.models import QueueItem

logger = logging.getLogger(__name__)


class QueueItemNotFound(Exception):
    """No queue item with the requested id (or the id is not an integer)."""

    def __init__(self, item_id: object):
        self.item_id = item_id
        super().__init__("Todo queue not found")


class TodoQueue:
    """
    In-memory, insertion-ordered queue of QueueItems.

    Ids are derived from the wall clock in epoch milliseconds but are
    forced strictly increasing, so two items enqueued within the same
    millisecond (or while the clock steps backwards) never share an id.
    """

    def __init__(self):
        self._items: list[QueueItem] = []
        self._index: dict[int, QueueItem] = {}
        self._last_id = 0
        self._id_lock = threading.Lock()

    def next_id(self) -> int:
        """Allocate the next unique queue item id."""
        with self._id_lock:
            candidate = int(time.time() * 1000)
            if candidate <= self._last_id:
                candidate = self._last_id + 1
            self._last_id = candidate
            return candidate

    def put(self, item: QueueItem) -> None:
        """Append an item to the tail of the queue."""
        if item.id in self._index:
            raise ValueError(f"Duplicate queue item id {item.id}")
        self._items.append(item)
        self._index[item.id] = item

    def list(self) -> list[QueueItem]:
        """Return all items ever enqueued, in insertion order."""
        return list(self._items)

    def get(self, item_id: Union[int, str]) -> QueueItem:
        """
        Look up a queue item by exact id.

        Args:
            item_id: Integer id, or its decimal string form (as taken from
                a URL path)

        Returns:
            The matching QueueItem

        Raises:
            QueueItemNotFound: id is absent or not a valid integer
        """
        try:
            key = int(item_id)
        except (TypeError, ValueError):
            logger.debug("Unparsable queue item id", extra={"item_id": str(item_id)})
            raise QueueItemNotFound(item_id) from None

        item = self._index.get(key)
        if item is None:
            raise QueueItemNotFound(item_id)
        return item

    @property
    def size(self) -> int:
        return len(self._items)

    @property
    def pending_count(self) -> int:
        return sum(1 for item in self._items if item.pending)

    def __iter__(self):
        return iter(list(self._items))
