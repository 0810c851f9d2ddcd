"""
In-memory todo store.

Committed items live in insertion order and are never removed. Every
write goes through the store's CommitLock: ids are assigned as
``len(items) + 1`` while the lock is held, after a fixed simulated write
delay that models a slow backing store.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from store.commit_lock import CommitLock, LockedError
from store.models import StoreItem

logger = logging.getLogger(__name__)

# Sample data the service boots with when seeding is enabled
SEED_TODOS = (
    ("Buy groceries", "Buy groceries from the store"),
    ("Buy shoes", "Buy shoes from the store"),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TodoStore:
    """
    Ordered collection of committed todos behind a single commit lock.

    Args:
        commit_delay: Seconds the simulated backing write takes while the
            lock is held (default: 0.2)
        seed: Pre-populate with the sample todos (default: False)
    """

    def __init__(self, commit_delay: float = 0.2, seed: bool = False):
        self.commit_delay = commit_delay
        self.lock = CommitLock()
        self._items: list[StoreItem] = []

        if seed:
            for title, description in SEED_TODOS:
                now = _utcnow()
                self._items.append(
                    StoreItem(
                        id=len(self._items) + 1,
                        title=title,
                        description=description,
                        created_at=now,
                        updated_at=now,
                    )
                )

    def __len__(self) -> int:
        return len(self._items)

    def list(self) -> list[StoreItem]:
        """Return all committed items in insertion order."""
        return list(self._items)

    async def commit(self, title: str, description: str = "") -> StoreItem:
        """
        Commit a new todo.

        Fails fast if another commit holds the lock; there is no waiting
        or queueing at this layer.

        Args:
            title: Todo title
            description: Todo description

        Returns:
            The newly committed StoreItem

        Raises:
            LockedError: A commit is already in progress
        """
        with self.lock.held():
            next_id = len(self._items) + 1
            await self._write_delay()

            now = _utcnow()
            item = StoreItem(
                id=next_id,
                title=title,
                description=description,
                completed=False,
                created_at=now,
                updated_at=now,
            )
            self._items.append(item)

        logger.info("Todo committed", extra={"todo_id": item.id})
        return item

    async def _write_delay(self) -> None:
        await asyncio.sleep(self.commit_delay)


__all__ = ["TodoStore", "LockedError", "SEED_TODOS"]
