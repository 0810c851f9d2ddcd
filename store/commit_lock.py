"""
Fail-fast commit lock guarding the store's append critical section.

Only one commit may be in flight at a time. Callers that find the lock
held are rejected immediately with LockedError rather than waiting.

Usage:
    lock = CommitLock()

    with lock.held():
        # assign id, write, append
        ...
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class LockedError(Exception):
    """A commit is already in progress (transient, caller may retry)."""

    def __init__(self, message: str = "commit already in progress"):
        super().__init__(message)


class CommitLock:
    """
    Two-state (locked/unlocked) mutual exclusion flag.

    Backed by a threading.Lock acquired non-blocking, so the fail-fast
    contract holds on a single event loop and across real threads alike.
    """

    def __init__(self):
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def try_acquire(self) -> bool:
        """
        Take the lock if it is free.

        Returns:
            True if the caller now holds the lock, False if it was held
        """
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        """Release the lock. Raises RuntimeError if it is not held."""
        self._lock.release()

    @contextmanager
    def held(self) -> Iterator[None]:
        """
        Hold the lock for the duration of the block.

        Raises LockedError on entry if the lock is already held. The lock
        is released on every exit path, including exceptions and task
        cancellation inside the block.
        """
        if not self.try_acquire():
            logger.debug("Commit lock contended")
            raise LockedError()
        try:
            yield
        finally:
            self.release()
