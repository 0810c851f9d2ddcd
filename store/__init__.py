"""
In-memory todo store.

Exports the TodoStore, its fail-fast CommitLock, and the StoreItem model.
"""

from store.commit_lock import CommitLock, LockedError
from store.models import StoreItem
from store.todo_store import TodoStore

__all__ = ['TodoStore', 'CommitLock', 'LockedError', 'StoreItem']
