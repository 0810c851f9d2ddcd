"""Pydantic model for queued (not yet committed) todos."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class QueueItem(BaseModel):
    """
    A submitted todo and its commit status.

    Stays in the queue after commit as a status record. ``ref_id`` is set
    if and only if ``committed`` is True. ``failed`` and
    ``next_attempt_at`` are only used when max_retries / retry_backoff
    are configured on the processor.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    description: str = ""
    committed: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None
    ref_id: Optional[int] = None
    error: Optional[str] = None
    try_count: int = 0
    failed: bool = False
    next_attempt_at: Optional[datetime] = None

    @property
    def pending(self) -> bool:
        """True while the item still awaits a commit attempt."""
        return not self.committed and not self.failed
