"""Pydantic model for committed todos."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StoreItem(BaseModel):
    """A todo that has been committed to the store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    description: str = ""
    completed: bool = False
    created_at: datetime
    updated_at: datetime
