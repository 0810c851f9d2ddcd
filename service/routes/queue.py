"""/todos/queue: Fire-and-forget submission and status lookup.

Queued todos are committed later by the background QueueProcessor; clients
poll GET /todos/queue/{id} until ``committed`` is true.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from service.models import ApiResponse, TodoCreate
from todo_queue.manager import TodoQueue
from todo_queue.operations import enqueue

router = APIRouter(prefix="/todos/queue", tags=["queue"])
logger = logging.getLogger(__name__)


def _queue(request: Request) -> TodoQueue:
    return request.app.state.queue


@router.post("")
async def enqueue_todo(body: TodoCreate, request: Request) -> JSONResponse:
    """Add a todo to the queue and return the pending record immediately."""
    item = enqueue(_queue(request), body.title, body.description)
    logger.info("Todo queued", extra={"queue_id": item.id})
    return JSONResponse(
        status_code=201,
        content=ApiResponse.success("Todo added to queue", item).to_content(),
    )


@router.get("")
async def list_queue(request: Request) -> JSONResponse:
    """Return every queue item, committed or not, in insertion order."""
    items = _queue(request).list()
    response = ApiResponse.success(
        "Todos queue fetched successfully",
        items,
        fetched_at=datetime.now(timezone.utc),
    )
    return JSONResponse(content=response.to_content())


@router.get("/{item_id}")
async def get_queue_item(item_id: str, request: Request) -> JSONResponse:
    """Return one queue item. Unknown or unparsable ids raise QueueItemNotFound (404)."""
    item = _queue(request).get(item_id)
    return JSONResponse(
        content=ApiResponse.success("Todo queue fetched successfully", item).to_content()
    )
