"""GET/POST /todos: Direct access to the todo store.

POST commits synchronously through the store's commit lock and fails with
500 if another commit is already in progress.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from service.models import ApiResponse, TodoCreate
from store.todo_store import TodoStore

router = APIRouter(prefix="/todos", tags=["todos"])
logger = logging.getLogger(__name__)


def _store(request: Request) -> TodoStore:
    return request.app.state.store


@router.get("")
async def list_todos(request: Request) -> JSONResponse:
    """Return all committed todos in insertion order."""
    todos = _store(request).list()
    return JSONResponse(
        content=ApiResponse.success("Todos fetched successfully", todos).to_content()
    )


@router.post("")
async def create_todo(body: TodoCreate, request: Request) -> JSONResponse:
    """Commit a todo directly. LockedError is mapped to 500 by the app's handlers."""
    todo = await _store(request).commit(body.title, body.description)
    logger.info("Todo created", extra={"todo_id": todo.id})
    return JSONResponse(
        status_code=201,
        content=ApiResponse.success("Todo created successfully", todo).to_content(),
    )
