"""Exception handlers mapping domain errors onto the JSON error envelope.

- LockedError        -> 500 (transient; the caller may retry)
- QueueItemNotFound  -> 404
- Request validation -> 400 (malformed JSON, missing fields)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from service.models import ApiResponse
from store.commit_lock import LockedError
from todo_queue.manager import QueueItemNotFound

logger = logging.getLogger(__name__)


async def _locked_handler(request: Request, exc: LockedError) -> JSONResponse:
    logger.info("Direct commit rejected: lock held", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content=ApiResponse.error(str(exc)).to_content())


async def _not_found_handler(request: Request, exc: QueueItemNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content=ApiResponse.error(str(exc)).to_content())


async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        message = "Malformed JSON in request body"
    else:
        fields = []
        for err in errors:
            loc = [str(part) for part in err.get("loc", ()) if part != "body"]
            fields.append(f"{'.'.join(loc) or 'body'}: {err.get('msg')}")
        message = "Invalid request body: " + "; ".join(fields)

    logger.info("Request rejected", extra={"path": request.url.path, "reason": message})
    return JSONResponse(status_code=400, content=ApiResponse.error(message).to_content())


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope-producing exception handlers on the app."""
    app.add_exception_handler(LockedError, _locked_handler)
    app.add_exception_handler(QueueItemNotFound, _not_found_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
