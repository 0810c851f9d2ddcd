"""GET /health: Health status endpoint.

Returns version, uptime, queue processor state, queue counts and
processor statistics.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from service import __version__
from service.models import HealthResponse
from todo_queue.operations import get_stats

router = APIRouter()
logger = logging.getLogger(__name__)

# Module import time, used as a proxy for app start
_start_time = time.time()


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Return service health status."""
    processor = getattr(request.app.state, "processor", None)

    body = HealthResponse(
        version=__version__,
        uptime_seconds=int(time.time() - _start_time),
        processor_running=bool(processor and processor.running),
        queue=get_stats(request.app.state.queue),
        stats=processor.stats.to_dict() if processor else {},
    )
    return JSONResponse(content=body.model_dump())
