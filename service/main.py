"""FastAPI application factory for the todoqueue service.

Wires together configuration, structured logging, the in-memory store and
queue, the background queue processor lifecycle, route registration,
error handlers, and HTTP request logging middleware.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, Response

from service import __version__
from service.config import TodoSettings, get_settings
from service.errors import register_exception_handlers
from service.logging_config import configure_logging
from service.routes import health, queue, todos
from store.todo_store import TodoStore
from todo_queue.manager import TodoQueue
from worker.processor import QueueProcessor

logger = logging.getLogger(__name__)


def _print_startup_banner(settings: TodoSettings, store: TodoStore) -> None:
    """Log the startup banner at info level."""
    logger.info(
        "todoqueue starting",
        extra={
            "version": __version__,
            "port": settings.port,
            "api_prefix": settings.api_prefix,
            "poll_interval": settings.poll_interval,
            "commit_delay": settings.commit_delay,
            "seeded_todos": len(store),
        },
    )
    # Also emit a human-readable summary for log tailing
    retries = settings.max_retries if settings.max_retries is not None else "unbounded"
    logger.info(
        f"todoqueue v{__version__} | "
        f"Port: {settings.port} | "
        f"Tick: {settings.poll_interval}s | "
        f"Commit delay: {settings.commit_delay}s | "
        f"Retries: {retries}"
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """FastAPI lifespan context manager.

    Startup: configure logging, print banner, start the queue processor.
    Shutdown: stop the processor (an in-flight commit releases its lock).
    """
    settings: TodoSettings = app.state.settings
    configure_logging(settings.log_level)
    _print_startup_banner(settings, app.state.store)

    processor: QueueProcessor = app.state.processor
    processor.start()

    yield

    await processor.stop()
    logger.info("todoqueue shutting down")


# ── Application factory ──────────────────────────────────────────────────────

def create_app(settings: Optional[TodoSettings] = None) -> FastAPI:
    """Build the FastAPI app with its own store, queue and processor."""
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="todoqueue",
        version=__version__,
        lifespan=lifespan,
    )

    store = TodoStore(commit_delay=settings.commit_delay, seed=settings.seed_todos)
    todo_queue = TodoQueue()
    app.state.settings = settings
    app.state.store = store
    app.state.queue = todo_queue
    app.state.processor = QueueProcessor.from_settings(todo_queue, store, settings)

    # Route registration; todo routes are also mounted under api_prefix
    app.include_router(health.router)
    app.include_router(todos.router)
    app.include_router(queue.router)
    if settings.api_prefix:
        app.include_router(todos.router, prefix=settings.api_prefix)
        app.include_router(queue.router, prefix=settings.api_prefix)

    register_exception_handlers(app)

    # ── Request logging middleware ───────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next) -> Response:  # type: ignore[no-untyped-def]
        """Log all incoming requests with method, path, status, and response time."""
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "HTTP request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response

    return app


app = create_app()


# ── Entry point ───────────────────────────────────────────────────────────────

def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "service.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=False,  # We handle request logging ourselves
    )


if __name__ == "__main__":
    run()
