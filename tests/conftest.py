"""
Shared pytest fixtures for todoqueue tests.

Provides reusable fixtures for:
- Store and queue instances (unseeded, zero or short commit delay)
- Queue processor wired to them
- Settings and a FastAPI app built from them
- An httpx AsyncClient talking to the app in-process (no lifespan,
  so the background processor is not running unless a test starts it)

Coroutine tests and async fixtures use pytest-asyncio in strict mode.
"""

import httpx
import pytest
import pytest_asyncio


# =============================================================================
# Store / Queue Fixtures
# =============================================================================

@pytest.fixture
def store():
    """Unseeded TodoStore with no simulated write delay."""
    from store.todo_store import TodoStore

    return TodoStore(commit_delay=0.0, seed=False)


@pytest.fixture
def slow_store():
    """
    Unseeded TodoStore whose commits hold the lock for 50ms.

    Long enough for a second, concurrently scheduled commit to observe
    the lock as held.
    """
    from store.todo_store import TodoStore

    return TodoStore(commit_delay=0.05, seed=False)


@pytest.fixture
def todo_queue():
    """Empty TodoQueue."""
    from todo_queue.manager import TodoQueue

    return TodoQueue()


@pytest.fixture
def processor(todo_queue, store):
    """QueueProcessor with default (unbounded, no backoff) retry policy."""
    from worker.processor import QueueProcessor

    return QueueProcessor(todo_queue, store, poll_interval=0.01)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def settings():
    """
    TodoSettings tuned for tests.

    Usage:
        def test_x(settings):
            settings.commit_delay  # 0.05
    """
    from service.config import TodoSettings

    return TodoSettings(
        poll_interval=0.05,
        commit_delay=0.05,
        seed_todos=True,
        log_level="warning",
    )


@pytest.fixture
def app(settings):
    """FastAPI app with its own store, queue and (stopped) processor."""
    from service.main import create_app

    return create_app(settings)


@pytest_asyncio.fixture
async def client(app):
    """In-process httpx client for the app; the lifespan is not run."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def restore_root_logger():
    """
    Put the root logger's handlers and level back after the test.

    configure_logging() (also run by the app lifespan) replaces the root
    handlers; use this to keep that from leaking into other tests.
    """
    import logging

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
