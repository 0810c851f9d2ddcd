"""
Tests for worker/processor.py - QueueProcessor.

Tests verify:
- run_once commits the oldest pending item and records ref_id
- Failures record error/try_count and the item is retried next tick
- Head-of-line blocking: a failing head stalls later items
- Lock contention with direct commits is recorded, not raised
- Opt-in max_retries dead-letters; opt-in backoff delays the head
- start/stop lifecycle and that the loop survives tick errors
"""

import asyncio

import pytest

from store.commit_lock import LockedError
from todo_queue.operations import enqueue
from worker.processor import QueueProcessor


@pytest.fixture
def failing_store(store, monkeypatch):
    """Store whose commit always raises RuntimeError('backing store down')."""
    async def always_fail(title, description=""):
        raise RuntimeError("backing store down")

    monkeypatch.setattr(store, "commit", always_fail)
    return store


class TestRunOnce:
    """Tests for a single processor tick."""

    @pytest.mark.asyncio
    async def test_empty_queue_is_noop(self, processor, store):
        """Nothing to do: returns None and commits nothing."""
        assert await processor.run_once() is None
        assert store.list() == []
        assert processor.stats.ticks == 1
        assert processor.stats.attempts == 0

    @pytest.mark.asyncio
    async def test_commits_head_item(self, processor, todo_queue, store):
        """The oldest pending item is committed and linked to its StoreItem."""
        item = enqueue(todo_queue, "A", "first")

        attempted = await processor.run_once()

        assert attempted is item
        assert item.committed is True
        assert item.updated_at is not None
        stored = store.list()
        assert len(stored) == 1
        assert item.ref_id == stored[0].id
        assert stored[0].title == "A"
        assert stored[0].description == "first"

    @pytest.mark.asyncio
    async def test_fifo_order(self, processor, todo_queue, store):
        """Items are committed one per tick in insertion order."""
        items = [enqueue(todo_queue, t) for t in ("A", "B", "C")]

        for _ in range(3):
            await processor.run_once()

        assert [t.title for t in store.list()] == ["A", "B", "C"]
        assert [i.ref_id for i in items] == [1, 2, 3]
        assert await processor.run_once() is None

    @pytest.mark.asyncio
    async def test_committed_items_remain_queryable(self, processor, todo_queue):
        """Committed items stay in the queue as status records."""
        item = enqueue(todo_queue, "A")
        await processor.run_once()

        assert todo_queue.get(item.id).committed is True
        assert todo_queue.size == 1


class TestFailures:
    """Default policy: unbounded retries, no backoff, head-of-line blocking."""

    @pytest.mark.asyncio
    async def test_failure_recorded_on_item(self, todo_queue, failing_store):
        """A failed commit sets error and try_count=1, item stays pending."""
        processor = QueueProcessor(todo_queue, failing_store)
        item = enqueue(todo_queue, "A")

        await processor.run_once()

        assert item.committed is False
        assert item.ref_id is None
        assert item.error == "backing store down"
        assert item.try_count == 1

    @pytest.mark.asyncio
    async def test_try_count_increments_each_tick(self, todo_queue, failing_store):
        """Each tick retries the same item and bumps try_count by one."""
        processor = QueueProcessor(todo_queue, failing_store)
        item = enqueue(todo_queue, "A")

        for expected in range(1, 6):
            assert await processor.run_once() is item
            assert item.try_count == expected

        assert item.committed is False
        assert item.failed is False

    @pytest.mark.asyncio
    async def test_head_of_line_blocking(self, todo_queue, failing_store):
        """Later items never advance while the failing item is at the head."""
        processor = QueueProcessor(todo_queue, failing_store)
        head = enqueue(todo_queue, "stuck")
        behind = enqueue(todo_queue, "waiting")

        for _ in range(4):
            await processor.run_once()

        assert head.try_count == 4
        assert behind.try_count == 0
        assert behind.committed is False
        assert processor.stats.errors_by_type == {"RuntimeError": 4}

    @pytest.mark.asyncio
    async def test_recovers_when_store_recovers(self, todo_queue, store, monkeypatch):
        """After transient failures the item commits and keeps its try_count."""
        async def fail(title, description=""):
            raise RuntimeError("flaky")

        monkeypatch.setattr(store, "commit", fail)
        processor = QueueProcessor(todo_queue, store)
        item = enqueue(todo_queue, "A")
        await processor.run_once()
        await processor.run_once()

        monkeypatch.undo()
        await processor.run_once()

        assert item.committed is True
        assert item.try_count == 2
        assert item.ref_id == store.list()[0].id

    @pytest.mark.asyncio
    async def test_lock_contention_recorded(self, processor, todo_queue, store):
        """If a direct commit holds the lock, the tick records LockedError."""
        item = enqueue(todo_queue, "A")
        assert store.lock.try_acquire()
        try:
            await processor.run_once()
        finally:
            store.lock.release()

        assert item.committed is False
        assert item.error == str(LockedError())
        assert item.try_count == 1

        await processor.run_once()
        assert item.committed is True


class TestRetryExtension:
    """Opt-in max_retries and backoff."""

    @pytest.mark.asyncio
    async def test_max_retries_dead_letters(self, todo_queue, failing_store):
        """After max_retries failures the item is failed and the queue moves on."""
        processor = QueueProcessor(todo_queue, failing_store, max_retries=3)
        head = enqueue(todo_queue, "stuck")
        behind = enqueue(todo_queue, "next")

        for _ in range(3):
            await processor.run_once()

        assert head.failed is True
        assert head.try_count == 3
        assert processor.stats.dead_lettered == 1

        assert await processor.run_once() is behind

    @pytest.mark.asyncio
    async def test_backoff_delays_head(self, todo_queue, failing_store, monkeypatch):
        """With retry_backoff the head waits instead of retrying next tick."""
        monkeypatch.setattr("worker.processor.calculate_delay", lambda *args, **kwargs: 60.0)
        processor = QueueProcessor(todo_queue, failing_store, retry_backoff=True)
        head = enqueue(todo_queue, "stuck")
        behind = enqueue(todo_queue, "behind")

        await processor.run_once()

        assert head.next_attempt_at is not None
        # Head still blocks the queue while it waits
        assert await processor.run_once() is None
        assert head.try_count == 1
        assert behind.try_count == 0

    @pytest.mark.asyncio
    async def test_backoff_off_by_default(self, todo_queue, failing_store):
        """Without retry_backoff no next_attempt_at is set."""
        processor = QueueProcessor(todo_queue, failing_store)
        head = enqueue(todo_queue, "stuck")

        await processor.run_once()

        assert head.next_attempt_at is None


class TestLifecycle:
    """start/stop and loop resilience."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, processor):
        """start schedules the loop; stop cancels it."""
        assert processor.running is False

        processor.start()
        assert processor.running is True

        await processor.stop()
        assert processor.running is False

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, processor):
        """Calling start twice keeps a single task."""
        processor.start()
        task = processor._task
        processor.start()

        assert processor._task is task
        await processor.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, processor):
        """stop on a never-started processor is a no-op."""
        await processor.stop()
        assert processor.running is False

    @pytest.mark.asyncio
    async def test_loop_drains_queue(self, processor, todo_queue, store):
        """The background loop commits queued items without manual ticks."""
        items = [enqueue(todo_queue, t) for t in ("A", "B")]

        processor.start()
        try:
            for _ in range(200):
                if all(i.committed for i in items):
                    break
                await asyncio.sleep(0.01)
        finally:
            await processor.stop()

        assert all(i.committed for i in items)
        assert [t.title for t in store.list()] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_loop_survives_tick_errors(self, processor, monkeypatch):
        """An exception escaping run_once is logged and the loop keeps ticking."""
        calls = []

        async def exploding_tick():
            calls.append(1)
            raise RuntimeError("tick blew up")

        monkeypatch.setattr(processor, "run_once", exploding_tick)

        processor.start()
        try:
            for _ in range(200):
                if len(calls) >= 3:
                    break
                await asyncio.sleep(0.01)
            assert processor.running is True
        finally:
            await processor.stop()

        assert len(calls) >= 3

    @pytest.mark.asyncio
    async def test_stop_mid_commit_releases_lock(self, todo_queue, slow_store):
        """Stopping while a commit is in flight leaves the lock free and the item pending."""
        processor = QueueProcessor(todo_queue, slow_store, poll_interval=0.01)
        item = enqueue(todo_queue, "A")

        processor.start()
        for _ in range(100):
            if slow_store.lock.locked:
                break
            await asyncio.sleep(0.001)
        await processor.stop()

        assert slow_store.lock.locked is False
        if not item.committed:
            assert item.ref_id is None
            assert slow_store.list() == []

    def test_from_settings(self, todo_queue, store):
        """from_settings copies the tick and retry tunables."""
        from service.config import TodoSettings

        settings = TodoSettings(poll_interval=2.5, max_retries=4, retry_backoff=True)
        processor = QueueProcessor.from_settings(todo_queue, store, settings)

        assert processor.poll_interval == 2.5
        assert processor.max_retries == 4
        assert processor.retry_backoff is True
