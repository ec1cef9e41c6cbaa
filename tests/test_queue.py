"""Tests for elgg/queue: in-memory and database-backed FIFO queues."""
from __future__ import annotations

import pytest
from sqlalchemy import delete, event, func, select

from elgg.db.models import QueueItem
from elgg.queue import DatabaseQueue, MemoryQueue


class TestMemoryQueue:
    def test_fifo(self):
        queue = MemoryQueue()
        queue.enqueue("a")
        queue.enqueue("b")
        assert queue.size() == 2
        assert queue.dequeue() == "a"
        assert queue.dequeue() == "b"
        assert queue.dequeue() is None
        assert queue.size() == 0


class TestDatabaseQueue:
    def test_empty_name_rejected(self, db_session):
        with pytest.raises(ValueError):
            DatabaseQueue(db_session, "  ")

    def test_dequeue_empty_returns_none(self, db_session):
        assert DatabaseQueue(db_session, "notifications").dequeue() is None

    def test_fifo_with_structured_items(self, db_session):
        queue = DatabaseQueue(db_session, "notifications")
        queue.enqueue({"action": "create", "object_id": 1})
        queue.enqueue({"action": "publish", "object_id": 2})

        assert queue.size() == 2
        assert queue.dequeue() == {"action": "create", "object_id": 1}
        assert queue.dequeue() == {"action": "publish", "object_id": 2}
        assert queue.dequeue() is None

    def test_item_claimed_by_another_worker_is_skipped(self, db_session):
        queue = DatabaseQueue(db_session, "notifications")
        queue.enqueue("first")
        queue.enqueue("second")
        head_id = db_session.execute(select(func.min(QueueItem.id))).scalar_one()
        table = QueueItem.__table__
        claimed = []

        def claim_head_first(state):
            if state.is_delete and not claimed:
                claimed.append(head_id)
                state.session.connection().execute(delete(table).where(table.c.id == head_id))

        event.listen(db_session, "do_orm_execute", claim_head_first)
        try:
            assert queue.dequeue() == "second"
        finally:
            event.remove(db_session, "do_orm_execute", claim_head_first)
        assert claimed == [head_id]
        assert queue.size() == 0

    def test_named_queues_are_independent(self, db_session):
        first = DatabaseQueue(db_session, "first")
        second = DatabaseQueue(db_session, "second")
        first.enqueue("one")

        assert second.size() == 0
        assert second.dequeue() is None
        assert first.dequeue() == "one"

    def test_items_survive_new_queue_instances(self, db_session):
        DatabaseQueue(db_session, "notifications").enqueue([1, 2, 3])
        db_session.commit()
        assert DatabaseQueue(db_session, "notifications").dequeue() == [1, 2, 3]

    def test_unserialisable_item_raises(self, db_session):
        with pytest.raises(TypeError):
            DatabaseQueue(db_session, "notifications").enqueue(object())
