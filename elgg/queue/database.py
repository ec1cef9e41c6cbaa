"""FIFO queue persisted as rows of ``queue_items``.

Items are stored as JSON.  ``dequeue`` claims the oldest row with a
guarded delete so two workers draining the same queue never receive the
same item.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from elgg.db.models import QueueItem

logger = logging.getLogger(__name__)


class DatabaseQueue:
    def __init__(self, db: Session, name: str) -> None:
        if not name or not name.strip():
            raise ValueError("queue name must be a non-empty string")
        self.db = db
        self.name = name

    def enqueue(self, item: Any) -> bool:
        """Append *item*; raises ``TypeError`` if it is not JSON-serialisable."""
        row = QueueItem(name=self.name, payload=json.dumps(item))
        self.db.add(row)
        self.db.flush()
        return True

    def dequeue(self) -> Any | None:
        """Remove and return the oldest item, or ``None`` when empty."""
        while True:
            row = self.db.execute(
                select(QueueItem.id, QueueItem.payload)
                .where(QueueItem.name == self.name)
                .order_by(QueueItem.id.asc())
                .limit(1)
            ).first()
            if row is None:
                return None

            result = self.db.execute(delete(QueueItem).where(QueueItem.id == row.id))
            if result.rowcount == 1:
                return json.loads(row.payload)
            logger.debug("Queue %s item %s claimed by another worker", self.name, row.id)

    def size(self) -> int:
        stmt = select(func.count()).select_from(QueueItem).where(QueueItem.name == self.name)
        return self.db.execute(stmt).scalar_one()
