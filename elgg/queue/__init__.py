from elgg.queue.base import MemoryQueue, Queue
from elgg.queue.database import DatabaseQueue

__all__ = ["DatabaseQueue", "MemoryQueue", "Queue"]
