from __future__ import annotations

from collections import deque
from typing import Any, Protocol


class Queue(Protocol):
    def enqueue(self, item: Any) -> bool:
        ...

    def dequeue(self) -> Any | None:
        ...

    def size(self) -> int:
        ...


class MemoryQueue:
    """In-process FIFO; contents vanish with the process."""

    def __init__(self) -> None:
        self._items: deque[Any] = deque()

    def enqueue(self, item: Any) -> bool:
        self._items.append(item)
        return True

    def dequeue(self) -> Any | None:
        if not self._items:
            return None
        return self._items.popleft()

    def size(self) -> int:
        return len(self._items)
