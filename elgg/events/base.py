from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import count

WILDCARD = "all"
DEFAULT_PRIORITY = 500


@dataclass(order=True)
class RegisteredHandler:
    priority: int
    sequence: int
    handler: Callable = field(compare=False)


class HandlerRegistry:
    """Handlers keyed by (name, type), ordered by priority then registration."""

    def __init__(self) -> None:
        self._handlers: dict[tuple[str, str], list[RegisteredHandler]] = defaultdict(list)
        self._sequence = count()

    def register(self, name: str, type_: str, handler: Callable, priority: int = DEFAULT_PRIORITY) -> None:
        if not callable(handler):
            raise ValueError(f"Handler for {name!r}, {type_!r} is not callable")
        self._handlers[(name, type_)].append(RegisteredHandler(priority, next(self._sequence), handler))

    def unregister(self, name: str, type_: str, handler: Callable) -> bool:
        entries = self._handlers.get((name, type_), [])
        for entry in entries:
            if entry.handler == handler:
                entries.remove(entry)
                return True
        return False

    def has_handler(self, name: str, type_: str) -> bool:
        return bool(self._handlers.get((name, type_)))

    def handlers_for(self, name: str, type_: str) -> list[Callable]:
        keys = {(name, type_), (WILDCARD, type_), (name, WILDCARD), (WILDCARD, WILDCARD)}
        entries: list[RegisteredHandler] = []
        for key in keys:
            entries.extend(self._handlers.get(key, []))
        return [entry.handler for entry in sorted(entries)]
