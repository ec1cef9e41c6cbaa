from __future__ import annotations

from typing import Any

from elgg.events.base import HandlerRegistry


class HookRegistry(HandlerRegistry):
    """Plugin hooks: handlers inspect and may replace a value.

    Handler signature is ``handler(hook, type, value, params)``.  A return
    of ``None`` leaves the value alone; anything else replaces it.
    """

    def trigger(self, hook: str, type_: str, params: dict | None = None, value: Any = None) -> Any:
        params = params or {}
        for handler in self.handlers_for(hook, type_):
            result = handler(hook, type_, value, params)
            if result is not None:
                value = result
        return value
