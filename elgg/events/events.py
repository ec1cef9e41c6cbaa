from __future__ import annotations

import logging
from typing import Any

from elgg.events.base import HandlerRegistry

logger = logging.getLogger(__name__)


class EventRegistry(HandlerRegistry):
    """Events: broadcast that something happened to *obj*.

    Handler signature is ``handler(event, type, obj)``.  A handler that
    returns ``False`` stops propagation and ``trigger`` returns ``False``.
    """

    def trigger(self, event: str, type_: str, obj: Any = None) -> bool:
        for handler in self.handlers_for(event, type_):
            if handler(event, type_, obj) is False:
                logger.debug("Event %s:%s halted by %r", event, type_, handler)
                return False
        return True
