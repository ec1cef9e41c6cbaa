"""Plugin hooks and events.

Both registries are owned by the application object; nothing here is
module-global.  ``all`` matches any name or type.
"""
from elgg.events.events import EventRegistry
from elgg.events.hooks import HookRegistry

__all__ = ["EventRegistry", "HookRegistry"]
