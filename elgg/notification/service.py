"""Notification pipeline.

Flow
----
1. ``register_event(type, subtype, actions)`` marks which events are
   notifiable.  ``enqueue_event`` listens to every event and queues the
   registered ones as ``NotificationEvent`` rows.
2. ``process_queue`` (run from the per-minute cron hook) drains the queue
   until a wall-clock cutoff, resolving subscribers for each event.
3. ``send_notifications`` delivers to every subscriber over each of their
   registered methods.

Hooks
-----
``enqueue``, ``notification``
    params ``action``, ``object``; return ``False`` to drop the event.
``get``, ``subscriptions``
    params ``event``, ``object``; value is ``{guid: [method, ...]}``.
``prepare``, ``notification:<action>:<type>:<subtype>``
    falls back to ``prepare``, ``notification`` when the specific hook has
    no handlers.  params ``event``, ``method``, ``recipient``,
    ``language``, ``object``; value is the ``Notification``.
``format``, ``notification:<method>``
    last chance to rewrite the ``Notification`` for a delivery method.
``send``, ``notification:<method>``
    params add ``notification``; return whether the message was sent.
    Without handlers, delivery goes through the registered
    ``NotificationHandlers`` instead.

Events ``send:before`` and ``send:after``, ``notifications`` bracket every
delivery batch; ``send:before`` returning ``False`` cancels the batch.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, object_session

from elgg.core.settings import Settings
from elgg.core.translations import echo
from elgg.db.models import ACCESS_PRIVATE, Entity, User
from elgg.entities.access import entity_url, has_access_to_entity
from elgg.events import EventRegistry, HookRegistry
from elgg.notification.event import Notification, NotificationEvent, load_event_object
from elgg.notification.handlers import NotificationHandlers
from elgg.notification.subscriptions import SubscriptionsService
from elgg.queue import DatabaseQueue, Queue

logger = logging.getLogger(__name__)

DEFAULT_ACTIONS = ("create",)


class NotificationsService:
    def __init__(
        self,
        hooks: HookRegistry,
        events: EventRegistry,
        settings: Settings,
        handlers: NotificationHandlers,
        queue_factory: Callable[[Session], Queue] | None = None,
    ) -> None:
        self.hooks = hooks
        self.events = events
        self.settings = settings
        self.handlers = handlers
        self.queue_factory = queue_factory or (
            lambda db: DatabaseQueue(db, settings.notification_queue_name)
        )
        self._events: dict[str, dict[str, list[str]]] = {}
        self._methods: list[str] = []

    # -- registration -------------------------------------------------------

    def register_event(self, object_type: str, object_subtype: str, actions: Iterable[str] = ()) -> None:
        """Send notifications for *actions* on objects of this type/subtype.

        Actions default to ``create``; registering again adds actions.
        """
        actions = list(actions) or list(DEFAULT_ACTIONS)
        registered = self._events.setdefault(object_type, {}).setdefault(object_subtype or "", [])
        for action in actions:
            if action not in registered:
                registered.append(action)

    def unregister_event(self, object_type: str, object_subtype: str) -> bool:
        subtypes = self._events.get(object_type, {})
        if (object_subtype or "") not in subtypes:
            return False
        del subtypes[object_subtype or ""]
        return True

    def is_registered_event(self, object_type: str, object_subtype: str, action: str) -> bool:
        return action in self._events.get(object_type, {}).get(object_subtype or "", [])

    def register_method(self, name: str) -> None:
        if name not in self._methods:
            self._methods.append(name)

    def unregister_method(self, name: str) -> bool:
        if name not in self._methods:
            return False
        self._methods.remove(name)
        return True

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    def subscriptions(self, db: Session) -> SubscriptionsService:
        return SubscriptionsService(db, self._methods, self.events)

    # -- enqueue ------------------------------------------------------------

    def enqueue_event(self, action: str, object_type: str, obj: Any) -> bool:
        """Queue *obj*'s *action* if it is registered for notifications."""
        if obj is None or getattr(obj, "type", None) != object_type:
            return False
        subtype = getattr(obj, "subtype", None) or ""
        if not self.is_registered_event(object_type, subtype, action):
            return False

        db = object_session(obj)
        if db is None:
            logger.debug("Skipping %s:%s, object is not attached to a session", action, object_type)
            return False

        if self.hooks.trigger("enqueue", "notification", {"action": action, "object": obj}, True) is False:
            return False

        object_id = obj.id if object_type == "relationship" else obj.guid
        event = NotificationEvent(
            action=action,
            object_type=object_type,
            object_subtype=subtype,
            object_id=object_id,
            actor_guid=obj.owner_guid,
        )
        self.queue_factory(db).enqueue(event.to_dict())
        logger.info("Queued notification event %s for object %s", event.description, object_id)
        return True

    def on_event(self, event: str, object_type: str, obj: Any) -> None:
        # Registered for ``all``, ``all``; must never halt the event.
        self.enqueue_event(event, object_type, obj)

    # -- processing ---------------------------------------------------------

    def process_queue(self, db: Session, stop_time: float) -> int:
        """Send notifications for queued events until empty or *stop_time*.

        Returns the number of events processed.
        """
        queue = self.queue_factory(db)
        subscriptions = self.subscriptions(db)
        count = 0

        while time.time() < stop_time:
            data = queue.dequeue()
            if data is None:
                break

            # A failing event is logged and dropped; the run carries on
            try:
                self._process_event(db, subscriptions, data)
            except SQLAlchemyError:
                raise
            except Exception:
                logger.exception("Dropping notification event %r after an error", data)
            count += 1

        if count:
            logger.info("Processed %d notification events", count)
        return count

    def _process_event(self, db: Session, subscriptions: SubscriptionsService, data: dict[str, Any]) -> None:
        event = NotificationEvent.from_dict(data)
        obj = load_event_object(db, event)
        subscribers = subscriptions.get_subscriptions(event, obj) if obj is not None else {}
        subscribers = self.hooks.trigger("get", "subscriptions", {"event": event, "object": obj}, subscribers)
        subscribers = subscribers or {}
        if not isinstance(subscribers, dict):
            raise TypeError(f"get, subscriptions hook returned {type(subscribers).__name__}, expected dict")
        self.send_notifications(db, event, subscribers)

    def on_cron(self, hook: str, period: str, value: Any, params: dict[str, Any]) -> None:
        now = params.get("time") or time.time()
        self.process_queue(params["db"], now + self.settings.notification_cron_seconds)

    # -- delivery -----------------------------------------------------------

    def send_notifications(
        self,
        db: Session,
        event: NotificationEvent,
        subscriptions: dict[int, list[str]],
    ) -> dict[int, dict[str, bool]]:
        """Deliver *event* to each subscriber over each registered method."""
        if not self._methods:
            return {}

        batch = {"event": event, "subscriptions": subscriptions}
        if not self.events.trigger("send:before", "notifications", batch):
            return {}

        obj = load_event_object(db, event)
        actor = db.get(Entity, event.actor_guid) if event.actor_guid else None

        result: dict[int, dict[str, bool]] = {}
        for guid, methods in subscriptions.items():
            for method in methods:
                if method not in self._methods:
                    continue
                result.setdefault(guid, {})[method] = self._send_notification(db, event, obj, actor, guid, method)

        self.events.trigger("send:after", "notifications", {**batch, "deliveries": result})
        return result

    def _send_notification(
        self,
        db: Session,
        event: NotificationEvent,
        obj: Any,
        actor: Entity | None,
        guid: int,
        method: str,
    ) -> bool:
        if obj is None or actor is None:
            return False

        recipient = db.get(Entity, guid)
        if not isinstance(recipient, User) or recipient.banned or recipient.guid == actor.guid:
            return False
        if isinstance(obj, Entity):
            if obj.access_id == ACCESS_PRIVATE or not has_access_to_entity(obj, recipient):
                return False

        language = recipient.language or self.settings.default_language
        params: dict[str, Any] = {
            "event": event,
            "method": method,
            "recipient": recipient,
            "language": language,
            "object": obj,
        }
        actor_name = getattr(actor, "name", None) or actor.title or str(actor.guid)
        notification = Notification(
            sender=actor,
            recipient=recipient,
            language=language,
            subject=echo("notification:subject", [actor_name], language),
            body=echo("notification:body", [self._object_url(obj)], language),
            params=params,
        )

        prepare_type = f"notification:{event.description}"
        if not self.hooks.has_handler("prepare", prepare_type):
            prepare_type = "notification"
        try:
            notification = self.hooks.trigger("prepare", prepare_type, params, notification)
            notification = self.hooks.trigger("format", f"notification:{method}", params, notification)
        except Exception:
            logger.exception("Preparing notification for %s via %s failed", guid, method)
            return False
        if not isinstance(notification, Notification):
            logger.info("Notification for %s via %s cancelled by a hook", guid, method)
            return False

        send_type = f"notification:{method}"
        if self.hooks.has_handler("send", send_type):
            try:
                sent = self.hooks.trigger("send", send_type, {**params, "notification": notification}, False)
            except Exception:
                logger.exception("Send hook for %s failed for recipient %s", method, guid)
                return False
            return bool(sent)

        return self._send_with_handler(db, notification, method)

    def _send_with_handler(self, db: Session, notification: Notification, method: str) -> bool:
        results = self.handlers.notify_user(
            db,
            notification.recipient_guid,
            notification.sender_guid,
            notification.subject,
            notification.body,
            params=notification.params,
            methods_override=[method],
        )
        return bool(results.get(notification.recipient_guid, {}).get(method))

    def _object_url(self, obj: Any) -> str:
        if isinstance(obj, Entity):
            return entity_url(obj, self.settings.site_url)
        base = self.settings.site_url.rstrip("/")
        return f"{base}/relationship/{obj.id}"
