"""Application object.

``Elgg`` owns the hook and event registries and the long-lived services
that plugins register against.  Session-bound services are built per
request through the factory methods.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from elgg.core.settings import Settings, get_settings
from elgg.entities import EntityService
from elgg.events import EventRegistry, HookRegistry
from elgg.notification.email_sender import EmailNotifyHandler, EmailSender
from elgg.notification.handlers import NotificationHandlers
from elgg.notification.service import NotificationsService
from elgg.notification.subscriptions import SubscriptionsService

logger = logging.getLogger(__name__)


class Elgg:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.hooks = HookRegistry()
        self.events = EventRegistry()
        self.handlers = NotificationHandlers()
        self.email = EmailSender(
            smtp_host=self.settings.smtp_host,
            smtp_port=self.settings.smtp_port,
            hooks=self.hooks,
            broken_mta=self.settings.broken_mta,
        )
        self.notifications = NotificationsService(self.hooks, self.events, self.settings, self.handlers)
        self._init_notifications()

    def _init_notifications(self) -> None:
        self.handlers.register_handler("email", EmailNotifyHandler(self.email, self.settings))
        self.notifications.register_method("email")
        self.events.register("all", "all", self.notifications.on_event)
        self.hooks.register("cron", "minute", self.notifications.on_cron, priority=100)
        logger.debug("Notification subsystem initialised")

    def entities(self, db: Session) -> EntityService:
        return EntityService(db, self.events)

    def subscriptions(self, db: Session) -> SubscriptionsService:
        return self.notifications.subscriptions(db)
