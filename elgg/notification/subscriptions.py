"""Subscription store.

Subscriptions have always been relationships named ``notify<method>``
from the subscriber to the entity being watched.  A notification event
reaches everyone subscribed to its object's container.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from elgg.db.models import Relationship
from elgg.entities.service import EntityService
from elgg.events import EventRegistry
from elgg.notification.event import NotificationEvent, load_event_object

logger = logging.getLogger(__name__)

RELATIONSHIP_PREFIX = "notify"


class SubscriptionsService:
    def __init__(self, db: Session, methods: Iterable[str] = (), events: EventRegistry | None = None) -> None:
        self.db = db
        self.methods: list[str] = list(methods)
        self._entities = EntityService(db, events or EventRegistry())

    def get_subscriptions(self, event: NotificationEvent, obj=None) -> dict[int, list[str]]:
        """Return ``{subscriber_guid: [method, ...]}`` for *event*.

        *obj* is the event's object when the caller already loaded it.
        """
        if not self.methods:
            return {}

        if obj is None:
            obj = load_event_object(self.db, event)
        if obj is None:
            return {}

        return self._get_subscription_records(obj.container_guid)

    def add_subscription(self, user_guid: int, method: str, target_guid: int) -> bool:
        """Subscribe; ``False`` for unknown methods or existing subscriptions."""
        if method not in self.methods:
            return False
        if not self._entities.add_relationship(user_guid, f"{RELATIONSHIP_PREFIX}{method}", target_guid):
            return False
        logger.info("User %s subscribed to %s via %s", user_guid, target_guid, method)
        return True

    def remove_subscription(self, user_guid: int, method: str, target_guid: int) -> bool:
        if not self._entities.remove_relationship(user_guid, f"{RELATIONSHIP_PREFIX}{method}", target_guid):
            return False
        logger.info("User %s unsubscribed from %s via %s", user_guid, target_guid, method)
        return True

    def get_user_subscriptions(self, user_guid: int) -> dict[int, list[str]]:
        """Return ``{target_guid: [method, ...]}`` for one subscriber."""
        names = self._method_relationships()
        if not names:
            return {}
        stmt = (
            select(Relationship.guid_two, Relationship.relationship)
            .where(Relationship.guid_one == user_guid, Relationship.relationship.in_(names))
            .order_by(Relationship.guid_two.asc(), Relationship.id.asc())
        )
        return self._group(self.db.execute(stmt).all())

    def _get_subscription_records(self, container_guid: int) -> dict[int, list[str]]:
        names = self._method_relationships()
        if not names:
            return {}
        stmt = (
            select(Relationship.guid_one, Relationship.relationship)
            .where(Relationship.guid_two == container_guid, Relationship.relationship.in_(names))
            .order_by(Relationship.guid_one.asc(), Relationship.id.asc())
        )
        return self._group(self.db.execute(stmt).all())

    def _method_relationships(self) -> list[str]:
        return [f"{RELATIONSHIP_PREFIX}{method}" for method in self.methods]

    @staticmethod
    def _group(rows) -> dict[int, list[str]]:
        grouped: dict[int, list[str]] = {}
        prefix_length = len(RELATIONSHIP_PREFIX)
        for guid, name in rows:
            grouped.setdefault(guid, []).append(name[prefix_length:])
        return grouped
