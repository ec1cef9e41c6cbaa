"""Tests for elgg/notification/subscriptions.py."""
from __future__ import annotations

import pytest

from elgg.core.security import PasswordHasher
from elgg.entities import EntityService
from elgg.events import EventRegistry
from elgg.notification.event import NotificationEvent
from elgg.notification.subscriptions import SubscriptionsService


@pytest.fixture()
def entities(db_session) -> EntityService:
    return EntityService(db_session, EventRegistry(), hasher=PasswordHasher(method="pbkdf2:sha256:1000"))


@pytest.fixture()
def people(entities):
    author = entities.create_user("author", "pw1234", "Author")
    reader = entities.create_user("reader", "pw1234", "Reader")
    lurker = entities.create_user("lurker", "pw1234", "Lurker")
    return author, reader, lurker


def _event(obj, action="create") -> NotificationEvent:
    return NotificationEvent(
        action=action,
        object_type=obj.type,
        object_subtype=obj.subtype or "",
        object_id=obj.guid,
        actor_guid=obj.owner_guid,
    )


class TestAddRemove:
    def test_add_and_list(self, db_session, people):
        author, reader, _ = people
        subs = SubscriptionsService(db_session, ["email", "site"])
        assert subs.add_subscription(reader.guid, "email", author.guid) is True
        assert subs.add_subscription(reader.guid, "site", author.guid) is True
        assert subs.get_user_subscriptions(reader.guid) == {author.guid: ["email", "site"]}

    def test_add_twice_returns_false(self, db_session, people):
        author, reader, _ = people
        subs = SubscriptionsService(db_session, ["email"])
        subs.add_subscription(reader.guid, "email", author.guid)
        assert subs.add_subscription(reader.guid, "email", author.guid) is False

    def test_unknown_method_rejected(self, db_session, people):
        author, reader, _ = people
        subs = SubscriptionsService(db_session, ["email"])
        assert subs.add_subscription(reader.guid, "sms", author.guid) is False
        assert subs.get_user_subscriptions(reader.guid) == {}

    def test_remove(self, db_session, people):
        author, reader, _ = people
        subs = SubscriptionsService(db_session, ["email"])
        subs.add_subscription(reader.guid, "email", author.guid)
        assert subs.remove_subscription(reader.guid, "email", author.guid) is True
        assert subs.remove_subscription(reader.guid, "email", author.guid) is False
        assert subs.get_user_subscriptions(reader.guid) == {}

    def test_create_event_fires_for_new_subscription(self, db_session, people):
        author, reader, _ = people
        events = EventRegistry()
        seen = []
        events.register("create", "relationship", lambda event, type_, rel: seen.append(rel.relationship))
        subs = SubscriptionsService(db_session, ["email"], events)

        subs.add_subscription(reader.guid, "email", author.guid)
        subs.add_subscription(reader.guid, "email", author.guid)
        assert seen == ["notifyemail"]

    def test_delete_event_can_veto_removal(self, db_session, people):
        author, reader, _ = people
        events = EventRegistry()
        events.register("delete", "relationship", lambda event, type_, rel: False)
        subs = SubscriptionsService(db_session, ["email"], events)
        subs.add_subscription(reader.guid, "email", author.guid)

        assert subs.remove_subscription(reader.guid, "email", author.guid) is False
        assert subs.get_user_subscriptions(reader.guid) == {author.guid: ["email"]}


class TestGetSubscriptions:
    def test_subscribers_of_container(self, db_session, entities, people):
        author, reader, lurker = people
        subs = SubscriptionsService(db_session, ["email", "site"])
        subs.add_subscription(reader.guid, "email", author.guid)
        subs.add_subscription(lurker.guid, "site", author.guid)

        blog = entities.create_object("blog", author.guid)
        assert subs.get_subscriptions(_event(blog)) == {
            reader.guid: ["email"],
            lurker.guid: ["site"],
        }

    def test_only_registered_methods_count(self, db_session, entities, people):
        author, reader, _ = people
        SubscriptionsService(db_session, ["email", "sms"]).add_subscription(reader.guid, "sms", author.guid)

        blog = entities.create_object("blog", author.guid)
        assert SubscriptionsService(db_session, ["email"]).get_subscriptions(_event(blog)) == {}

    def test_no_methods_means_no_subscriptions(self, db_session, entities, people):
        author, _, _ = people
        blog = entities.create_object("blog", author.guid)
        assert SubscriptionsService(db_session, []).get_subscriptions(_event(blog)) == {}

    def test_missing_object_returns_empty(self, db_session):
        event = NotificationEvent("create", "object", "blog", object_id=424242, actor_guid=1)
        assert SubscriptionsService(db_session, ["email"]).get_subscriptions(event) == {}

    def test_relationship_event_uses_subject_as_container(self, db_session, entities, people):
        author, reader, lurker = people
        subs = SubscriptionsService(db_session, ["email"])
        subs.add_subscription(reader.guid, "email", author.guid)

        entities.add_relationship(author.guid, "friend", lurker.guid)
        rel = entities.check_relationship(author.guid, "friend", lurker.guid)
        event = NotificationEvent("create", "relationship", "friend", object_id=rel.id, actor_guid=author.guid)
        assert subs.get_subscriptions(event) == {reader.guid: ["email"]}
