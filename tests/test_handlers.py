"""Tests for elgg/notification/handlers.py: direct per-user delivery."""
from __future__ import annotations

import pytest

from elgg.core.security import PasswordHasher
from elgg.entities import EntityService
from elgg.events import EventRegistry
from elgg.notification.handlers import (
    NotificationHandlers,
    get_user_notification_settings,
    set_user_notification_setting,
)


@pytest.fixture()
def entities(db_session) -> EntityService:
    return EntityService(db_session, EventRegistry(), hasher=PasswordHasher(method="pbkdf2:sha256:1000"))


class _Recorder:
    def __init__(self, result=True):
        self.calls = []
        self.result = result

    def __call__(self, sender, recipient, subject, message, params):
        self.calls.append((sender, recipient, subject, message, params))
        return self.result


class TestRegistration:
    def test_register_and_methods(self):
        handlers = NotificationHandlers()
        assert handlers.register_handler("email", _Recorder(), priority="high") is True
        assert handlers.methods == ["email"]
        assert handlers.get("email").params == {"priority": "high"}

    def test_non_callable_rejected(self):
        handlers = NotificationHandlers()
        assert handlers.register_handler("email", "nope") is False
        assert handlers.methods == []

    def test_unregister(self):
        handlers = NotificationHandlers()
        handlers.register_handler("email", _Recorder())
        handlers.unregister_handler("email")
        handlers.unregister_handler("email")
        assert handlers.get("email") is None


class TestNotificationSettings:
    def test_set_and_get(self, db_session, entities):
        user = entities.create_user("alice", "pw1234", "Alice")
        assert get_user_notification_settings(db_session, user.guid) == {}
        assert set_user_notification_setting(db_session, user.guid, "email", True) is True
        assert set_user_notification_setting(db_session, user.guid, "site", False) is True
        assert get_user_notification_settings(db_session, user.guid) == {"email": True, "site": False}

        set_user_notification_setting(db_session, user.guid, "email", False)
        assert get_user_notification_settings(db_session, user.guid)["email"] is False

    def test_non_user_rejected(self, db_session, entities):
        owner = entities.create_user("alice", "pw1234", "Alice")
        blog = entities.create_object("blog", owner.guid)
        assert set_user_notification_setting(db_session, blog.guid, "email", True) is False
        assert set_user_notification_setting(db_session, 999, "email", True) is False


class TestNotifyUser:
    def test_uses_enabled_settings(self, db_session, entities):
        sender = entities.create_user("alice", "pw1234", "Alice")
        to = entities.create_user("bobby", "pw1234", "Bob")
        set_user_notification_setting(db_session, to.guid, "email", True)
        set_user_notification_setting(db_session, to.guid, "site", False)

        email, site = _Recorder("msg-1"), _Recorder()
        handlers = NotificationHandlers()
        handlers.register_handler("email", email)
        handlers.register_handler("site", site)

        result = handlers.notify_user(db_session, to.guid, sender.guid, "Hi", "Body", {"x": 1})
        assert result == {to.guid: {"email": "msg-1"}}
        assert site.calls == []
        call_sender, call_recipient, subject, message, params = email.calls[0]
        assert (call_sender.guid, call_recipient.guid) == (sender.guid, to.guid)
        assert (subject, message, params) == ("Hi", "Body", {"x": 1})

    def test_methods_override(self, db_session, entities):
        to = entities.create_user("bobby", "pw1234", "Bob")
        site = _Recorder()
        handlers = NotificationHandlers()
        handlers.register_handler("site", site)

        result = handlers.notify_user(db_session, [to.guid], 0, "Hi", "Body", methods_override="site")
        assert result == {to.guid: {"site": True}}
        assert site.calls[0][0] is None

    def test_unknown_method_skipped(self, db_session, entities):
        to = entities.create_user("bobby", "pw1234", "Bob")
        handlers = NotificationHandlers()
        assert handlers.notify_user(db_session, to.guid, 0, "s", "m", methods_override=["sms"]) == {to.guid: {}}

    def test_guid_zero_gets_empty_entry(self, db_session):
        handlers = NotificationHandlers()
        handlers.register_handler("site", _Recorder())
        assert handlers.notify_user(db_session, [0], 0, "s", "m", methods_override=["site"]) == {0: {}}

    def test_failing_handler_is_logged(self, db_session, entities, caplog):
        to = entities.create_user("bobby", "pw1234", "Bob")

        def broken(*args):
            raise RuntimeError("boom")

        handlers = NotificationHandlers()
        handlers.register_handler("site", broken)
        result = handlers.notify_user(db_session, to.guid, 0, "s", "m", methods_override=["site"])
        assert result == {to.guid: {}}
        assert "failed" in caplog.text
