"""Per-user delivery handlers and notification preferences.

A handler delivers one message over one method and is called as
``handler(sender, recipient, subject, message, params)``.  It returns a
falsy value on failure and anything truthy (a message id, ``True``) on
success.  Which methods a user receives is stored per user in
``notification_settings``.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from elgg.db.models import Entity, User
from elgg.db.repositories import NotificationSettingRepository

logger = logging.getLogger(__name__)


@dataclass
class HandlerDetails:
    handler: Callable
    params: dict[str, Any] = field(default_factory=dict)


class NotificationHandlers:
    def __init__(self) -> None:
        self._handlers: dict[str, HandlerDetails] = {}

    @property
    def methods(self) -> list[str]:
        return list(self._handlers)

    def register_handler(self, method: str, handler: Callable, **params: Any) -> bool:
        """Register *handler* for *method*; ``False`` if it is not callable."""
        if not callable(handler):
            return False
        self._handlers[method] = HandlerDetails(handler=handler, params=params)
        return True

    def unregister_handler(self, method: str) -> None:
        self._handlers.pop(method, None)

    def get(self, method: str) -> HandlerDetails | None:
        return self._handlers.get(method)

    def notify_user(
        self,
        db: Session,
        to: int | Iterable[int],
        from_guid: int,
        subject: str,
        message: str,
        params: dict[str, Any] | None = None,
        methods_override: str | Iterable[str] | None = None,
    ) -> dict[int, dict[str, Any]]:
        """Deliver a message to one or more users.

        Methods are taken from *methods_override* when given, otherwise from
        each user's enabled notification settings.  Returns
        ``{guid: {method: handler_result}}``.
        """
        recipients = [int(to)] if isinstance(to, int) else [int(guid) for guid in to]
        if isinstance(methods_override, str):
            methods_override = [methods_override]
        override = list(methods_override) if methods_override else []

        sender = db.get(Entity, from_guid) if from_guid else None
        result: dict[int, dict[str, Any]] = {}

        for guid in recipients:
            result[guid] = {}
            if not guid:
                continue

            methods = override or [
                method for method, enabled in get_user_notification_settings(db, guid).items() if enabled
            ]
            recipient = db.get(Entity, guid)

            for method in methods:
                details = self._handlers.get(method)
                if details is None:
                    continue

                logger.info("Sending message to %s using %s", guid, method)
                try:
                    result[guid][method] = details.handler(sender, recipient, subject, message, params)
                except Exception:
                    logger.exception("Handler for %s failed for recipient %s", method, guid)

        return result


def get_user_notification_settings(db: Session, user_guid: int) -> dict[str, bool]:
    """Return ``{method: enabled}`` for *user_guid*; empty if none are stored."""
    rows = NotificationSettingRepository(db).for_user(user_guid)
    return {row.method: row.enabled for row in rows}


def set_user_notification_setting(db: Session, user_guid: int, method: str, value: bool) -> bool:
    """Turn *method* on or off for a user; ``False`` if the user does not exist."""
    user = db.get(Entity, user_guid)
    if not isinstance(user, User):
        return False

    repo = NotificationSettingRepository(db)
    row = repo.find(user_guid, method)
    if row is None:
        repo.create(user_guid=user_guid, method=method, enabled=bool(value))
    else:
        repo.update(row, enabled=bool(value))
    return True
