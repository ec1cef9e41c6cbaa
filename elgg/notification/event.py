"""Value types flowing through the notification pipeline."""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from elgg.db.models import Entity, Relationship


@dataclass
class NotificationEvent:
    """Something notifiable happened to an object.

    Only identifiers are kept so the event can sit in a persistent queue;
    the object and actor are reloaded when the event is processed.
    """

    action: str
    object_type: str
    object_subtype: str
    object_id: int
    actor_guid: int
    timestamp: float = field(default_factory=time.time)

    @property
    def description(self) -> str:
        return f"{self.action}:{self.object_type}:{self.object_subtype}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NotificationEvent:
        return cls(
            action=data["action"],
            object_type=data["object_type"],
            object_subtype=data["object_subtype"],
            object_id=int(data["object_id"]),
            actor_guid=int(data["actor_guid"]),
            timestamp=float(data.get("timestamp", 0.0)),
        )


@dataclass
class Notification:
    """Message content for one recipient and one delivery method."""

    sender: Any
    recipient: Any
    language: str
    subject: str
    body: str
    summary: str = ""
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def sender_guid(self) -> int:
        return self.sender.guid if self.sender is not None else 0

    @property
    def recipient_guid(self) -> int:
        return self.recipient.guid if self.recipient is not None else 0


def load_event_object(db: Session, event: NotificationEvent) -> Entity | Relationship | None:
    """Reload the object an event is about; ``None`` if it is gone."""
    if event.object_type == "relationship":
        return db.get(Relationship, event.object_id)
    entity = db.get(Entity, event.object_id)
    if entity is None or entity.type != event.object_type:
        return None
    return entity
