from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint, func, text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from elgg.db.base import Base

ACCESS_PRIVATE = 0
ACCESS_LOGGED_IN = 1
ACCESS_PUBLIC = 2


class Entity(Base):
    """Shared base row for users, objects, groups and sites.

    ``type`` is the polymorphic discriminator.  Users and sites carry a
    joined per-type table; objects and groups live in this table only.
    """

    __tablename__ = "entities"

    guid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    subtype: Mapped[str | None] = mapped_column(String(64), nullable=True)
    owner_guid: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))
    container_guid: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))
    site_guid: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))
    access_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=ACCESS_PUBLIC, server_default=sql_text(str(ACCESS_PUBLIC))
    )
    title: Mapped[str | None] = mapped_column(String(512), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=sql_text("true"))
    time_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    time_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {
        "polymorphic_on": "type",
        "polymorphic_identity": "entity",
    }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} guid={self.guid} subtype={self.subtype!r}>"


class ObjectEntity(Entity):
    __mapper_args__ = {"polymorphic_identity": "object"}


class Group(Entity):
    __mapper_args__ = {"polymorphic_identity": "group"}


class User(Entity):
    __tablename__ = "users"

    guid: Mapped[int] = mapped_column(ForeignKey("entities.guid", ondelete="CASCADE"), primary_key=True)
    username: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=sql_text("false"))
    banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=sql_text("false"))
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="en", server_default=sql_text("'en'"))

    notification_settings: Mapped[list[NotificationSetting]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"polymorphic_identity": "user"}


class Site(Entity):
    __tablename__ = "sites"

    guid: Mapped[int] = mapped_column(ForeignKey("entities.guid", ondelete="CASCADE"), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    email: Mapped[str | None] = mapped_column(String(256), nullable=True)

    __mapper_args__ = {"polymorphic_identity": "site"}


class Relationship(Base):
    """Directed, named edge ``guid_one --relationship--> guid_two``."""

    __tablename__ = "entity_relationships"
    __table_args__ = (
        UniqueConstraint("guid_one", "relationship", "guid_two", name="uq_entity_relationships_triple"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guid_one: Mapped[int] = mapped_column(ForeignKey("entities.guid", ondelete="CASCADE"), nullable=False, index=True)
    relationship: Mapped[str] = mapped_column(String(64), nullable=False)
    guid_two: Mapped[int] = mapped_column(ForeignKey("entities.guid", ondelete="CASCADE"), nullable=False, index=True)
    time_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships are notification objects too; these mirror the entity contract.
    @property
    def type(self) -> str:
        return "relationship"

    @property
    def subtype(self) -> str:
        return self.relationship

    @property
    def owner_guid(self) -> int:
        return self.guid_one

    @property
    def container_guid(self) -> int:
        return self.guid_one


class NotificationSetting(Base):
    __tablename__ = "notification_settings"
    __table_args__ = (UniqueConstraint("user_guid", "method", name="uq_notification_settings_user_method"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_guid: Mapped[int] = mapped_column(ForeignKey("users.guid", ondelete="CASCADE"), nullable=False)
    method: Mapped[str] = mapped_column(String(64), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=sql_text("true"))

    user: Mapped[User] = relationship(back_populates="notification_settings")


class QueueItem(Base):
    """One pending item of a named FIFO queue."""

    __tablename__ = "queue_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ConfigValue(Base):
    __tablename__ = "config_values"

    name: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
