"""Entity and relationship persistence.

Every write triggers the matching event (``create``, ``update``,
``delete``) with the affected row so that listeners, the notification
pipeline among them, can react.  Methods flush but never commit.
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session

from elgg.core.security import PasswordHasher
from elgg.db.models import ACCESS_PUBLIC, ConfigValue, Entity, ObjectEntity, Relationship, Site, User
from elgg.db.repositories import (
    ConfigValueRepository,
    EntityRepository,
    RelationshipRepository,
    SiteRepository,
    UserRepository,
)
from elgg.events import EventRegistry

logger = logging.getLogger(__name__)


def get_default_site(db: Session) -> Site | None:
    """Return the configured default site, falling back to the oldest one."""
    row = db.get(ConfigValue, "default_site")
    if row is not None and row.value:
        site = db.get(Site, row.value)
        if site is not None:
            return site
    return SiteRepository(db).first()


class EntityService:
    def __init__(self, db: Session, events: EventRegistry, hasher: PasswordHasher | None = None) -> None:
        self.db = db
        self.events = events
        self.hasher = hasher or PasswordHasher()
        self._entities = EntityRepository(db)
        self._users = UserRepository(db)
        self._config = ConfigValueRepository(db)
        self._relationships = RelationshipRepository(db)

    # -- create -------------------------------------------------------------

    def _save_new(self, entity: Entity) -> Entity:
        self.db.add(entity)
        self.db.flush()
        self.events.trigger("create", entity.type, entity)
        logger.info("Created %s %s", entity.type, entity.guid)
        return entity

    def create_user(
        self,
        username: str,
        password: str,
        name: str,
        email: str | None = None,
        *,
        admin: bool = False,
        language: str = "en",
        site_guid: int = 0,
    ) -> User:
        if self._users.get_by_username(username) is not None:
            raise ValueError(f"Username {username!r} is already taken")
        user = User(
            username=username,
            name=name,
            email=email,
            password_hash=self.hasher.hash(password),
            admin=admin,
            language=language,
            site_guid=site_guid,
            owner_guid=site_guid,
            container_guid=site_guid,
            access_id=ACCESS_PUBLIC,
        )
        return self._save_new(user)

    def create_object(
        self,
        subtype: str,
        owner_guid: int,
        container_guid: int | None = None,
        *,
        title: str | None = None,
        description: str | None = None,
        access_id: int = ACCESS_PUBLIC,
        site_guid: int = 0,
    ) -> ObjectEntity:
        obj = ObjectEntity(
            subtype=subtype,
            owner_guid=owner_guid,
            container_guid=owner_guid if container_guid is None else container_guid,
            title=title,
            description=description,
            access_id=access_id,
            site_guid=site_guid,
        )
        return self._save_new(obj)

    def create_site(self, name: str, url: str, email: str | None = None, *, access_id: int = ACCESS_PUBLIC) -> Site:
        site = Site(name=name, url=url, email=email, access_id=access_id)
        return self._save_new(site)

    # -- read ---------------------------------------------------------------

    def get_entity(self, guid: int) -> Entity | None:
        if not guid:
            return None
        return self._entities.get(guid)

    def get_user_by_username(self, username: str) -> User | None:
        return self._users.get_by_username(username)

    def get_site(self) -> Site | None:
        return get_default_site(self.db)

    # -- update / delete ----------------------------------------------------

    def update_entity(self, entity: Entity, **fields: Any) -> Entity:
        for key, value in fields.items():
            setattr(entity, key, value)
        self.db.flush()
        self.events.trigger("update", entity.type, entity)
        return entity

    def ban_user(self, user: User) -> User:
        return self.update_entity(user, banned=True)

    def delete_entity(self, entity: Entity) -> bool:
        if not self.events.trigger("delete", entity.type, entity):
            logger.info("Deletion of %s %s vetoed", entity.type, entity.guid)
            return False
        self.db.execute(
            delete(Relationship).where(
                (Relationship.guid_one == entity.guid) | (Relationship.guid_two == entity.guid)
            )
        )
        self.db.delete(entity)
        self.db.flush()
        return True

    # -- relationships ------------------------------------------------------

    def check_relationship(self, guid_one: int, relationship: str, guid_two: int) -> Relationship | None:
        return self._relationships.find(guid_one, relationship, guid_two)

    def add_relationship(self, guid_one: int, relationship: str, guid_two: int) -> bool:
        """Create the edge; ``False`` if it already exists."""
        if self.check_relationship(guid_one, relationship, guid_two) is not None:
            return False
        rel = self._relationships.create(guid_one=guid_one, relationship=relationship, guid_two=guid_two)
        self.events.trigger("create", "relationship", rel)
        return True

    def remove_relationship(self, guid_one: int, relationship: str, guid_two: int) -> bool:
        rel = self.check_relationship(guid_one, relationship, guid_two)
        if rel is None:
            return False
        if not self.events.trigger("delete", "relationship", rel):
            return False
        self._relationships.delete(rel)
        return True

    # -- site configuration -------------------------------------------------

    def get_config(self, name: str, default: Any = None) -> Any:
        row = self._config.get(name)
        return default if row is None else row.value

    def set_config(self, name: str, value: Any) -> None:
        row = self._config.get(name)
        if row is None:
            self._config.create(name=name, value=value)
        else:
            self._config.update(row, value=value)
