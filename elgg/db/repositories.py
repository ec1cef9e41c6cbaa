from __future__ import annotations

from typing import Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from elgg.db import models

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    model: type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def create(self, **kwargs) -> ModelT:
        entity = self.model(**kwargs)
        self.db.add(entity)
        self.db.flush()
        return entity

    def get(self, entity_id) -> ModelT | None:
        return self.db.get(self.model, entity_id)

    def list(self, limit: int = 100, offset: int = 0) -> list[ModelT]:
        stmt = select(self.model).offset(offset).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def update(self, entity: ModelT, **kwargs) -> ModelT:
        for key, value in kwargs.items():
            setattr(entity, key, value)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()


class EntityRepository(BaseRepository[models.Entity]):
    model = models.Entity


class UserRepository(BaseRepository[models.User]):
    model = models.User

    def get_by_username(self, username: str) -> models.User | None:
        stmt = select(models.User).where(models.User.username == username)
        return self.db.execute(stmt).scalar_one_or_none()

    def count_admins(self) -> int:
        stmt = select(models.User.guid).where(models.User.admin.is_(True))
        return len(self.db.execute(stmt).scalars().all())


class SiteRepository(BaseRepository[models.Site]):
    model = models.Site

    def first(self) -> models.Site | None:
        stmt = select(models.Site).order_by(models.Site.guid.asc()).limit(1)
        return self.db.execute(stmt).scalar_one_or_none()


class RelationshipRepository(BaseRepository[models.Relationship]):
    model = models.Relationship

    def find(self, guid_one: int, relationship: str, guid_two: int) -> models.Relationship | None:
        stmt = select(models.Relationship).where(
            models.Relationship.guid_one == guid_one,
            models.Relationship.relationship == relationship,
            models.Relationship.guid_two == guid_two,
        )
        return self.db.execute(stmt).scalar_one_or_none()


class NotificationSettingRepository(BaseRepository[models.NotificationSetting]):
    model = models.NotificationSetting

    def for_user(self, user_guid: int) -> list[models.NotificationSetting]:
        stmt = (
            select(models.NotificationSetting)
            .where(models.NotificationSetting.user_guid == user_guid)
            .order_by(models.NotificationSetting.id.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def find(self, user_guid: int, method: str) -> models.NotificationSetting | None:
        stmt = select(models.NotificationSetting).where(
            models.NotificationSetting.user_guid == user_guid,
            models.NotificationSetting.method == method,
        )
        return self.db.execute(stmt).scalar_one_or_none()


class ConfigValueRepository(BaseRepository[models.ConfigValue]):
    model = models.ConfigValue
