"""Users and content objects.

Creating an object fires the ``create`` event, which queues a
notification when the object's type/subtype is registered.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from elgg.api.deps import get_entity_service
from elgg.db.models import ACCESS_PUBLIC, Entity, User
from elgg.entities import EntityService

router = APIRouter(tags=["entities"])


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class UserBody(BaseModel):
    username: str
    password: str
    name: str
    email: str | None = None
    language: str = "en"


class ObjectBody(BaseModel):
    subtype: str
    owner_guid: int
    container_guid: int | None = None
    title: str | None = None
    description: str | None = None
    access_id: int = ACCESS_PUBLIC


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _serialize_entity(entity: Entity) -> dict:
    data = {
        "guid": entity.guid,
        "type": entity.type,
        "subtype": entity.subtype,
        "owner_guid": entity.owner_guid,
        "container_guid": entity.container_guid,
        "access_id": entity.access_id,
        "title": entity.title,
    }
    if isinstance(entity, User):
        data.update(username=entity.username, name=entity.name, banned=entity.banned)
    return data


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/users", summary="Register a user", status_code=201)
def create_user(body: UserBody, entities: EntityService = Depends(get_entity_service)):
    try:
        user = entities.create_user(
            body.username, body.password, body.name, body.email, language=body.language
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _serialize_entity(user)


@router.post("/entities/objects", summary="Create a content object", status_code=201)
def create_object(body: ObjectBody, entities: EntityService = Depends(get_entity_service)):
    if entities.get_entity(body.owner_guid) is None:
        raise HTTPException(status_code=404, detail=f"Owner {body.owner_guid} not found")
    obj = entities.create_object(
        body.subtype,
        body.owner_guid,
        body.container_guid,
        title=body.title,
        description=body.description,
        access_id=body.access_id,
    )
    return _serialize_entity(obj)


@router.get("/entities/{guid}", summary="Get an entity")
def get_entity(guid: int, entities: EntityService = Depends(get_entity_service)):
    entity = entities.get_entity(guid)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"Entity {guid} not found")
    return _serialize_entity(entity)
